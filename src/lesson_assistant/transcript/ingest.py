"""Transcript file parsing and validation for re-ingestion.

Three input formats are accepted:

* JSON: a list of ``{start_time_ms, end_time_ms, text, speaker?}``
  objects (``startTime``/``endTime`` are accepted as aliases).
* WebVTT: cues with ``[HH:]MM:SS.mmm --> [HH:]MM:SS.mmm`` timing lines;
  a leading ``<v Name>`` voice tag becomes the speaker.
* Inline-marked text: ``(M:SS) sentence (M:SS) sentence ...``. Each
  segment ends where the next one starts; the last lasts
  ``DEFAULT_TAIL_MS``.

Whatever the source, the result is checked with ``validate_segments``
before it may replace a lesson's transcript.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

DEFAULT_TAIL_MS = 5000

_VTT_TIME = r"(?:\d{1,2}:)?\d{1,2}:\d{2}[.,]\d{1,3}"
_VTT_CUE_RE = re.compile(
    rf"^({_VTT_TIME})\s*-->\s*({_VTT_TIME})[^\n]*\n((?:.+\n?)*)",
    re.MULTILINE,
)
_VOICE_RE = re.compile(r"^<v(?:\.[\w.]+)?\s+([^>]+)>")
_TAG_RE = re.compile(r"<[^>]+>")
_INLINE_MARK_RE = re.compile(r"\((\d+):(\d{2})\)\s*(.*?)(?=\(\d+:\d{2}\)|\Z)", re.S)


class TranscriptFormatError(ValueError):
    """The transcript file cannot be turned into a valid segment batch."""


class SegmentInput(BaseModel):
    """One segment as read from a transcript file, before it gets an id."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_time_ms: int = Field(
        ge=0, validation_alias=AliasChoices("start_time_ms", "startTime")
    )
    end_time_ms: int = Field(
        ge=0, validation_alias=AliasChoices("end_time_ms", "endTime")
    )
    text: str
    speaker: str | None = None

    def as_row(self) -> tuple[int, int, str, str | None]:
        return (self.start_time_ms, self.end_time_ms, self.text, self.speaker)


def _vtt_time_to_ms(value: str) -> int:
    parts = value.replace(",", ".").split(":")
    seconds = float(parts[-1])
    minutes = int(parts[-2])
    hours = int(parts[-3]) if len(parts) == 3 else 0
    return round(((hours * 60 + minutes) * 60 + seconds) * 1000)


def parse_json(raw: str) -> list[SegmentInput]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TranscriptFormatError(f"Invalid JSON: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("segments", data.get("transcripts"))
    if not isinstance(data, list):
        raise TranscriptFormatError("Expected a list of segments")
    try:
        return [SegmentInput.model_validate(item) for item in data]
    except ValidationError as exc:
        raise TranscriptFormatError(str(exc)) from exc


def parse_webvtt(raw: str) -> list[SegmentInput]:
    segments: list[SegmentInput] = []
    for match in _VTT_CUE_RE.finditer(raw.replace("\r\n", "\n")):
        block = match.group(3).strip()
        speaker = None
        voice = _VOICE_RE.match(block)
        if voice:
            speaker = voice.group(1).strip()
        text = re.sub(r"\s+", " ", _TAG_RE.sub("", block)).strip()
        if not text:
            continue
        segments.append(
            SegmentInput(
                start_time_ms=_vtt_time_to_ms(match.group(1)),
                end_time_ms=_vtt_time_to_ms(match.group(2)),
                text=text,
                speaker=speaker,
            )
        )
    return segments


def parse_marked_text(
    raw: str, *, tail_ms: int = DEFAULT_TAIL_MS, speaker: str | None = None
) -> list[SegmentInput]:
    starts: list[tuple[int, str]] = []
    for match in _INLINE_MARK_RE.finditer(raw):
        text = re.sub(r"\s+", " ", match.group(3)).strip()
        if text:
            start_ms = (int(match.group(1)) * 60 + int(match.group(2))) * 1000
            starts.append((start_ms, text))

    segments: list[SegmentInput] = []
    for idx, (start_ms, text) in enumerate(starts):
        if idx + 1 < len(starts):
            end_ms = starts[idx + 1][0]
        else:
            end_ms = start_ms + tail_ms
        segments.append(
            SegmentInput(
                start_time_ms=start_ms, end_time_ms=end_ms, text=text, speaker=speaker
            )
        )
    return segments


def validate_segments(segments: list[SegmentInput]) -> None:
    """Reject batches that would break resolver and citation lookups.

    Raises:
        TranscriptFormatError: empty batch, empty text, a range with
            ``start >= end``, or a start earlier than its predecessor's.
    """
    if not segments:
        raise TranscriptFormatError("Transcript has no segments")
    previous_start = -1
    for idx, seg in enumerate(segments):
        if not seg.text.strip():
            raise TranscriptFormatError(f"Segment {idx}: empty text")
        if seg.start_time_ms >= seg.end_time_ms:
            raise TranscriptFormatError(
                f"Segment {idx}: start {seg.start_time_ms}ms is not before "
                f"end {seg.end_time_ms}ms"
            )
        if seg.start_time_ms < previous_start:
            raise TranscriptFormatError(
                f"Segment {idx}: starts at {seg.start_time_ms}ms, before "
                f"the previous segment ({previous_start}ms)"
            )
        previous_start = seg.start_time_ms


def load_transcript(path: str | Path, *, fmt: str | None = None) -> list[SegmentInput]:
    """Read and validate a transcript file.

    Args:
        path: File to read.
        fmt: ``json``, ``vtt`` or ``text``; guessed from the suffix if None.
    """
    file_path = Path(path)
    raw = file_path.read_text(encoding="utf-8")
    if fmt is None:
        fmt = {".json": "json", ".vtt": "vtt"}.get(file_path.suffix.lower(), "text")

    if fmt == "json":
        segments = parse_json(raw)
    elif fmt == "vtt":
        segments = parse_webvtt(raw)
    elif fmt == "text":
        segments = parse_marked_text(raw)
    else:
        raise TranscriptFormatError(f"Unknown transcript format: {fmt}")

    validate_segments(segments)
    return segments
