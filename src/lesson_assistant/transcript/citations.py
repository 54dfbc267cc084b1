"""Extract ``[MM:SS]`` citations from assistant answers."""

import re
from collections.abc import Sequence

import structlog

from lesson_assistant.timecode import parse_timestamp
from lesson_assistant.transcript.resolver import resolve_active_segment
from lesson_assistant.transcript.segments import Citation, Segment

logger = structlog.get_logger()

CITATION_MARKER_RE = re.compile(r"\[(\d{2}:\d{2})\]")


def find_citing_segment(
    segments: Sequence[Segment],
    position_ms: int,
) -> Segment | None:
    """Segment a cited position points at, over closed ranges ``[start, end]``.

    A segment whose half-open range holds the position is preferred, so a
    marker on the boundary of two adjacent segments cites the later one.
    Failing that, a segment ending exactly at the position is used, so a
    marker at the end of the last segment (or before a gap) still resolves.
    """
    active = resolve_active_segment(segments, position_ms)
    if active is not None:
        return active
    for segment in segments:
        if segment.end_time_ms == position_ms:
            return segment
    return None


def extract_citations(
    segments: Sequence[Segment],
    answer_text: str,
) -> list[Citation] | None:
    """Resolve every ``[MM:SS]`` marker in ``answer_text`` to a segment.

    Markers are taken left to right, duplicates included. Markers that do
    not land in any segment are dropped silently.

    Returns:
        Citations in order of appearance, or ``None`` when no marker
        resolved (including when the answer has no markers at all).
    """
    citations: list[Citation] = []
    dropped = 0
    for match in CITATION_MARKER_RE.finditer(answer_text):
        timestamp = match.group(1)
        segment = find_citing_segment(segments, parse_timestamp(timestamp))
        if segment is None:
            dropped += 1
            continue
        citations.append(
            Citation(timestamp=timestamp, text=segment.text, segment_id=segment.id)
        )

    if dropped:
        logger.debug("citation_markers_dropped", dropped=dropped)
    return citations or None
