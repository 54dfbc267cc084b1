"""Serialize a lesson transcript into LLM grounding context."""

from collections.abc import Sequence

from lesson_assistant.timecode import format_timestamp
from lesson_assistant.transcript.segments import Segment


def format_segment_line(segment: Segment) -> str:
    """``[MM:SS-MM:SS] text`` for one segment."""
    start = format_timestamp(segment.start_time_ms)
    end = format_timestamp(segment.end_time_ms)
    return f"[{start}-{end}] {segment.text}"


def assemble_context(segments: Sequence[Segment]) -> str:
    """Render every segment, in order, one line each.

    Nothing is truncated, selected or deduplicated: the whole transcript
    goes to the model, so context size grows with lesson length.
    An empty transcript yields an empty string.
    """
    return "\n".join(format_segment_line(segment) for segment in segments)
