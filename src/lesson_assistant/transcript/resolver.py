"""Playback position -> active transcript segment."""

from collections.abc import Sequence

from lesson_assistant.transcript.segments import Segment


def resolve_active_segment(
    segments: Sequence[Segment],
    position_ms: int,
) -> Segment | None:
    """Return the segment whose half-open range contains ``position_ms``.

    A position exactly at a segment's ``end_time_ms`` belongs to the next
    segment. Positions before the first segment, inside a gap, or past the
    last segment resolve to ``None``. When stored segments overlap, the
    first match in ``order`` wins.

    Args:
        segments: Segments of one lesson, sorted by ``order``.
        position_ms: Current playback position in milliseconds.
    """
    for segment in segments:
        if segment.start_time_ms <= position_ms < segment.end_time_ms:
            return segment
    return None
