"""Lesson progress tracking driven by playback events.

Time updates record how far the learner has watched. Pause, stop and
end events additionally mark the lesson completed once the position
passes ``threshold`` of its duration. Completion is never undone.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

from lesson_assistant.timecode import ms_to_seconds
from lesson_assistant.transcript.resolver import resolve_active_segment
from lesson_assistant.transcript.segments import Segment

logger = structlog.get_logger()

DEFAULT_COMPLETION_THRESHOLD = 0.9


class ProgressStore(Protocol):
    async def update(
        self,
        lesson_id: uuid.UUID,
        *,
        is_completed: bool | None = None,
        watched_duration_seconds: int | None = None,
    ) -> Any: ...


@dataclass(frozen=True)
class PlaybackUpdate:
    """Outcome of one playback event."""

    progress: Any
    active_segment: Segment | None


def passes_threshold(
    position_ms: int, duration_seconds: int, threshold: float
) -> bool:
    """True when ``position_ms`` is strictly past ``threshold`` of the lesson.

    A lesson without a known duration never completes from playback.
    """
    if duration_seconds <= 0:
        return False
    return position_ms > threshold * duration_seconds * 1000


class ProgressTracker:
    """Turns playback events for one (user, lesson) into progress writes.

    Args:
        store: User-scoped progress store.
        lesson_id: Lesson being watched.
        duration_seconds: Lesson length, used for the completion threshold.
        segments: Transcript, used to report the active segment.
        threshold: Fraction of the duration that counts as completed.
    """

    def __init__(
        self,
        store: ProgressStore,
        lesson_id: uuid.UUID,
        duration_seconds: int,
        segments: Sequence[Segment] = (),
        threshold: float = DEFAULT_COMPLETION_THRESHOLD,
    ) -> None:
        self._store = store
        self._lesson_id = lesson_id
        self._duration_seconds = duration_seconds
        self._segments = list(segments)
        self._threshold = threshold

    async def on_time_update(self, position_ms: int) -> PlaybackUpdate:
        """Record the watched position; never completes the lesson."""
        watched = ms_to_seconds(max(position_ms, 0))
        record = await self._store.update(
            self._lesson_id, watched_duration_seconds=watched
        )
        return PlaybackUpdate(
            progress=record,
            active_segment=resolve_active_segment(self._segments, position_ms),
        )

    async def on_playback_stopped(self, position_ms: int) -> PlaybackUpdate:
        """Pause, stop or end: record the position and maybe complete."""
        watched = ms_to_seconds(max(position_ms, 0))
        completed = passes_threshold(
            position_ms, self._duration_seconds, self._threshold
        )
        record = await self._store.update(
            self._lesson_id,
            watched_duration_seconds=watched,
            is_completed=True if completed else None,
        )
        logger.info(
            "progress_updated",
            lesson_id=str(self._lesson_id),
            watched_seconds=watched,
            reached_threshold=completed,
        )
        return PlaybackUpdate(
            progress=record,
            active_segment=resolve_active_segment(self._segments, position_ms),
        )
