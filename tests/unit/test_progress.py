"""Tests for ProgressTracker completion rules."""

import uuid
from datetime import UTC, datetime
from types import SimpleNamespace

from lesson_assistant.progress import ProgressTracker, passes_threshold
from lesson_assistant.transcript.segments import Segment

LESSON_ID = uuid.uuid4()


class FakeProgressStore:
    """Applies the same merge rule as ProgressRepository.update."""

    def __init__(self) -> None:
        self.record: SimpleNamespace | None = None
        self.calls: list[dict[str, object]] = []

    async def update(
        self,
        lesson_id: uuid.UUID,
        *,
        is_completed: bool | None = None,
        watched_duration_seconds: int | None = None,
    ) -> SimpleNamespace:
        self.calls.append(
            {
                "is_completed": is_completed,
                "watched_duration_seconds": watched_duration_seconds,
            }
        )
        if self.record is None:
            self.record = SimpleNamespace(
                lesson_id=lesson_id,
                is_completed=False,
                watched_duration_seconds=0,
                completed_at=None,
            )
        if watched_duration_seconds is not None:
            self.record.watched_duration_seconds = watched_duration_seconds
        if is_completed and not self.record.is_completed:
            self.record.is_completed = True
            self.record.completed_at = datetime.now(UTC)
        return self.record


def _tracker(
    store: FakeProgressStore, duration_seconds: int, segments: list[Segment] = []
) -> ProgressTracker:
    return ProgressTracker(store, LESSON_ID, duration_seconds, segments)


class TestPassesThreshold:
    def test_strictly_greater(self) -> None:
        assert passes_threshold(90_001, 100, 0.9)
        assert not passes_threshold(90_000, 100, 0.9)

    def test_unknown_duration_never_completes(self) -> None:
        assert not passes_threshold(10_000_000, 0, 0.9)


class TestProgressTracker:
    async def test_paused_past_threshold_completes(self) -> None:
        """70 s lesson paused at 64 s: 64 > 63, completed."""
        store = FakeProgressStore()
        update = await _tracker(store, 70).on_playback_stopped(64_000)
        assert update.progress.is_completed is True
        assert update.progress.watched_duration_seconds == 64
        assert update.progress.completed_at is not None

    async def test_below_threshold_never_completes(self) -> None:
        store = FakeProgressStore()
        tracker = _tracker(store, 100)
        for position in (10_000, 50_000, 89_999, 90_000):
            update = await tracker.on_playback_stopped(position)
            assert update.progress.is_completed is False

    async def test_time_update_never_completes(self) -> None:
        store = FakeProgressStore()
        update = await _tracker(store, 100).on_time_update(99_000)
        assert update.progress.is_completed is False
        assert update.progress.watched_duration_seconds == 99
        assert store.calls[-1]["is_completed"] is None

    async def test_completed_not_reset_by_lower_position(self) -> None:
        store = FakeProgressStore()
        tracker = _tracker(store, 100)
        await tracker.on_playback_stopped(95_000)
        update = await tracker.on_playback_stopped(10_000)
        assert update.progress.is_completed is True
        assert update.progress.watched_duration_seconds == 10

    async def test_watched_duration_is_last_write(self) -> None:
        store = FakeProgressStore()
        tracker = _tracker(store, 100)
        await tracker.on_time_update(50_500)
        update = await tracker.on_time_update(20_000)
        assert update.progress.watched_duration_seconds == 20

    async def test_active_segment_reported(self) -> None:
        segment = Segment(
            id=uuid.uuid4(),
            lesson_id=LESSON_ID,
            start_time_ms=1000,
            end_time_ms=4000,
            text="hello",
            order=0,
        )
        tracker = _tracker(FakeProgressStore(), 100, [segment])
        assert (await tracker.on_time_update(2000)).active_segment == segment
        assert (await tracker.on_time_update(4000)).active_segment is None

    async def test_custom_threshold(self) -> None:
        tracker = ProgressTracker(FakeProgressStore(), LESSON_ID, 100, threshold=0.5)
        update = await tracker.on_playback_stopped(51_000)
        assert update.progress.is_completed is True
