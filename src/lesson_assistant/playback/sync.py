"""Keep transcript highlight and video position in step."""

from collections.abc import Callable, Sequence

import structlog

from lesson_assistant.playback.player import SeekPath, VideoPlayer
from lesson_assistant.transcript.resolver import resolve_active_segment
from lesson_assistant.transcript.segments import Segment

logger = structlog.get_logger()

SegmentListener = Callable[[Segment], None]


class PlaybackSyncController:
    """Bridges transcript intents and the video player.

    Click-to-seek goes out through the player port. Time updates come
    back in and are resolved to the active segment; listeners hear about
    it only when it changes. Landing in a gap is remembered but not
    announced, so the last highlight stays until a new segment starts.
    """

    def __init__(self, player: VideoPlayer, segments: Sequence[Segment]) -> None:
        self._player = player
        self._segments = list(segments)
        self._active: Segment | None = None
        self._listeners: list[SegmentListener] = []

    @property
    def active_segment(self) -> Segment | None:
        return self._active

    def subscribe(self, listener: SegmentListener) -> Callable[[], None]:
        """Register for "segment became active"; returns an unsubscribe hook."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def on_time_update(self, position_ms: int) -> Segment | None:
        """Resolve the active segment for a playback time update."""
        segment = resolve_active_segment(self._segments, position_ms)
        previous_id = self._active.id if self._active is not None else None
        current_id = segment.id if segment is not None else None
        self._active = segment

        if segment is not None and current_id != previous_id:
            logger.debug(
                "active_segment_changed",
                segment_id=str(segment.id),
                position_ms=position_ms,
            )
            for listener in list(self._listeners):
                listener(segment)
        return segment

    def seek(self, offset_ms: int) -> SeekPath:
        """Send the player to ``offset_ms`` and move the highlight with it."""
        path = self._player.seek(offset_ms)
        self.on_time_update(offset_ms)
        return path

    def seek_to_segment(self, segment: Segment) -> SeekPath:
        """Click-to-seek on a transcript segment."""
        return self.seek(segment.start_time_ms)
