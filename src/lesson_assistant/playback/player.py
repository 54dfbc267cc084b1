"""Video player port and the embedded-player implementation.

The embedded player is driven two ways. While its control channel is
connected, a seek is a ``{"type": "seek", "time": <seconds>}`` message
to the already-loaded player. Otherwise the embed is reloaded with the
target time in its address and autoplay forced on, so playback resumes
at the new position instead of stalling. Neither path is acknowledged.
"""

from enum import StrEnum
from typing import Any, Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import structlog

from lesson_assistant.errors import ControlChannelError
from lesson_assistant.timecode import ms_to_seconds

logger = structlog.get_logger()

EMBED_DEFAULT_PARAMS: dict[str, str] = {
    "autoplay": "false",
    "loop": "false",
    "muted": "false",
    "preload": "true",
    "responsive": "true",
}


class SeekPath(StrEnum):
    """How a seek command reached the player."""

    LIVE = "live"
    RELOAD = "reload"


class VideoPlayer(Protocol):
    """Anything that can be told to jump to a position."""

    def seek(self, offset_ms: int) -> SeekPath: ...


class ControlChannel(Protocol):
    """Message channel to an already-loaded player (e.g. postMessage)."""

    @property
    def is_connected(self) -> bool: ...

    def send(self, message: dict[str, Any]) -> None: ...


class EmbedSurface(Protocol):
    """The frame hosting the player; loading a URL replaces the player."""

    def load(self, url: str) -> None: ...


def build_embed_url(base_url: str, library_id: str, video_id: str) -> str:
    """Embed address for a video with the default player parameters."""
    query = urlencode(EMBED_DEFAULT_PARAMS)
    return f"{base_url.rstrip('/')}/{library_id}/{video_id}?{query}"


def build_seek_url(embed_url: str, offset_seconds: int) -> str:
    """``<embed_url>&t=<seconds>&autoplay=true``.

    Existing ``t`` and ``autoplay`` parameters are dropped first so the
    reload always starts playing at the requested second.
    """
    parts = urlsplit(embed_url)
    params = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in ("t", "autoplay")
    ]
    params += [("t", str(offset_seconds)), ("autoplay", "true")]
    return urlunsplit(parts._replace(query=urlencode(params)))


class EmbeddedPlayer:
    """VideoPlayer for an iframe-embedded stream.

    Args:
        embed_url: Address the surface was loaded with.
        surface: Host frame, used for the reload path.
        channel: Live control channel, if the page has one.
    """

    def __init__(
        self,
        embed_url: str,
        surface: EmbedSurface,
        channel: ControlChannel | None = None,
    ) -> None:
        self._embed_url = embed_url
        self._surface = surface
        self._channel = channel

    def seek(self, offset_ms: int) -> SeekPath:
        """Jump to ``offset_ms``; returns the path that carried the command."""
        offset_seconds = ms_to_seconds(max(offset_ms, 0))

        if self._channel is not None and self._channel.is_connected:
            try:
                self._channel.send({"type": "seek", "time": offset_seconds})
            except ControlChannelError as exc:
                logger.info("player_live_seek_failed", error=str(exc))
            else:
                logger.debug("player_seek", path=SeekPath.LIVE, seconds=offset_seconds)
                return SeekPath.LIVE

        self._surface.load(build_seek_url(self._embed_url, offset_seconds))
        logger.debug("player_seek", path=SeekPath.RELOAD, seconds=offset_seconds)
        return SeekPath.RELOAD
