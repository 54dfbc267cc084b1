"""Video player port and transcript/playback synchronisation."""

from lesson_assistant.playback.player import (
    EmbeddedPlayer,
    SeekPath,
    VideoPlayer,
    build_embed_url,
    build_seek_url,
)
from lesson_assistant.playback.sync import PlaybackSyncController

__all__ = [
    "EmbeddedPlayer",
    "PlaybackSyncController",
    "SeekPath",
    "VideoPlayer",
    "build_embed_url",
    "build_seek_url",
]
