"""
Music Bounded Context

Domain logic for tracks, the playback queue, and its cursor.
"""

from discord_jukebox.domain.music.entities import QueuedTrack, ResolvedSong
from discord_jukebox.domain.music.queue import PlaybackQueue
from discord_jukebox.domain.music.value_objects import (
    AddOptions,
    PlaybackStatus,
    StreamOutcome,
    TrackOrigin,
)

__all__ = [
    # Entities
    "ResolvedSong",
    "QueuedTrack",
    "PlaybackQueue",
    # Value Objects
    "AddOptions",
    "PlaybackStatus",
    "StreamOutcome",
    "TrackOrigin",
]
