"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PlaybackStatus(Enum):
    """Playback status of a guild session.

    State transitions:
    - IDLE -> PLAYING (play, back)
    - PLAYING -> PAUSED (pause)
    - PAUSED -> PLAYING (play resumes, back restarts)
    - PLAYING -> PLAYING (natural advance, skip)
    - PLAYING/PAUSED -> IDLE (queue ran out, idle disconnect, transport failure)
    """

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"

    @property
    def is_active(self) -> bool:
        """True while a track is loaded on the voice link."""
        return self in {PlaybackStatus.PLAYING, PlaybackStatus.PAUSED}


class TrackOrigin(Enum):
    """Whether a track was requested on its own or expanded from a playlist."""

    SINGLE = "single"
    PLAYLIST = "playlist"


class StreamOutcome(Enum):
    """How an audio stream ended."""

    FINISHED = "finished"
    ERRORED = "errored"


@dataclass(frozen=True)
class AddOptions:
    """Placement options for adding a track to the queue."""

    immediate: bool = False
