"""
Application Commands (CQRS Write Side)

Command objects and their handlers for write operations.
Commands represent intent to change the system state.
"""

from discord_jukebox.application.commands.play_track import PlayTrackCommand, PlayTrackResult
from discord_jukebox.application.commands.playback_controls import (
    PlaybackAction,
    PlaybackControlCommand,
    PlaybackControlResult,
)
from discord_jukebox.application.commands.remove_tracks import (
    RemoveTracksCommand,
    RemoveTracksResult,
)

__all__ = [
    # Play
    "PlayTrackCommand",
    "PlayTrackResult",
    # Remove
    "RemoveTracksCommand",
    "RemoveTracksResult",
    # Pause / skip / back / disconnect
    "PlaybackAction",
    "PlaybackControlCommand",
    "PlaybackControlResult",
]
