"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from discord_jukebox.application.interfaces.song_resolver import ResolveResult, SongResolver
from discord_jukebox.application.interfaces.voice_transport import (
    VoiceConnection,
    VoiceTransport,
)

__all__ = [
    "ResolveResult",
    "SongResolver",
    "VoiceConnection",
    "VoiceTransport",
]
