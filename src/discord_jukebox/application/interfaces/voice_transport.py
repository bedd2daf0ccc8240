"""Port interface for the exclusive audio link to a guild's voice channel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from discord_jukebox.domain.music.value_objects import StreamOutcome
from discord_jukebox.domain.shared.types import ChannelIdField, GuildIdField

StreamEndCallback = Callable[[StreamOutcome], None]
"""Called exactly once when a stream ends. May be invoked from a non-event-loop thread."""


@dataclass
class VoiceConnection:
    """Handle for one held voice link. Adapters may subclass it to carry client state."""

    guild_id: int
    channel_id: int


class VoiceTransport(ABC):
    """Interface for opening, holding, and streaming over a voice link.

    Every failure is reported by raising ``TransportError``.
    """

    @abstractmethod
    async def connect(self, guild_id: GuildIdField, channel_id: ChannelIdField) -> VoiceConnection:
        """Open a link to a voice channel."""
        ...

    @abstractmethod
    async def move_to(
        self, connection: VoiceConnection, channel_id: ChannelIdField
    ) -> VoiceConnection:
        """Move an existing link to another channel of the same guild."""
        ...

    @abstractmethod
    async def disconnect(self, connection: VoiceConnection) -> None:
        """Release a link. Releasing an already-dropped link is not an error."""
        ...

    async def prepare(self, source_url: str) -> None:
        """Do the slow lookup ``stream`` needs for ``source_url`` ahead of time.

        Called without the session lock held. Failures are left for
        ``stream`` to report.
        """
        return None

    @abstractmethod
    async def stream(
        self,
        connection: VoiceConnection,
        source_url: str,
        on_end: StreamEndCallback,
    ) -> None:
        """Start streaming ``source_url``, replacing whatever the link was playing.

        Returns once audio has started. ``on_end`` fires when the stream
        finishes, errors, or is stopped.
        """
        ...

    @abstractmethod
    async def pause(self, connection: VoiceConnection) -> None:
        ...

    @abstractmethod
    async def resume(self, connection: VoiceConnection) -> None:
        ...

    @abstractmethod
    async def stop(self, connection: VoiceConnection) -> None:
        """Stop the current stream, keeping the link open."""
        ...
