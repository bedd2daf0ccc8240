"""Query for a read-only snapshot of a guild's queue and playback status."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.music.entities import QueuedTrack
from discord_jukebox.domain.music.value_objects import PlaybackStatus
from discord_jukebox.domain.shared.types import DiscordSnowflake, NonNegativeInt

if TYPE_CHECKING:
    from ..services.session_registry import SessionRegistry


class GetQueueQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake


class QueueSnapshot(BaseModel):

    guild_id: DiscordSnowflake
    status: PlaybackStatus = PlaybackStatus.IDLE
    cursor: int | None = None
    current: QueuedTrack | None = None
    upcoming: list[QueuedTrack] = Field(default_factory=list)
    queue_size: NonNegativeInt = 0
    total_duration_seconds: NonNegativeInt = 0
    voice_channel_id: int | None = None

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.status is PlaybackStatus.PAUSED

    @property
    def is_empty(self) -> bool:
        return self.queue_size == 0


class GetQueueHandler:

    def __init__(self, *, session_registry: SessionRegistry) -> None:
        self._registry = session_registry

    async def handle(self, query: GetQueueQuery) -> QueueSnapshot:
        if query.guild_id not in self._registry:
            return QueueSnapshot(guild_id=query.guild_id)

        session = self._registry.get(query.guild_id)
        connection = session.voice_connection

        return QueueSnapshot(
            guild_id=query.guild_id,
            status=session.status,
            cursor=session.cursor,
            current=session.get_current(),
            upcoming=session.upcoming(),
            queue_size=session.queue_size(),
            total_duration_seconds=session.total_duration_seconds,
            voice_channel_id=connection.channel_id if connection else None,
        )
