"""Command and handler for pause, skip, back (unskip), and disconnect."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from discord_jukebox.domain.music.entities import QueuedTrack
from discord_jukebox.domain.music.value_objects import PlaybackStatus
from discord_jukebox.domain.shared.exceptions import (
    NoHistoryError,
    NotConnectedError,
    NotPlayingError,
    TransportError,
)
from discord_jukebox.domain.shared.messages import UIMessages
from discord_jukebox.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.session import GuildSession
    from ..services.session_registry import SessionRegistry


class PlaybackAction(Enum):
    PAUSE = "pause"
    SKIP = "skip"
    BACK = "back"
    DISCONNECT = "disconnect"


class PlaybackControlStatus(Enum):
    """Status codes for playback control results."""

    SUCCESS = "success"
    NOT_PLAYING = "not_playing"
    NO_HISTORY = "no_history"
    NOT_CONNECTED = "not_connected"
    VOICE_ERROR = "voice_error"


class PlaybackControlCommand(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    action: PlaybackAction
    # Voice channel to join when ``back`` finds the session disconnected.
    voice_channel_id: DiscordSnowflake | None = None


class PlaybackControlResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: PlaybackControlStatus
    message: str
    track: QueuedTrack | None = None

    @property
    def is_success(self) -> bool:
        return self.status == PlaybackControlStatus.SUCCESS

    @classmethod
    def success(cls, message: str, track: QueuedTrack | None = None) -> PlaybackControlResult:
        return cls(status=PlaybackControlStatus.SUCCESS, message=message, track=track)

    @classmethod
    def error(cls, status: PlaybackControlStatus, message: str) -> PlaybackControlResult:
        return cls(status=status, message=message)


class PlaybackControlHandler:
    """Applies a playback action to a guild session and reports the outcome."""

    def __init__(self, *, session_registry: SessionRegistry) -> None:
        self._registry = session_registry

    async def handle(self, command: PlaybackControlCommand) -> PlaybackControlResult:
        session = self._registry.get(command.guild_id)

        try:
            if command.action is PlaybackAction.PAUSE:
                return await self._pause(session)
            if command.action is PlaybackAction.SKIP:
                return await self._skip(session)
            if command.action is PlaybackAction.BACK:
                return await self._back(session, command.voice_channel_id)
            return await self._disconnect(session)
        except NotPlayingError:
            return PlaybackControlResult.error(
                PlaybackControlStatus.NOT_PLAYING, UIMessages.NOT_PLAYING
            )
        except NoHistoryError:
            return PlaybackControlResult.error(
                PlaybackControlStatus.NO_HISTORY, UIMessages.NO_HISTORY
            )
        except NotConnectedError:
            return PlaybackControlResult.error(
                PlaybackControlStatus.NOT_CONNECTED, UIMessages.NOT_CONNECTED
            )
        except TransportError as exc:
            return PlaybackControlResult.error(
                PlaybackControlStatus.VOICE_ERROR,
                UIMessages.VOICE_ERROR.format(error=exc.message),
            )

    async def _pause(self, session: GuildSession) -> PlaybackControlResult:
        if session.status is PlaybackStatus.PAUSED:
            return PlaybackControlResult.success(UIMessages.ALREADY_PAUSED, session.get_current())
        await session.pause()
        return PlaybackControlResult.success(UIMessages.PAUSED, session.get_current())

    async def _skip(self, session: GuildSession) -> PlaybackControlResult:
        track = await session.skip()
        if track is None:
            return PlaybackControlResult.success(UIMessages.SKIPPED_TO_END)
        return PlaybackControlResult.success(UIMessages.SKIPPED, track)

    async def _back(
        self, session: GuildSession, voice_channel_id: int | None
    ) -> PlaybackControlResult:
        has_history = session.cursor is not None and session.cursor > 1
        if has_history and voice_channel_id is not None and session.voice_connection is None:
            await session.connect(voice_channel_id)
        track = await session.back()
        return PlaybackControlResult.success(UIMessages.BACK, track)

    async def _disconnect(self, session: GuildSession) -> PlaybackControlResult:
        if not await session.disconnect():
            return PlaybackControlResult.error(
                PlaybackControlStatus.NOT_CONNECTED, UIMessages.NOT_CONNECTED
            )
        return PlaybackControlResult.success(UIMessages.DISCONNECTED)
