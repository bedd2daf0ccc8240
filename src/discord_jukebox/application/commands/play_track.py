"""Command and handler for queuing songs from a query or URL and starting playback."""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from discord_jukebox.domain.music.entities import QueuedTrack
from discord_jukebox.domain.music.value_objects import AddOptions, PlaybackStatus
from discord_jukebox.domain.shared.exceptions import StateError, TransportError
from discord_jukebox.domain.shared.messages import LogTemplates, UIMessages
from discord_jukebox.domain.shared.types import DiscordSnowflake, NonEmptyStr, PlaylistLimit

if TYPE_CHECKING:
    from ..interfaces.song_resolver import ResolveResult, SongResolver
    from ..services.session import GuildSession
    from ..services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

IMMEDIATE_FLAGS = frozenset({"i", "immediate"})
SHUFFLE_FLAGS = frozenset({"s", "shuffle"})


class PlayTrackStatus(Enum):
    """Status codes for play results."""

    NOW_PLAYING = "now_playing"
    QUEUED = "queued"
    RESUMED = "resumed"
    ALREADY_PLAYING = "already_playing"
    NOTHING_TO_PLAY = "nothing_to_play"
    NOT_FOUND = "not_found"
    VOICE_ERROR = "voice_error"


class PlayTrackCommand(BaseModel):
    """Request to queue songs (or resume playback when ``query`` is None)."""

    model_config = ConfigDict(frozen=True, strict=True)

    guild_id: DiscordSnowflake
    text_channel_id: DiscordSnowflake
    voice_channel_id: DiscordSnowflake
    user_id: DiscordSnowflake
    query: NonEmptyStr | None = None

    immediate: bool = False
    shuffle: bool = False
    playlist_limit: PlaylistLimit = 50

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v

    @classmethod
    def from_args(cls, args: Sequence[str], **fields: Any) -> PlayTrackCommand:
        """Build a command from chat arguments, peeling off a trailing placement flag."""
        words = list(args)
        immediate = shuffle = False

        if words and words[-1].lower() in IMMEDIATE_FLAGS:
            immediate = True
            words.pop()
        elif words and words[-1].lower() in SHUFFLE_FLAGS:
            shuffle = True
            words.pop()

        return cls(query=" ".join(words), immediate=immediate, shuffle=shuffle, **fields)


class PlayTrackResult(BaseModel):
    """Result of a play command."""

    model_config = ConfigDict(frozen=True)

    status: PlayTrackStatus
    message: str
    tracks: list[QueuedTrack] = Field(default_factory=list)
    started_playing: bool = False

    @property
    def is_success(self) -> bool:
        return self.status in {
            PlayTrackStatus.NOW_PLAYING,
            PlayTrackStatus.QUEUED,
            PlayTrackStatus.RESUMED,
        }

    @classmethod
    def error(
        cls, status: PlayTrackStatus, message: str, tracks: list[QueuedTrack] | None = None
    ) -> PlayTrackResult:
        return cls(status=status, message=message, tracks=tracks or [])


class PlayTrackHandler:
    """Resolves songs, queues them for the requester, and starts playback when idle."""

    def __init__(self, *, session_registry: SessionRegistry, song_resolver: SongResolver) -> None:
        self._registry = session_registry
        self._resolver = song_resolver

    async def handle(self, command: PlayTrackCommand) -> PlayTrackResult:
        session = self._registry.get(command.guild_id)
        had_song = session.get_current() is not None

        if command.query is None:
            return await self._resume(session, command, had_song)

        # Resolution is slow network I/O; it happens before touching the session.
        result = await self._resolver.resolve(command.query, playlist_limit=command.playlist_limit)
        if result.is_empty:
            message = UIMessages.PLAY_NO_SONGS if result.total > 1 else UIMessages.PLAY_NOT_FOUND
            return PlayTrackResult.error(PlayTrackStatus.NOT_FOUND, message)

        songs = list(result.songs)
        if command.shuffle:
            random.shuffle(songs)

        tracks = [
            song.to_queued(
                requested_by=command.user_id, added_in_channel_id=command.text_channel_id
            )
            for song in songs
        ]
        await session.add_many(tracks, AddOptions(immediate=command.immediate))

        started = False
        if session.status is PlaybackStatus.IDLE:
            try:
                await session.connect(command.voice_channel_id)
                await session.play()
                started = True
            except TransportError as exc:
                return PlayTrackResult.error(
                    PlayTrackStatus.VOICE_ERROR,
                    UIMessages.VOICE_ERROR.format(error=exc.message),
                    tracks,
                )
            except StateError:
                logger.warning(LogTemplates.PLAY_START_SKIPPED, command.guild_id, exc_info=True)

        return PlayTrackResult(
            status=PlayTrackStatus.NOW_PLAYING if started else PlayTrackStatus.QUEUED,
            message=self._added_message(command, tracks, result, resumed=started and had_song),
            tracks=tracks,
            started_playing=started,
        )

    async def _resume(
        self, session: GuildSession, command: PlayTrackCommand, had_song: bool
    ) -> PlayTrackResult:
        if session.status is PlaybackStatus.PLAYING:
            return PlayTrackResult.error(
                PlayTrackStatus.ALREADY_PLAYING, UIMessages.PLAY_ALREADY_PLAYING
            )
        if not had_song:
            return PlayTrackResult.error(
                PlayTrackStatus.NOTHING_TO_PLAY, UIMessages.PLAY_NOTHING_TO_PLAY
            )

        try:
            await session.connect(command.voice_channel_id)
            track = await session.play()
        except TransportError as exc:
            return PlayTrackResult.error(
                PlayTrackStatus.VOICE_ERROR, UIMessages.VOICE_ERROR.format(error=exc.message)
            )
        except StateError:
            return PlayTrackResult.error(
                PlayTrackStatus.NOTHING_TO_PLAY, UIMessages.PLAY_NOTHING_TO_PLAY
            )

        return PlayTrackResult(
            status=PlayTrackStatus.RESUMED,
            message=UIMessages.PLAY_RESUMED,
            tracks=[track],
            started_playing=True,
        )

    @staticmethod
    def _added_message(
        command: PlayTrackCommand,
        tracks: list[QueuedTrack],
        result: ResolveResult,
        *,
        resumed: bool,
    ) -> str:
        details: list[str] = []
        if result.was_sampled:
            details.append(UIMessages.PLAY_SAMPLED.format(limit=command.playlist_limit))
        if result.not_found == 1:
            details.append(UIMessages.PLAY_ONE_NOT_FOUND)
        elif result.not_found > 1:
            details.append(UIMessages.PLAY_MANY_NOT_FOUND.format(count=result.not_found))

        notes = [UIMessages.PLAY_RESUMING] if resumed else []
        if details:
            notes.append(" and ".join(details))
        extra = f" ({', '.join(notes)})" if notes else ""

        first = tracks[0]
        if len(tracks) == 1:
            front = UIMessages.PLAY_FRONT_OF if command.immediate else ""
            return UIMessages.PLAY_ADDED_ONE.format(title=first.title, front=front, extra=extra)
        return UIMessages.PLAY_ADDED_MANY.format(
            title=first.title, others=len(tracks) - 1, extra=extra
        )
