"""Dependency Injection Container

Wires the song resolver, the Discord voice transport, the per-guild session
registry, and the command/query handlers. Components are created on first
access and cached for the life of the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.commands.play_track import PlayTrackHandler
    from ..application.commands.playback_controls import PlaybackControlHandler
    from ..application.commands.remove_tracks import RemoveTracksHandler
    from ..application.interfaces.song_resolver import SongResolver
    from ..application.interfaces.voice_transport import VoiceTransport
    from ..application.queries.get_queue import GetQueueHandler
    from ..application.services.session_registry import SessionRegistry
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. The voice
    transport needs the bot, so ``set_bot`` must be called before it (or
    anything depending on it) is requested.
    """

    settings: Settings
    _bot: Bot | None = None

    # Infrastructure adapters
    _song_resolver: SongResolver | None = None
    _voice_transport: VoiceTransport | None = None

    # Application services
    _session_registry: SessionRegistry | None = None

    # Handlers
    _play_track_handler: PlayTrackHandler | None = None
    _remove_tracks_handler: RemoveTracksHandler | None = None
    _playback_control_handler: PlaybackControlHandler | None = None
    _get_queue_handler: GetQueueHandler | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Infrastructure Adapters ===

    @property
    def song_resolver(self) -> SongResolver:
        if self._song_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpSongResolver

            self._song_resolver = YtDlpSongResolver(self.settings.audio)
        return self._song_resolver

    @property
    def voice_transport(self) -> VoiceTransport:
        if self._voice_transport is None:
            from ..infrastructure.discord.adapters.voice_transport import DiscordVoiceTransport

            self._voice_transport = DiscordVoiceTransport(
                self.bot,
                self.settings.audio,
                locator=self.song_resolver.stream_url,
                connect_timeout=self.settings.player.connect_timeout_seconds,
            )
        return self._voice_transport

    # === Sessions ===

    @property
    def session_registry(self) -> SessionRegistry:
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry.for_transport(
                self.voice_transport,
                idle_timeout_seconds=self.settings.player.idle_timeout_seconds,
            )
        return self._session_registry

    # === Command Handlers ===

    @property
    def play_track_handler(self) -> PlayTrackHandler:
        if self._play_track_handler is None:
            from ..application.commands.play_track import PlayTrackHandler

            self._play_track_handler = PlayTrackHandler(
                session_registry=self.session_registry,
                song_resolver=self.song_resolver,
            )
        return self._play_track_handler

    @property
    def remove_tracks_handler(self) -> RemoveTracksHandler:
        if self._remove_tracks_handler is None:
            from ..application.commands.remove_tracks import RemoveTracksHandler

            self._remove_tracks_handler = RemoveTracksHandler(
                session_registry=self.session_registry,
            )
        return self._remove_tracks_handler

    @property
    def playback_control_handler(self) -> PlaybackControlHandler:
        if self._playback_control_handler is None:
            from ..application.commands.playback_controls import PlaybackControlHandler

            self._playback_control_handler = PlaybackControlHandler(
                session_registry=self.session_registry,
            )
        return self._playback_control_handler

    # === Query Handlers ===

    @property
    def get_queue_handler(self) -> GetQueueHandler:
        if self._get_queue_handler is None:
            from ..application.queries.get_queue import GetQueueHandler

            self._get_queue_handler = GetQueueHandler(
                session_registry=self.session_registry,
            )
        return self._get_queue_handler

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Release every held voice link."""
        if self._session_registry is not None:
            await self._session_registry.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
