"""Discord voice transport implementing VoiceTransport over discord.py voice clients."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import discord

from discord_jukebox.application.interfaces.voice_transport import (
    StreamEndCallback,
    VoiceConnection,
    VoiceTransport,
)
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.music.value_objects import StreamOutcome
from discord_jukebox.domain.shared.exceptions import TransportError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0
FADE_IN_SECONDS: float = 0.5
MAX_PREPARED_URLS: int = 32

StreamLocator = Callable[[str], Awaitable[str]]
"""Turns a song's canonical source URL into a direct audio URL."""


@dataclass
class DiscordVoiceConnection(VoiceConnection):
    voice_client: discord.VoiceClient = field(repr=False, kw_only=True)


class DiscordVoiceTransport(VoiceTransport):
    def __init__(
        self,
        bot: discord.Client,
        settings: AudioSettings | None = None,
        *,
        locator: StreamLocator,
        connect_timeout: float = CONNECT_TIMEOUT,
    ) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._volume = self._settings.default_volume
        self._ffmpeg_options = self._settings.ffmpeg_options
        self._locator = locator
        self._connect_timeout = connect_timeout
        # source URL -> located audio URL, consumed by the next stream() of it
        self._prepared: dict[str, str] = {}

    def _get_guild(self, guild_id: int) -> discord.Guild:
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            raise TransportError(ErrorMessages.GUILD_NOT_FOUND.format(guild_id=guild_id), guild_id)
        return guild

    def _get_voice_channel(
        self, guild: discord.Guild, channel_id: int
    ) -> discord.VoiceChannel | discord.StageChannel:
        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise TransportError(
                ErrorMessages.CHANNEL_NOT_VOICE.format(channel_id=channel_id), guild.id
            )
        return channel

    @staticmethod
    def _get_voice_client(connection: VoiceConnection) -> discord.VoiceClient:
        if not isinstance(connection, DiscordVoiceConnection):
            raise TypeError(f"Expected DiscordVoiceConnection, got {type(connection).__name__}")
        vc = connection.voice_client
        if not vc.is_connected():
            raise TransportError(
                ErrorMessages.VOICE_LINK_LOST.format(guild_id=connection.guild_id),
                connection.guild_id,
            )
        return vc

    # === Link lifecycle ===

    async def connect(self, guild_id: int, channel_id: int) -> DiscordVoiceConnection:
        guild = self._get_guild(guild_id)
        channel = self._get_voice_channel(guild, channel_id)

        # A client left over from a dropped link would make channel.connect() fail.
        stale = guild.voice_client
        if isinstance(stale, discord.VoiceClient):
            await stale.disconnect(force=True)

        try:
            async with asyncio.timeout(self._connect_timeout):
                vc = await channel.connect(self_deaf=True)
        except TimeoutError as exc:
            raise TransportError(
                ErrorMessages.VOICE_CONNECT_TIMEOUT.format(channel_id=channel_id), guild_id
            ) from exc
        except discord.Forbidden as exc:
            raise TransportError(
                ErrorMessages.VOICE_NO_PERMISSION.format(channel_id=channel_id), guild_id
            ) from exc
        except (discord.ClientException, discord.HTTPException) as exc:
            raise TransportError(
                ErrorMessages.VOICE_CONNECT_FAILED.format(channel_id=channel_id, error=exc),
                guild_id,
            ) from exc

        await self._ensure_self_deaf(guild, channel)
        logger.info(LogTemplates.VOICE_CONNECTED, channel_id, guild_id)
        return DiscordVoiceConnection(guild_id, channel_id, voice_client=vc)

    async def move_to(
        self, connection: VoiceConnection, channel_id: int
    ) -> DiscordVoiceConnection:
        vc = self._get_voice_client(connection)
        guild = self._get_guild(connection.guild_id)
        channel = self._get_voice_channel(guild, channel_id)

        try:
            async with asyncio.timeout(self._connect_timeout):
                await vc.move_to(channel)
        except TimeoutError as exc:
            raise TransportError(
                ErrorMessages.VOICE_MOVE_TIMEOUT.format(channel_id=channel_id), guild.id
            ) from exc
        except (discord.ClientException, discord.HTTPException) as exc:
            raise TransportError(
                ErrorMessages.VOICE_CONNECT_FAILED.format(channel_id=channel_id, error=exc),
                guild.id,
            ) from exc

        await self._ensure_self_deaf(guild, channel)
        logger.info(LogTemplates.VOICE_MOVED, channel_id)
        return DiscordVoiceConnection(connection.guild_id, channel_id, voice_client=vc)

    async def disconnect(self, connection: VoiceConnection) -> None:
        if not isinstance(connection, DiscordVoiceConnection):
            raise TypeError(f"Expected DiscordVoiceConnection, got {type(connection).__name__}")
        vc = connection.voice_client
        if not vc.is_connected():
            return

        try:
            await vc.disconnect(force=True)
        except (discord.ClientException, discord.HTTPException) as exc:
            raise TransportError(str(exc), connection.guild_id) from exc
        logger.info(LogTemplates.VOICE_DISCONNECTED, connection.guild_id)

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        """Ensure the bot is self-deafened in the guild's current voice connection."""
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except (discord.ClientException, discord.HTTPException) as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    # === Streaming ===

    async def prepare(self, source_url: str) -> None:
        if source_url in self._prepared:
            return
        try:
            audio_url = await self._locator(source_url)
        except TransportError as exc:
            logger.debug(LogTemplates.STREAM_PREPARE_FAILED, source_url, exc)
            return

        if len(self._prepared) >= MAX_PREPARED_URLS:
            self._prepared.pop(next(iter(self._prepared)))
        self._prepared[source_url] = audio_url

    async def stream(
        self,
        connection: VoiceConnection,
        source_url: str,
        on_end: StreamEndCallback,
    ) -> None:
        vc = self._get_voice_client(connection)
        guild_id = connection.guild_id
        audio_url = self._prepared.pop(source_url, None) or await self._locator(source_url)

        if vc.is_playing() or vc.is_paused():
            vc.stop()

        def after_callback(error: Exception | None = None) -> None:
            # Runs on discord.py's audio player thread.
            logger.info(LogTemplates.STREAM_ENDED, guild_id, error)
            on_end(StreamOutcome.ERRORED if error else StreamOutcome.FINISHED)

        try:
            source = discord.FFmpegPCMAudio(
                audio_url,
                before_options=self._ffmpeg_options.get("before_options", ""),
                options=self._ffmpeg_options_with_fade(),
            )
            vc.play(discord.PCMVolumeTransformer(source, volume=self._volume), after=after_callback)
        except discord.ClientException as exc:
            raise TransportError(
                ErrorMessages.STREAM_START_FAILED.format(error=exc), guild_id
            ) from exc

        logger.info(LogTemplates.STREAM_STARTED, source_url, guild_id)

    def _ffmpeg_options_with_fade(self) -> str:
        base_opts = self._ffmpeg_options.get("options", "")
        return f'{base_opts} -af "afade=t=in:ss=0:d={FADE_IN_SECONDS}"'.strip()

    async def pause(self, connection: VoiceConnection) -> None:
        vc = self._get_voice_client(connection)
        if vc.is_playing():
            vc.pause()

    async def resume(self, connection: VoiceConnection) -> None:
        vc = self._get_voice_client(connection)
        if vc.is_paused():
            vc.resume()

    async def stop(self, connection: VoiceConnection) -> None:
        vc = self._get_voice_client(connection)
        if vc.is_playing() or vc.is_paused():
            vc.stop()
