"""
Unit Tests for DiscordVoiceTransport

Tests for:
- Connecting, moving, and disconnecting voice links
- Mapping discord.py failures onto TransportError
- Self-deafen handling
- Locating audio ahead of a stream
- Starting FFmpeg streams and translating end callbacks
- Pause / resume / stop guards

discord.py objects are replaced by MagicMock(spec=...) stand-ins.
"""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest
from conftest import GUILD_ID, OTHER_VOICE_CHANNEL_ID, VOICE_CHANNEL_ID

from discord_jukebox.application.interfaces.voice_transport import VoiceConnection
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.music.value_objects import StreamOutcome
from discord_jukebox.domain.shared.exceptions import TransportError
from discord_jukebox.infrastructure.discord.adapters.voice_transport import (
    MAX_PREPARED_URLS,
    DiscordVoiceConnection,
    DiscordVoiceTransport,
)

SOURCE_URL = "https://www.youtube.com/watch?v=abc"
AUDIO_URL = "https://rr1.googlevideo.com/videoplayback?id=abc"
MODULE = "discord_jukebox.infrastructure.discord.adapters.voice_transport"


def http_error(cls, status):
    return cls(MagicMock(status=status, reason="error"), "denied")


@pytest.fixture
def voice_client():
    vc = MagicMock(spec=discord.VoiceClient)
    vc.is_connected.return_value = True
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.disconnect = AsyncMock()
    vc.move_to = AsyncMock()
    return vc


@pytest.fixture
def channels(voice_client):
    def make(channel_id):
        channel = MagicMock(spec=discord.VoiceChannel)
        channel.id = channel_id
        channel.connect = AsyncMock(return_value=voice_client)
        return channel

    return {VOICE_CHANNEL_ID: make(VOICE_CHANNEL_ID), OTHER_VOICE_CHANNEL_ID: make(OTHER_VOICE_CHANNEL_ID)}


@pytest.fixture
def guild(channels):
    guild = MagicMock(spec=discord.Guild)
    guild.id = GUILD_ID
    guild.voice_client = None
    guild.get_channel.side_effect = channels.get
    guild.change_voice_state = AsyncMock()
    return guild


@pytest.fixture
def bot(guild):
    bot = MagicMock(spec=discord.Client)
    bot.get_guild.side_effect = lambda gid: guild if gid == GUILD_ID else None
    return bot


@pytest.fixture
def locator():
    return AsyncMock(return_value=AUDIO_URL)


@pytest.fixture
def adapter(bot, locator):
    return DiscordVoiceTransport(bot, AudioSettings(), locator=locator, connect_timeout=0.05)


@pytest.fixture
def connection(voice_client):
    return DiscordVoiceConnection(GUILD_ID, VOICE_CHANNEL_ID, voice_client=voice_client)


# =============================================================================
# Link lifecycle
# =============================================================================


class TestConnect:
    async def test_connect_self_deafened(self, adapter, channels, guild, voice_client):
        connection = await adapter.connect(GUILD_ID, VOICE_CHANNEL_ID)

        assert isinstance(connection, DiscordVoiceConnection)
        assert connection.channel_id == VOICE_CHANNEL_ID
        assert connection.voice_client is voice_client
        channels[VOICE_CHANNEL_ID].connect.assert_awaited_once_with(self_deaf=True)
        guild.change_voice_state.assert_awaited_once_with(
            channel=channels[VOICE_CHANNEL_ID], self_deaf=True
        )

    async def test_unknown_guild(self, adapter):
        with pytest.raises(TransportError, match="is not available"):
            await adapter.connect(GUILD_ID + 1, VOICE_CHANNEL_ID)

    async def test_text_channel_rejected(self, adapter, guild):
        guild.get_channel.side_effect = None
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)

        with pytest.raises(TransportError, match="is not a voice channel"):
            await adapter.connect(GUILD_ID, VOICE_CHANNEL_ID)

    async def test_stale_client_dropped_first(self, adapter, guild):
        stale = MagicMock(spec=discord.VoiceClient)
        stale.disconnect = AsyncMock()
        guild.voice_client = stale

        await adapter.connect(GUILD_ID, VOICE_CHANNEL_ID)

        stale.disconnect.assert_awaited_once_with(force=True)

    async def test_timeout(self, adapter, channels):
        async def hang(**kwargs):
            await asyncio.sleep(5)

        channels[VOICE_CHANNEL_ID].connect.side_effect = hang

        with pytest.raises(TransportError, match="Timed out connecting") as exc_info:
            await adapter.connect(GUILD_ID, VOICE_CHANNEL_ID)

        assert exc_info.value.guild_id == GUILD_ID

    async def test_forbidden(self, adapter, channels):
        channels[VOICE_CHANNEL_ID].connect.side_effect = http_error(discord.Forbidden, 403)

        with pytest.raises(TransportError, match="Missing permission"):
            await adapter.connect(GUILD_ID, VOICE_CHANNEL_ID)

    async def test_client_exception(self, adapter, channels):
        channels[VOICE_CHANNEL_ID].connect.side_effect = discord.ClientException(
            "Already connected to a voice channel."
        )

        with pytest.raises(TransportError, match="Could not connect"):
            await adapter.connect(GUILD_ID, VOICE_CHANNEL_ID)

    async def test_self_deafen_failure_not_fatal(self, adapter, guild):
        guild.change_voice_state.side_effect = discord.ClientException("nope")

        connection = await adapter.connect(GUILD_ID, VOICE_CHANNEL_ID)

        assert connection.channel_id == VOICE_CHANNEL_ID


class TestMoveTo:
    async def test_move(self, adapter, connection, channels, voice_client):
        moved = await adapter.move_to(connection, OTHER_VOICE_CHANNEL_ID)

        voice_client.move_to.assert_awaited_once_with(channels[OTHER_VOICE_CHANNEL_ID])
        assert moved.channel_id == OTHER_VOICE_CHANNEL_ID
        assert moved.voice_client is voice_client

    async def test_move_lost_link(self, adapter, connection, voice_client):
        voice_client.is_connected.return_value = False

        with pytest.raises(TransportError, match="no longer connected"):
            await adapter.move_to(connection, OTHER_VOICE_CHANNEL_ID)

    async def test_move_timeout(self, adapter, connection, voice_client):
        async def hang(channel):
            await asyncio.sleep(5)

        voice_client.move_to.side_effect = hang

        with pytest.raises(TransportError, match="Timed out moving"):
            await adapter.move_to(connection, OTHER_VOICE_CHANNEL_ID)

    async def test_rejects_foreign_connection(self, adapter):
        with pytest.raises(TypeError):
            await adapter.move_to(VoiceConnection(GUILD_ID, VOICE_CHANNEL_ID), OTHER_VOICE_CHANNEL_ID)


class TestDisconnect:
    async def test_disconnect(self, adapter, connection, voice_client):
        await adapter.disconnect(connection)

        voice_client.disconnect.assert_awaited_once_with(force=True)

    async def test_already_dropped_is_noop(self, adapter, connection, voice_client):
        voice_client.is_connected.return_value = False

        await adapter.disconnect(connection)

        voice_client.disconnect.assert_not_awaited()

    async def test_failure_mapped(self, adapter, connection, voice_client):
        voice_client.disconnect.side_effect = discord.ClientException("gone")

        with pytest.raises(TransportError, match="gone"):
            await adapter.disconnect(connection)


# =============================================================================
# Streaming
# =============================================================================


class TestStream:
    @pytest.fixture
    def ffmpeg(self):
        with (
            patch(f"{MODULE}.discord.FFmpegPCMAudio") as audio,
            patch(f"{MODULE}.discord.PCMVolumeTransformer") as volume,
        ):
            yield audio, volume

    async def test_starts_ffmpeg_with_located_url(
        self, adapter, connection, voice_client, locator, ffmpeg
    ):
        audio, volume = ffmpeg

        await adapter.stream(connection, SOURCE_URL, MagicMock())

        locator.assert_awaited_once_with(SOURCE_URL)
        args, kwargs = audio.call_args
        assert args == (AUDIO_URL,)
        assert "-reconnect 1" in kwargs["before_options"]
        assert kwargs["options"].startswith("-vn")
        assert "afade=t=in" in kwargs["options"]
        volume.assert_called_once_with(audio.return_value, volume=0.5)
        voice_client.play.assert_called_once()
        assert voice_client.play.call_args.args == (volume.return_value,)

    @pytest.mark.parametrize(
        ("error", "outcome"),
        [(None, StreamOutcome.FINISHED), (RuntimeError("ffmpeg died"), StreamOutcome.ERRORED)],
    )
    async def test_after_callback_reports_outcome(
        self, adapter, connection, voice_client, ffmpeg, error, outcome
    ):
        on_end = MagicMock()
        await adapter.stream(connection, SOURCE_URL, on_end)

        after = voice_client.play.call_args.kwargs["after"]
        after(error)

        on_end.assert_called_once_with(outcome)

    async def test_replaces_current_stream(self, adapter, connection, voice_client, ffmpeg):
        voice_client.is_playing.return_value = True

        await adapter.stream(connection, SOURCE_URL, MagicMock())

        voice_client.stop.assert_called_once()

    async def test_play_failure(self, adapter, connection, voice_client, ffmpeg):
        voice_client.play.side_effect = discord.ClientException("Already playing audio.")

        with pytest.raises(TransportError, match="Could not start audio stream"):
            await adapter.stream(connection, SOURCE_URL, MagicMock())

    async def test_locator_failure_propagates(self, adapter, connection, voice_client, locator):
        locator.side_effect = TransportError("No playable audio found")

        with pytest.raises(TransportError, match="No playable audio"):
            await adapter.stream(connection, SOURCE_URL, MagicMock())

        voice_client.play.assert_not_called()

    async def test_prepared_url_is_used_once(self, adapter, connection, locator, ffmpeg):
        audio, _ = ffmpeg

        await adapter.prepare(SOURCE_URL)
        await adapter.prepare(SOURCE_URL)
        await adapter.stream(connection, SOURCE_URL, MagicMock())

        locator.assert_awaited_once_with(SOURCE_URL)
        assert audio.call_args.args == (AUDIO_URL,)

        await adapter.stream(connection, SOURCE_URL, MagicMock())
        assert locator.await_count == 2

    async def test_prepare_failure_is_left_to_stream(self, adapter, connection, locator, caplog):
        locator.side_effect = TransportError("No playable audio found")

        with caplog.at_level(logging.DEBUG, logger=MODULE):
            await adapter.prepare(SOURCE_URL)

        assert "Could not locate audio ahead of time" in caplog.text
        with pytest.raises(TransportError, match="No playable audio"):
            await adapter.stream(connection, SOURCE_URL, MagicMock())

    async def test_prepared_urls_are_bounded(self, adapter, locator):
        for i in range(MAX_PREPARED_URLS + 5):
            await adapter.prepare(f"{SOURCE_URL}{i}")

        assert len(adapter._prepared) == MAX_PREPARED_URLS
        assert f"{SOURCE_URL}0" not in adapter._prepared

    async def test_lost_link(self, adapter, connection, voice_client, locator):
        voice_client.is_connected.return_value = False

        with pytest.raises(TransportError):
            await adapter.stream(connection, SOURCE_URL, MagicMock())

        locator.assert_not_awaited()


class TestPlaybackGuards:
    async def test_pause_only_when_playing(self, adapter, connection, voice_client):
        await adapter.pause(connection)
        voice_client.pause.assert_not_called()

        voice_client.is_playing.return_value = True
        await adapter.pause(connection)
        voice_client.pause.assert_called_once()

    async def test_resume_only_when_paused(self, adapter, connection, voice_client):
        await adapter.resume(connection)
        voice_client.resume.assert_not_called()

        voice_client.is_paused.return_value = True
        await adapter.resume(connection)
        voice_client.resume.assert_called_once()

    async def test_stop_when_paused(self, adapter, connection, voice_client):
        voice_client.is_paused.return_value = True

        await adapter.stop(connection)

        voice_client.stop.assert_called_once()
