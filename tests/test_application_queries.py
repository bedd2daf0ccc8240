"""
Unit Tests for Application Layer Queries

Tests for:
- GetQueueQuery, GetQueueHandler, QueueSnapshot
"""

import pytest
from conftest import GUILD_ID, VOICE_CHANNEL_ID, make_track

from discord_jukebox.application.queries.get_queue import (
    GetQueueHandler,
    GetQueueQuery,
    QueueSnapshot,
)
from discord_jukebox.application.services.session_registry import SessionRegistry
from discord_jukebox.domain.music.value_objects import PlaybackStatus


@pytest.fixture
def registry(transport):
    return SessionRegistry.for_transport(transport, idle_timeout_seconds=0)


@pytest.fixture
def handler(registry):
    return GetQueueHandler(session_registry=registry)


class TestGetQueueHandler:
    async def test_unknown_guild_returns_empty_snapshot(self, handler, registry):
        """Should not create a session just to read it."""
        snapshot = await handler.handle(GetQueueQuery(guild_id=GUILD_ID))

        assert snapshot.is_empty
        assert snapshot.status is PlaybackStatus.IDLE
        assert snapshot.current is None
        assert GUILD_ID not in registry

    async def test_snapshot_of_playing_session(self, handler, registry):
        session = registry.get(GUILD_ID)
        tracks = [make_track(t, duration=60) for t in ("A", "B", "C")]
        for track in tracks:
            await session.add(track)
        await session.connect(VOICE_CHANNEL_ID)
        await session.play()

        snapshot = await handler.handle(GetQueueQuery(guild_id=GUILD_ID))

        assert snapshot.is_playing
        assert snapshot.cursor == 1
        assert snapshot.current == tracks[0]
        assert snapshot.upcoming == tracks[1:]
        assert snapshot.queue_size == 3
        assert snapshot.total_duration_seconds == 180
        assert snapshot.voice_channel_id == VOICE_CHANNEL_ID

    async def test_snapshot_of_paused_session(self, handler, registry):
        session = registry.get(GUILD_ID)
        await session.add(make_track("A"))
        await session.connect(VOICE_CHANNEL_ID)
        await session.play()
        await session.pause()

        snapshot = await handler.handle(GetQueueQuery(guild_id=GUILD_ID))

        assert snapshot.is_paused
        assert not snapshot.is_playing

    async def test_snapshot_without_link(self, handler, registry):
        session = registry.get(GUILD_ID)
        await session.add(make_track("A"))

        snapshot = await handler.handle(GetQueueQuery(guild_id=GUILD_ID))

        assert snapshot.voice_channel_id is None
        assert snapshot.cursor is None
        assert [t.title for t in snapshot.upcoming] == ["A"]


class TestQueueSnapshot:
    def test_defaults(self):
        snapshot = QueueSnapshot(guild_id=GUILD_ID)

        assert snapshot.is_empty
        assert snapshot.upcoming == []
