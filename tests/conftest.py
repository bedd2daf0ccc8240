from __future__ import annotations

import itertools

import pytest

from discord_jukebox.application.interfaces.voice_transport import (
    StreamEndCallback,
    VoiceConnection,
    VoiceTransport,
)
from discord_jukebox.domain.music.entities import QueuedTrack, ResolvedSong
from discord_jukebox.domain.music.value_objects import StreamOutcome, TrackOrigin
from discord_jukebox.domain.shared.exceptions import TransportError

GUILD_ID = 111111111111111111
TEXT_CHANNEL_ID = 222222222222222222
VOICE_CHANNEL_ID = 333333333333333333
OTHER_VOICE_CHANNEL_ID = 444444444444444444
USER_ID = 555555555555555555


# ============================================================================
# Fake Voice Transport
# ============================================================================


class FakeVoiceTransport(VoiceTransport):
    """In-memory voice transport that records every call.

    Set ``fail_on`` to an operation name ("connect", "stream", "stop", ...)
    to make that operation raise ``TransportError``. ``finish()`` and
    ``error()`` fire the end callback of the latest stream. ``prepare`` calls
    are recorded in ``prepared`` rather than ``calls``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()
        self.streamed: list[str] = []
        self.callbacks: list[StreamEndCallback] = []
        self.connected: VoiceConnection | None = None
        self.paused = False
        self.prepared: list[str] = []

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise TransportError(f"{operation} failed")

    async def connect(self, guild_id: int, channel_id: int) -> VoiceConnection:
        self.calls.append(("connect", guild_id, channel_id))
        self._maybe_fail("connect")
        self.connected = VoiceConnection(guild_id, channel_id)
        return self.connected

    async def move_to(self, connection: VoiceConnection, channel_id: int) -> VoiceConnection:
        self.calls.append(("move_to", channel_id))
        self._maybe_fail("move_to")
        self.connected = VoiceConnection(connection.guild_id, channel_id)
        return self.connected

    async def disconnect(self, connection: VoiceConnection) -> None:
        self.calls.append(("disconnect", connection.channel_id))
        self._maybe_fail("disconnect")
        self.connected = None

    async def prepare(self, source_url: str) -> None:
        self.prepared.append(source_url)

    async def stream(
        self, connection: VoiceConnection, source_url: str, on_end: StreamEndCallback
    ) -> None:
        self.calls.append(("stream", source_url))
        self._maybe_fail("stream")
        self.streamed.append(source_url)
        self.callbacks.append(on_end)
        self.paused = False

    async def pause(self, connection: VoiceConnection) -> None:
        self.calls.append(("pause",))
        self._maybe_fail("pause")
        self.paused = True

    async def resume(self, connection: VoiceConnection) -> None:
        self.calls.append(("resume",))
        self._maybe_fail("resume")
        self.paused = False

    async def stop(self, connection: VoiceConnection) -> None:
        self.calls.append(("stop",))
        self._maybe_fail("stop")

    # --- test helpers ---

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]

    def finish(self, index: int = -1) -> None:
        self.callbacks[index](StreamOutcome.FINISHED)

    def error(self, index: int = -1) -> None:
        self.callbacks[index](StreamOutcome.ERRORED)


@pytest.fixture
def transport() -> FakeVoiceTransport:
    return FakeVoiceTransport()


# ============================================================================
# Track Factories
# ============================================================================

_counter = itertools.count(1)


def make_song(
    title: str | None = None,
    *,
    duration: int = 180,
    origin: TrackOrigin = TrackOrigin.SINGLE,
    playlist_title: str | None = None,
    is_live: bool = False,
) -> ResolvedSong:
    n = next(_counter)
    return ResolvedSong(
        title=title or f"Song {n}",
        source_url=f"https://www.youtube.com/watch?v=song{n:07d}",
        duration_seconds=duration,
        artist="Test Artist",
        origin=origin,
        playlist_title=playlist_title,
        is_live=is_live,
    )


def make_track(title: str | None = None, **kwargs) -> QueuedTrack:
    return make_song(title, **kwargs).to_queued(
        requested_by=USER_ID, added_in_channel_id=TEXT_CHANNEL_ID
    )


@pytest.fixture
def track_factory():
    """Return the ``make_track`` factory for building queued tracks."""
    return make_track


@pytest.fixture
def sample_track() -> QueuedTrack:
    return make_track("Test Track")
