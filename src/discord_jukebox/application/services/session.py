"""Guild Session - one guild's playback state machine and voice link."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ...domain.music.queue import PlaybackQueue
from ...domain.music.value_objects import AddOptions, PlaybackStatus, StreamOutcome
from ...domain.shared.exceptions import (
    NoHistoryError,
    NotConnectedError,
    NothingToPlayError,
    NotPlayingError,
    TransportError,
)
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.music.entities import QueuedTrack
    from ..interfaces.voice_transport import StreamEndCallback, VoiceConnection, VoiceTransport

logger = logging.getLogger(__name__)


class GuildSession:
    """Owns a guild's queue, playback status, and its single voice link.

    Every state transition runs under one ``asyncio.Lock`` so commands
    arriving together for the same guild never interleave. Transport calls
    that start, stop, or move the stream are made while holding it; the slow
    audio lookup for the next stream is done through ``prepare`` beforehand.
    """

    def __init__(
        self,
        guild_id: int,
        *,
        transport: VoiceTransport,
        idle_timeout_seconds: float = 300.0,
    ) -> None:
        self.guild_id = guild_id
        self._transport = transport
        self._idle_timeout = idle_timeout_seconds

        self._queue = PlaybackQueue()
        self._status = PlaybackStatus.IDLE
        self._connection: VoiceConnection | None = None
        self._lock = asyncio.Lock()

        self._idle_task: asyncio.Task[None] | None = None
        self._end_tasks: set[asyncio.Task[None]] = set()

        # Bumped whenever the session replaces or stops a stream itself, so the
        # end notification of the superseded stream is ignored.
        self._stream_generation = 0

        # The track at the cursor was cut off (link dropped mid-track); the
        # next play() restarts it instead of advancing.
        self._resume_current = False

    # === Read-only views ===

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def voice_connection(self) -> VoiceConnection | None:
        return self._connection

    @property
    def cursor(self) -> int | None:
        return self._queue.cursor

    @property
    def tracks(self) -> tuple[QueuedTrack, ...]:
        return tuple(self._queue.tracks)

    @property
    def total_duration_seconds(self) -> int:
        return self._queue.total_duration_seconds

    def queue_size(self) -> int:
        return self._queue.size

    def get_current(self) -> QueuedTrack | None:
        return self._queue.current

    def upcoming(self) -> list[QueuedTrack]:
        return self._queue.upcoming

    # === Queue mutation ===

    async def add(self, track: QueuedTrack, options: AddOptions | None = None) -> int:
        """Queue a track without starting playback and return its position."""
        async with self._lock:
            position = self._queue.add(track, options)
        logger.info(LogTemplates.QUEUE_ADDED, track.title, position, self.guild_id)
        return position

    async def add_many(
        self, tracks: list[QueuedTrack], options: AddOptions | None = None
    ) -> list[int]:
        """Queue a batch under one lock hold so no other addition lands inside it.

        Each track is placed exactly as ``add`` would place it; the returned
        positions are those at insertion time.
        """
        async with self._lock:
            positions = [self._queue.add(track, options) for track in tracks]

        for track, position in zip(tracks, positions):
            logger.info(LogTemplates.QUEUE_ADDED, track.title, position, self.guild_id)
        return positions

    async def remove_range(self, start: int, count: int) -> list[QueuedTrack]:
        """Remove ``count`` tracks from one-based ``start``.

        Raises ``QueueRangeError`` without touching the queue when the range
        does not fit. Removing the track being streamed moves playback on to
        whatever followed the removed block.
        """
        async with self._lock:
            covers_cursor = self._queue.covers_cursor(start, count)
            removed = self._queue.remove_range(start, count)
            logger.info(LogTemplates.QUEUE_REMOVED, count, start, self.guild_id)

            if covers_cursor:
                # A block starting at 1 clamps the cursor onto the track that
                # followed it, which has not been played yet.
                self._resume_current = start == 1 and not self._queue.is_empty
                if self._status.is_active:
                    self._status = PlaybackStatus.IDLE
                    await self._stop_stream("remove")
                    if self._resume_current:
                        await self._start_stream(self._queue.cursor or 1)
                    else:
                        await self._advance()

        return removed

    # === Playback control ===

    async def connect(self, channel_id: int) -> VoiceConnection:
        """Hold a voice link to ``channel_id``, opening or moving it as needed."""
        async with self._lock:
            if self._connection is None:
                try:
                    self._connection = await self._transport.connect(self.guild_id, channel_id)
                except TransportError as exc:
                    await self._release_after_failure("connect", exc)
                    raise
                logger.info(LogTemplates.SESSION_CONNECTED, self.guild_id, channel_id)
                if self._status is PlaybackStatus.IDLE:
                    self._arm_idle_timer()
            elif self._connection.channel_id != channel_id:
                try:
                    self._connection = await self._transport.move_to(self._connection, channel_id)
                except TransportError as exc:
                    await self._release_after_failure("connect", exc)
                    raise
                logger.info(LogTemplates.SESSION_MOVED, self.guild_id, channel_id)

            return self._connection

    async def play(self) -> QueuedTrack:
        """Resume a paused track or start streaming the next one.

        With nothing left after the cursor, the track at the cursor is
        streamed again.
        """
        if self._status is PlaybackStatus.IDLE:
            await self._prepare(self._start_position())
        async with self._lock:
            if self._status is PlaybackStatus.PAUSED:
                return await self._resume()

            current = self._queue.current
            if self._status is PlaybackStatus.PLAYING and current is not None:
                return current

            if self._queue.is_empty:
                raise NothingToPlayError(self._status.value)
            if self._connection is None:
                raise NotConnectedError("play", self._status.value)

            return await self._start_stream(self._start_position())

    async def pause(self) -> None:
        async with self._lock:
            if self._status is PlaybackStatus.PAUSED:
                return
            if self._status is PlaybackStatus.IDLE or self._connection is None:
                raise NotPlayingError("pause", self._status.value)

            try:
                await self._transport.pause(self._connection)
            except TransportError as exc:
                await self._release_after_failure("pause", exc)
                raise

            self._status = PlaybackStatus.PAUSED
            self._arm_idle_timer()
            logger.info(LogTemplates.PLAYBACK_PAUSED, self.guild_id)

    async def back(self) -> QueuedTrack:
        """Rewind the cursor by one and stream that track; forward tracks stay queued."""
        await self._prepare(self._queue.previous_position())
        async with self._lock:
            position = self._queue.previous_position()
            if position is None:
                raise NoHistoryError(self._status.value)
            if self._connection is None:
                raise NotConnectedError("back", self._status.value)

            track = await self._start_stream(position)
            logger.info(LogTemplates.TRACK_BACK, track.title, position, self.guild_id)
            return track

    async def skip(self) -> QueuedTrack | None:
        """End the current track early and advance; returns the new track or None."""
        await self._prepare(self._queue.next_position())
        async with self._lock:
            skipped = self._queue.current
            if not self._status.is_active or skipped is None:
                raise NotPlayingError("skip", self._status.value)

            self._status = PlaybackStatus.IDLE
            self._resume_current = False
            if not self._queue.has_next:
                await self._stop_stream("skip")
            track = await self._advance()

        logger.info(LogTemplates.TRACK_SKIPPED, skipped.title, self.guild_id)
        return track

    async def disconnect(self) -> bool:
        """Release the voice link now. Returns False when no link was held."""
        async with self._lock:
            if self._connection is None:
                return False

            connection = self._forget_connection()
            await self._transport.disconnect(connection)
            logger.info(LogTemplates.SESSION_DISCONNECTED, self.guild_id)
            return True

    async def close(self) -> None:
        """Release the link on shutdown, logging rather than raising transport errors."""
        async with self._lock:
            await self._drop_connection()

    async def wait_until_settled(self) -> None:
        """Wait for pending stream-end handling to finish."""
        while self._end_tasks:
            await asyncio.gather(*tuple(self._end_tasks), return_exceptions=True)

    # === Internal transitions (lock held) ===

    async def _resume(self) -> QueuedTrack:
        assert self._connection is not None
        current = self._queue.current
        assert current is not None

        try:
            await self._transport.resume(self._connection)
        except TransportError as exc:
            await self._release_after_failure("play", exc)
            raise

        self._status = PlaybackStatus.PLAYING
        self._cancel_idle_timer()
        logger.info(LogTemplates.PLAYBACK_RESUMED, self.guild_id)
        return current

    def _start_position(self) -> int:
        if not self._resume_current:
            position = self._queue.next_position()
            if position is not None:
                return position
        return self._queue.cursor or 1

    async def _prepare(self, position: int | None) -> None:
        """Let the transport locate the audio at ``position`` before the lock is taken."""
        if position is None or self._connection is None or position > self._queue.size:
            return
        await self._transport.prepare(self._queue.track_at(position).source_url)

    async def _start_stream(self, position: int) -> QueuedTrack:
        """Stream the track at ``position``; the cursor only moves once the transport accepts it."""
        assert self._connection is not None
        track = self._queue.track_at(position)

        self._stream_generation += 1
        on_end = self._stream_end_callback(self._stream_generation)

        try:
            await self._transport.stream(self._connection, track.source_url, on_end)
        except TransportError as exc:
            await self._release_after_failure("play", exc)
            raise

        self._queue.seek(position)
        self._status = PlaybackStatus.PLAYING
        self._resume_current = False
        self._cancel_idle_timer()
        logger.info(LogTemplates.TRACK_STARTED, track.title, position, self.guild_id)
        return track

    async def _advance(self) -> QueuedTrack | None:
        position = self._queue.next_position()
        if position is None:
            self._status = PlaybackStatus.IDLE
            self._arm_idle_timer()
            logger.info(LogTemplates.QUEUE_FINISHED, self.guild_id)
            return None
        return await self._start_stream(position)

    async def _stop_stream(self, operation: str) -> None:
        if self._connection is None:
            return
        self._stream_generation += 1
        try:
            await self._transport.stop(self._connection)
        except TransportError as exc:
            await self._release_after_failure(operation, exc)
            raise

    def _forget_connection(self) -> VoiceConnection:
        assert self._connection is not None
        if self._status.is_active:
            self._resume_current = True
        connection = self._connection
        self._connection = None
        self._status = PlaybackStatus.IDLE
        self._stream_generation += 1
        self._cancel_idle_timer()
        return connection

    async def _drop_connection(self) -> None:
        if self._connection is None:
            self._status = PlaybackStatus.IDLE
            return

        connection = self._forget_connection()
        try:
            await self._transport.disconnect(connection)
            logger.info(LogTemplates.SESSION_DISCONNECTED, self.guild_id)
        except TransportError:
            logger.exception(LogTemplates.SESSION_RELEASE_FAILED, self.guild_id)

    async def _release_after_failure(self, operation: str, exc: TransportError) -> None:
        logger.warning(LogTemplates.SESSION_TRANSPORT_FAILED, self.guild_id, operation, exc)
        await self._drop_connection()

    # === Stream end handling ===

    def _stream_end_callback(self, generation: int) -> StreamEndCallback:
        loop = asyncio.get_running_loop()

        def on_end(outcome: StreamOutcome) -> None:
            try:
                same_loop = asyncio.get_running_loop() is loop
            except RuntimeError:
                same_loop = False

            if same_loop:
                self._spawn_end_handler(generation, outcome)
            else:
                loop.call_soon_threadsafe(self._spawn_end_handler, generation, outcome)

        return on_end

    def _spawn_end_handler(self, generation: int, outcome: StreamOutcome) -> None:
        task = asyncio.create_task(self._handle_stream_end(generation, outcome))
        self._end_tasks.add(task)
        task.add_done_callback(self._end_tasks.discard)

    async def _handle_stream_end(self, generation: int, outcome: StreamOutcome) -> None:
        if outcome is StreamOutcome.FINISHED and generation == self._stream_generation:
            await self._prepare(self._queue.next_position())
        async with self._lock:
            if generation != self._stream_generation or self._connection is None:
                logger.debug(LogTemplates.STREAM_END_IGNORED, generation, self.guild_id)
                return

            if outcome is StreamOutcome.ERRORED:
                current = self._queue.current
                logger.warning(
                    LogTemplates.STREAM_ERRORED,
                    self.guild_id,
                    current.title if current else None,
                )
                await self._drop_connection()
                return

            self._status = PlaybackStatus.IDLE
            try:
                await self._advance()
            except TransportError:
                logger.exception(LogTemplates.STREAM_END_HANDLER_FAILED, self.guild_id)

    # === Idle disconnect ===

    def _arm_idle_timer(self) -> None:
        self._cancel_idle_timer()
        if self._idle_timeout <= 0 or self._connection is None:
            return
        logger.debug(LogTemplates.IDLE_TIMER_ARMED, self.guild_id, self._idle_timeout)
        self._idle_task = asyncio.create_task(self._idle_disconnect_after(self._idle_timeout))

    def _cancel_idle_timer(self) -> None:
        task, self._idle_task = self._idle_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _idle_disconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        async with self._lock:
            if self._idle_task is not asyncio.current_task():
                return
            self._idle_task = None
            if self._status is PlaybackStatus.PLAYING or self._connection is None:
                return
            logger.info(LogTemplates.IDLE_DISCONNECT, self.guild_id)
            await self._drop_connection()
