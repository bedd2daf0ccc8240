"""Ordered play queue with a one-based play cursor.

The queue never drops played tracks: everything before the cursor is the
session's history, everything after it is still to come. All positions
accepted and returned here are one-based.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from discord_jukebox.domain.music.entities import QueuedTrack
from discord_jukebox.domain.music.value_objects import AddOptions
from discord_jukebox.domain.shared.exceptions import QueueRangeError
from discord_jukebox.domain.shared.messages import ErrorMessages
from discord_jukebox.domain.shared.types import PositiveInt


class PlaybackQueue(BaseModel):
    """Tracks in play order plus the position of the current (or last played) one."""

    model_config = ConfigDict(strict=True)

    tracks: list[QueuedTrack] = Field(default_factory=list)
    cursor: PositiveInt | None = None

    @model_validator(mode="after")
    def _cursor_within_queue(self) -> PlaybackQueue:
        if self.cursor is not None and self.cursor > len(self.tracks):
            raise ValueError(ErrorMessages.CURSOR_OUTSIDE_QUEUE)
        return self

    def __len__(self) -> int:
        return len(self.tracks)

    @property
    def size(self) -> int:
        return len(self.tracks)

    @property
    def is_empty(self) -> bool:
        return not self.tracks

    @property
    def current(self) -> QueuedTrack | None:
        if self.cursor is None or not self.tracks:
            return None
        return self.tracks[self.cursor - 1]

    @property
    def has_next(self) -> bool:
        """True when at least one track sits after the cursor."""
        return (self.cursor or 0) < len(self.tracks)

    @property
    def history(self) -> list[QueuedTrack]:
        if self.cursor is None:
            return []
        return self.tracks[: self.cursor - 1]

    @property
    def upcoming(self) -> list[QueuedTrack]:
        return self.tracks[self.cursor or 0 :]

    @property
    def total_duration_seconds(self) -> int:
        return sum(track.duration_seconds for track in self.tracks)

    def track_at(self, position: int) -> QueuedTrack:
        if not 1 <= position <= len(self.tracks):
            raise QueueRangeError(position, 1, len(self.tracks))
        return self.tracks[position - 1]

    def next_position(self) -> int | None:
        """Position the natural advance would move to, or None at the end of the queue."""
        if not self.has_next:
            return None
        return (self.cursor or 0) + 1

    def previous_position(self) -> int | None:
        """Position one before the cursor, or None when there is no history."""
        if self.cursor is None or self.cursor <= 1:
            return None
        return self.cursor - 1

    def seek(self, position: int) -> QueuedTrack:
        """Move the cursor to ``position`` and return the track found there."""
        track = self.track_at(position)
        self.cursor = position
        return track

    def add(self, track: QueuedTrack, options: AddOptions | None = None) -> int:
        """Insert a track and return the position it landed on.

        Immediate additions go right after the cursor so they play next; a
        later immediate addition lands ahead of an earlier one.
        """
        options = options or AddOptions()
        if options.immediate:
            index = self.cursor or 0
            self.tracks.insert(index, track)
            return index + 1

        self.tracks.append(track)
        return len(self.tracks)

    def remove_range(self, start: int, count: int) -> list[QueuedTrack]:
        """Remove ``count`` tracks starting at ``start`` and return them.

        A cursor inside the removed block is clamped to the nearest remaining
        position: just before the block, or onto the track that followed it
        when the block started at 1. It only becomes None once the queue is
        empty. The queue is left untouched when the range is invalid.
        """
        size = len(self.tracks)
        if start < 1 or count < 1 or start + count - 1 > size:
            raise QueueRangeError(start, count, size)

        end = start + count - 1
        removed = self.tracks[start - 1 : end]
        del self.tracks[start - 1 : end]

        if self.cursor is not None:
            if self.cursor > end:
                self.cursor -= count
            elif self.cursor >= start:
                self.cursor = max(start - 1, 1) if self.tracks else None

        return removed

    def covers_cursor(self, start: int, count: int) -> bool:
        """True when the block ``start .. start+count-1`` contains the cursor."""
        return self.cursor is not None and start <= self.cursor <= start + count - 1
