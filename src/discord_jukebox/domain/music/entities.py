"""Core domain entities for the music bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from discord_jukebox.domain.music.value_objects import TrackOrigin
from discord_jukebox.domain.shared.messages import ErrorMessages
from discord_jukebox.domain.shared.types import (
    ChannelIdField,
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    TrackTitleStr,
    UserIdField,
)


def format_duration(seconds: int) -> str:
    """Format a duration as M:SS or H:MM:SS."""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class ResolvedSong(BaseModel):
    """Playable metadata produced by a song resolver, not yet tied to a request."""

    model_config = ConfigDict(frozen=True, strict=True)

    title: TrackTitleStr
    source_url: HttpUrlStr
    duration_seconds: DurationSeconds = 0
    thumbnail_url: HttpUrlStr | None = None
    artist: NonEmptyStr | None = None
    origin: TrackOrigin = TrackOrigin.SINGLE
    playlist_title: NonEmptyStr | None = None
    is_live: bool = False

    @model_validator(mode="after")
    def _playlist_title_needs_playlist_origin(self) -> ResolvedSong:
        if self.playlist_title is not None and self.origin is not TrackOrigin.PLAYLIST:
            raise ValueError(ErrorMessages.PLAYLIST_TITLE_WITHOUT_PLAYLIST)
        return self

    def to_queued(
        self, *, requested_by: UserIdField, added_in_channel_id: ChannelIdField
    ) -> QueuedTrack:
        """Attach request provenance, producing a track ready for a queue."""
        return QueuedTrack(
            **self.model_dump(),
            requested_by=requested_by,
            added_in_channel_id=added_in_channel_id,
        )


class QueuedTrack(ResolvedSong):
    """Immutable record of one queued item plus who asked for it and where."""

    requested_by: UserIdField
    added_in_channel_id: ChannelIdField

    @property
    def duration_formatted(self) -> str:
        if self.is_live:
            return "live"
        return format_duration(self.duration_seconds)

    @property
    def display_title(self) -> str:
        if self.artist:
            return f"{self.artist} - {self.title}"
        return self.title

    @property
    def is_from_playlist(self) -> bool:
        return self.origin is TrackOrigin.PLAYLIST
