"""Port interface for turning URLs and search queries into playable songs."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.music.entities import ResolvedSong
from discord_jukebox.domain.shared.types import NonEmptyStr, NonNegativeInt, PlaylistLimit


class ResolveResult(BaseModel):
    """Songs found for one query, plus how many items could not be found."""

    model_config = ConfigDict(frozen=True)

    songs: list[ResolvedSong] = Field(default_factory=list)
    not_found: NonNegativeInt = 0
    total: NonNegativeInt = 0

    @property
    def is_empty(self) -> bool:
        return not self.songs

    @property
    def was_sampled(self) -> bool:
        """True when a playlist was larger than the limit and only a sample was kept."""
        return self.total > len(self.songs) + self.not_found


class SongResolver(ABC):
    """Interface for resolving URLs and search queries to songs."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr, *, playlist_limit: PlaylistLimit) -> ResolveResult:
        """Resolve a URL, playlist URL, or free-text search.

        Per-item failures are counted in ``not_found``; an empty result is
        not an error.
        """
        ...

    @abstractmethod
    async def stream_url(self, source_url: NonEmptyStr) -> str:
        """Locate the direct audio URL for a song's canonical source URL."""
        ...
