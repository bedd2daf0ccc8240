"""SongResolver implementation using yt-dlp for URL, playlist, and search resolution."""

from __future__ import annotations

import asyncio
import logging
import random
import re
import time
from typing import Any, Final, cast

from pydantic import ValidationError as PydanticValidationError
from yt_dlp import YoutubeDL

from discord_jukebox.application.interfaces.song_resolver import ResolveResult, SongResolver
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.music.entities import ResolvedSong
from discord_jukebox.domain.music.value_objects import TrackOrigin
from discord_jukebox.domain.shared.exceptions import TransportError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates
from discord_jukebox.infrastructure.audio.models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    LOG_URL_TRUNCATE,
    AudioFormatInfo,
    CacheEntry,
    YtDlpEntryInfo,
    YtDlpOpts,
    YtDlpPlaylistInfo,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH: Final[int] = 500
MAX_DURATION_SECONDS: Final[int] = 86_400

# ── Module-level state and patterns ────────────────────────────────────

_info_cache: dict[str, CacheEntry] = {}

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]

PLAYLIST_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"[?&]list="),
    re.compile(r"/playlist\?"),
    re.compile(r"/sets/"),
]


def clear_info_cache() -> None:
    _info_cache.clear()


def sample_in_order(items: list[Any], limit: int) -> list[Any]:
    """Pick ``limit`` items at random, keeping their original relative order."""
    if len(items) <= limit:
        return list(items)
    chosen = sorted(random.sample(range(len(items)), limit))
    return [items[i] for i in chosen]


class YtDlpSongResolver(SongResolver):

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format)

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _get_playlist_opts(self) -> YtDlpOpts:
        return self._get_opts(noplaylist=False, extract_flat="in_playlist")

    # ── Public API ─────────────────────────────────────────────────────

    async def resolve(self, query: str, *, playlist_limit: int) -> ResolveResult:
        query = query.strip()
        logger.info(LogTemplates.RESOLVE_STARTED, query[:LOG_URL_TRUNCATE], playlist_limit)

        if not self.is_url(query):
            result = await self._resolve_search(query)
        elif self.is_playlist(query):
            result = await self._resolve_playlist(query, playlist_limit)
        else:
            result = await self._resolve_single(query)

        logger.info(
            LogTemplates.RESOLVE_FINISHED,
            len(result.songs),
            result.not_found,
            result.total,
            query[:LOG_URL_TRUNCATE],
        )
        return result

    async def stream_url(self, source_url: str) -> str:
        info = await asyncio.to_thread(self._extract_info_sync, source_url)
        stream = self._extract_stream_url(info) if info else None
        if not stream:
            raise TransportError(ErrorMessages.NO_STREAM_URL.format(url=source_url))
        return stream

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    def is_playlist(self, url: str) -> bool:
        return any(pattern.search(url) for pattern in PLAYLIST_PATTERNS)

    # ── Resolution strategies ──────────────────────────────────────────

    async def _resolve_single(self, url: str) -> ResolveResult:
        info = await asyncio.to_thread(self._extract_info_sync, url)
        song = self._info_to_song(info) if info else None
        if song is None:
            return ResolveResult(not_found=1, total=1)
        return ResolveResult(songs=[song], total=1)

    async def _resolve_search(self, query: str) -> ResolveResult:
        results = await asyncio.to_thread(self._search_sync, query, 1)
        song = self._info_to_song(results[0]) if results else None
        if song is None:
            return ResolveResult(not_found=1, total=1)
        return ResolveResult(songs=[song], total=1)

    async def _resolve_playlist(self, url: str, limit: int) -> ResolveResult:
        playlist = await asyncio.to_thread(self._extract_playlist_sync, url)
        if playlist is None:
            return ResolveResult(not_found=1, total=1)

        total = len(playlist.entries)
        entries = sample_in_order(playlist.entries, limit)
        if len(entries) < total:
            logger.info(LogTemplates.RESOLVE_PLAYLIST_SAMPLED, total, len(entries))

        songs: list[ResolvedSong] = []
        not_found = 0
        for entry in entries:
            song = self._info_to_song(
                entry, origin=TrackOrigin.PLAYLIST, playlist_title=playlist.title
            )
            if song is None:
                not_found += 1
                logger.debug(LogTemplates.YTDLP_ENTRY_SKIPPED, entry.title)
                continue
            songs.append(song)

        return ResolveResult(songs=songs, not_found=not_found, total=total)

    # ── Conversion ─────────────────────────────────────────────────────

    def _info_to_song(
        self,
        info: YtDlpEntryInfo,
        *,
        origin: TrackOrigin = TrackOrigin.SINGLE,
        playlist_title: str | None = None,
    ) -> ResolvedSong | None:
        url = info.page_url
        if not url or info.is_unavailable:
            return None

        try:
            return ResolvedSong(
                title=info.title[:MAX_TITLE_LENGTH],
                source_url=url,
                duration_seconds=min(info.duration or 0, MAX_DURATION_SECONDS),
                thumbnail_url=info.best_thumbnail if _is_http(info.best_thumbnail) else None,
                artist=info.author,
                origin=origin,
                playlist_title=playlist_title if origin is TrackOrigin.PLAYLIST else None,
                is_live=info.is_live,
            )
        except PydanticValidationError:
            logger.warning(LogTemplates.YTDLP_ENTRY_SKIPPED, info.title, exc_info=True)
            return None

    def _extract_stream_url(self, info: YtDlpEntryInfo) -> str | None:
        # A full extraction puts the chosen format's direct URL in ``url``.
        if info.url and info.url != info.webpage_url:
            return info.url
        return self._extract_stream_from_formats(info.formats)

    @staticmethod
    def _extract_stream_from_formats(formats: list[AudioFormatInfo]) -> str | None:
        if not formats:
            return None
        audio_formats = [f for f in formats if f.acodec != "none" and f.url]
        if audio_formats:
            return audio_formats[-1].url
        return None

    @staticmethod
    def _parse_info(data: dict[str, Any]) -> YtDlpEntryInfo:
        return YtDlpEntryInfo.model_validate(data)

    # ── Blocking yt-dlp calls (run via asyncio.to_thread) ──────────────

    def _extract_info_sync(self, url: str) -> YtDlpEntryInfo | None:
        now = time.time()
        cached = _info_cache.get(url)
        if cached is not None:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            _info_cache.pop(url, None)

        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)
                result = self._parse_info(dict(data)) if isinstance(data, dict) else None
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            return None

        if result is not None:
            _info_cache[url] = CacheEntry(info=result, cached_at=now)
            self._prune_cache(now)
        return result

    @staticmethod
    def _prune_cache(now: float) -> None:
        if len(_info_cache) <= CACHE_MAX_SIZE:
            return
        expired = [k for k, entry in _info_cache.items() if now - entry.cached_at >= CACHE_TTL]
        for k in expired:
            _info_cache.pop(k, None)
        if expired:
            logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))

    def _search_sync(self, query: str, limit: int = 1) -> list[YtDlpEntryInfo]:
        try:
            search_query = f"ytsearch{limit}:{query}"
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(search_query, download=False)

                if not isinstance(data, dict):
                    return []

                entries = data.get("entries", [])
                if not isinstance(entries, list):
                    return []

                return [self._parse_info(dict(e)) for e in entries if e]
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            return []

    def _extract_playlist_sync(self, url: str) -> YtDlpPlaylistInfo | None:
        try:
            with YoutubeDL(params=cast(Any, self._get_playlist_opts().model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)

                if not isinstance(data, dict):
                    return None

                entries = data.get("entries")
                # yt-dlp may hand back a lazy generator for entries.
                if entries is not None and not isinstance(entries, list):
                    data = {**data, "entries": list(entries)}

                return YtDlpPlaylistInfo.model_validate(data)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_PLAYLIST, url)
            return None


def _is_http(url: str | None) -> bool:
    return url is not None and url.startswith(("http://", "https://"))
