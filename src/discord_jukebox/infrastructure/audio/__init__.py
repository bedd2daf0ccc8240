"""Audio infrastructure - yt-dlp song resolver."""

from discord_jukebox.infrastructure.audio.models import (
    AudioFormatInfo,
    CacheEntry,
    YtDlpEntryInfo,
    YtDlpOpts,
    YtDlpPlaylistInfo,
)
from discord_jukebox.infrastructure.audio.ytdlp_resolver import YtDlpSongResolver

__all__ = [
    "AudioFormatInfo",
    "CacheEntry",
    "YtDlpEntryInfo",
    "YtDlpOpts",
    "YtDlpPlaylistInfo",
    "YtDlpSongResolver",
]
