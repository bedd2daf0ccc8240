"""Centralized message constants for error messages, logging, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Track / Queue Validation Errors
    PLAYLIST_TITLE_WITHOUT_PLAYLIST = "playlist_title is only valid for playlist tracks"
    CURSOR_OUTSIDE_QUEUE = "Cursor must point at a track inside the queue"

    # Settings Validation Errors
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Transport Errors
    GUILD_NOT_FOUND = "Guild {guild_id} is not available"
    CHANNEL_NOT_VOICE = "Channel {channel_id} is not a voice channel"
    VOICE_CONNECT_TIMEOUT = "Timed out connecting to voice channel {channel_id}"
    VOICE_MOVE_TIMEOUT = "Timed out moving to voice channel {channel_id}"
    VOICE_NO_PERMISSION = "Missing permission to join voice channel {channel_id}"
    VOICE_CONNECT_FAILED = "Could not connect to voice channel {channel_id}: {error}"
    VOICE_LINK_LOST = "Voice link for guild {guild_id} is no longer connected"
    STREAM_START_FAILED = "Could not start audio stream: {error}"
    NO_STREAM_URL = "No playable audio found for {url}"

    # Bootstrap Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD_TOKEN environment variable is required"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."


class LogTemplates:
    """Log message templates for %-style logging calls."""

    # Session Registry
    SESSION_CREATED = "Created playback session for guild %s"
    REGISTRY_CLOSING = "Closing %d playback session(s)"

    # Session / Queue
    QUEUE_ADDED = "Queued '%s' at position %d in guild %s"
    QUEUE_REMOVED = "Removed %d track(s) starting at position %d in guild %s"
    SESSION_CONNECTED = "Voice link acquired for guild %s in channel %s"
    SESSION_MOVED = "Voice link for guild %s moved to channel %s"
    SESSION_DISCONNECTED = "Voice link released for guild %s"
    SESSION_TRANSPORT_FAILED = "Transport failure in guild %s during %s: %s"
    SESSION_RELEASE_FAILED = "Failed to release voice link for guild %s"

    # Playback
    TRACK_STARTED = "Now streaming '%s' (position %d) in guild %s"
    PLAYBACK_PAUSED = "Playback paused in guild %s"
    PLAYBACK_RESUMED = "Playback resumed in guild %s"
    TRACK_SKIPPED = "Skipped '%s' in guild %s"
    TRACK_BACK = "Rewound to '%s' (position %d) in guild %s"
    QUEUE_FINISHED = "Queue finished in guild %s, going idle"
    STREAM_ERRORED = "Stream errored in guild %s while playing '%s'"
    STREAM_END_IGNORED = "Ignoring end of superseded stream %d in guild %s"
    STREAM_END_HANDLER_FAILED = "Unhandled error after stream end in guild %s"
    IDLE_TIMER_ARMED = "Idle disconnect armed for guild %s (%.0fs)"
    IDLE_DISCONNECT = "Idle timeout reached in guild %s, releasing voice link"

    # Song Resolution
    RESOLVE_STARTED = "Resolving '%s' (playlist limit %d)"
    RESOLVE_FINISHED = "Resolved %d song(s), %d not found, %d total for '%s'"
    RESOLVE_PLAYLIST_SAMPLED = "Playlist of %d entries sampled down to %d"
    YTDLP_FAILED_EXTRACT_INFO = "Failed to extract info for URL: %s"
    YTDLP_FAILED_SEARCH = "Search failed for query: %s"
    YTDLP_FAILED_EXTRACT_PLAYLIST = "Failed to extract playlist: %s"
    YTDLP_ENTRY_SKIPPED = "Skipping unusable playlist entry: %s"
    CACHE_HIT_URL = "Cache hit for URL: %s"
    CACHE_EXPIRED_CLEANED = "Cleaned %d expired cache entries"

    # Voice Transport
    VOICE_CONNECTED = "Connected to voice channel %s in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_SELF_DEAFEN_FAILED = "Could not self-deafen in guild %s: %s"
    STREAM_STARTED = "FFmpeg stream started for %s in guild %s"
    STREAM_ENDED = "FFmpeg stream ended in guild %s (error=%s)"
    STREAM_PREPARE_FAILED = "Could not locate audio ahead of time for %s: %s"

    # Commands
    COMMAND_FAILED = "Command '%s' failed in guild %s"
    PLAY_START_SKIPPED = "Queued songs but could not start playback in guild %s"

    # Bot Lifecycle
    BOT_STARTING = "Starting bot (environment={environment})"
    BOT_SETUP = "Setting up bot"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_READY = "Logged in as %s (%s)"
    BOT_SHUTTING_DOWN = "Shutting down, releasing voice links"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown did not finish within %.0fs"
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down"
    BOT_FATAL_ERROR = "Fatal error: %s"


class UIMessages:
    """User-facing replies rendered by the Discord cog."""

    PLAY_ALREADY_PLAYING = "already playing, give me a song name"
    PLAY_NOTHING_TO_PLAY = "nothing to play"
    PLAY_RESUMED = "the stop-and-go light is now green"
    PLAY_NOT_FOUND = "that doesn't exist"
    PLAY_NO_SONGS = "no songs found"
    PLAY_ADDED_ONE = "**{title}** added to the{front} queue{extra}"
    PLAY_ADDED_MANY = "**{title}** and {others} other songs were added to the queue{extra}"
    PLAY_FRONT_OF = " front of the"
    PLAY_RESUMING = "resuming playback"
    PLAY_SAMPLED = "a random sample of {limit} songs was taken"
    PLAY_ONE_NOT_FOUND = "1 song was not found"
    PLAY_MANY_NOT_FOUND = "{count} songs were not found"

    REMOVE_MISSING_ARGUMENT = "missing song position or range"
    REMOVE_BAD_FORMAT = "incorrect format"
    REMOVE_POSITION_TOO_LOW = "position must be greater than 0"
    REMOVE_OUT_OF_RANGE = "position is outside of the queue's range"
    REMOVE_BACKWARDS = "range is backwards"
    REMOVE_DONE = ":wastebasket: removed"

    PAUSED = "the stop-and-go light is now red"
    ALREADY_PAUSED = "already paused"
    NOT_PLAYING = "not currently playing"
    SKIPPED = "keep 'er movin'"
    SKIPPED_TO_END = "no more songs in the queue, stopped"
    BACK = "back 'er up'"
    NO_HISTORY = "no song to go back to"
    DISCONNECTED = "u betcha"
    NOT_CONNECTED = "not connected"
    VOICE_ERROR = "couldn't reach the voice channel: {error}"
    NO_VOICE_CHANNEL = "join a voice channel first"
    QUEUE_EMPTY = "queue is empty"

    EMBED_NOW_PLAYING = "Now Playing"
    EMBED_PAUSED = "Paused"
    EMBED_IDLE = "Stopped"
    EMBED_UP_NEXT = "Up next"
    EMBED_FOOTER = "{count} song(s) in queue, {duration} total"
    EMBED_REQUESTED_BY = "Requested by <@{user_id}>"
    EMBED_FROM_PLAYLIST = "From playlist: {playlist}"

    ERROR_PREFIX = "\U0001f6ab ope: {message}"
