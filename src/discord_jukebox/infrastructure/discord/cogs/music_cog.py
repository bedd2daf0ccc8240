"""Prefix-command music cog delegating to the application handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from discord_jukebox.application.commands.play_track import PlayTrackCommand
from discord_jukebox.application.commands.playback_controls import (
    PlaybackAction,
    PlaybackControlCommand,
    PlaybackControlResult,
)
from discord_jukebox.application.commands.remove_tracks import RemoveTracksCommand
from discord_jukebox.application.queries.get_queue import GetQueueQuery, QueueSnapshot
from discord_jukebox.domain.music.entities import format_duration
from discord_jukebox.domain.music.value_objects import PlaybackStatus
from discord_jukebox.domain.shared.messages import LogTemplates, UIMessages
from discord_jukebox.utils.reply import error_text, truncate

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

UP_NEXT_LIMIT = 5

VoiceTarget = discord.VoiceChannel | discord.StageChannel


def most_populated_voice_channel(guild: discord.Guild) -> discord.VoiceChannel | None:
    """The voice channel with the most non-bot members, or None when all are empty."""
    best: discord.VoiceChannel | None = None
    best_count = 0
    for channel in guild.voice_channels:
        count = sum(1 for m in channel.members if not m.bot)
        if count > best_count:
            best, best_count = channel, count
    return best


def target_voice_channel(ctx: commands.Context) -> VoiceTarget | None:
    """The author's voice channel, falling back to the guild's busiest one."""
    author = ctx.author
    if isinstance(author, discord.Member) and author.voice and author.voice.channel:
        channel = author.voice.channel
        if isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            return channel
    if ctx.guild is None:
        return None
    return most_populated_voice_channel(ctx.guild)


def build_playing_embed(snapshot: QueueSnapshot) -> discord.Embed:
    track = snapshot.current
    assert track is not None

    if snapshot.status is PlaybackStatus.PLAYING:
        title, color = UIMessages.EMBED_NOW_PLAYING, discord.Color.green()
    elif snapshot.status is PlaybackStatus.PAUSED:
        title, color = UIMessages.EMBED_PAUSED, discord.Color.orange()
    else:
        title, color = UIMessages.EMBED_IDLE, discord.Color.dark_grey()

    lines = [f"[{truncate(track.display_title)}]({track.source_url})"]
    lines.append(UIMessages.EMBED_REQUESTED_BY.format(user_id=track.requested_by))
    if track.playlist_title:
        lines.append(UIMessages.EMBED_FROM_PLAYLIST.format(playlist=track.playlist_title))

    embed = discord.Embed(title=title, description="\n".join(lines), color=color)
    embed.add_field(name="Duration", value=track.duration_formatted, inline=True)
    if snapshot.cursor is not None:
        embed.add_field(
            name="Position", value=f"{snapshot.cursor}/{snapshot.queue_size}", inline=True
        )
    if track.thumbnail_url:
        embed.set_thumbnail(url=track.thumbnail_url)

    if snapshot.upcoming:
        start = (snapshot.cursor or 0) + 1
        up_next = [
            f"`{position}.` {truncate(t.title, 60)} ({t.duration_formatted})"
            for position, t in enumerate(snapshot.upcoming[:UP_NEXT_LIMIT], start=start)
        ]
        hidden = len(snapshot.upcoming) - UP_NEXT_LIMIT
        if hidden > 0:
            up_next.append(f"…and {hidden} more")
        embed.add_field(name=UIMessages.EMBED_UP_NEXT, value="\n".join(up_next), inline=False)

    embed.set_footer(
        text=UIMessages.EMBED_FOOTER.format(
            count=snapshot.queue_size,
            duration=format_duration(snapshot.total_duration_seconds),
        )
    )
    return embed


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    async def cog_check(self, ctx: commands.Context) -> bool:
        if ctx.guild is None:
            raise commands.NoPrivateMessage()
        return True

    async def cog_command_error(self, ctx: commands.Context, error: Exception) -> None:
        if isinstance(error, commands.NoPrivateMessage):
            return

        original = getattr(error, "original", error)
        command_name = ctx.command.qualified_name if ctx.command else "<unknown>"
        logger.error(
            LogTemplates.COMMAND_FAILED,
            command_name,
            ctx.guild.id if ctx.guild else None,
            exc_info=original,
        )
        await self._error(ctx, str(original))

    async def _error(self, ctx: commands.Context, message: str) -> None:
        await ctx.send(error_text(message))

    async def _send_with_now_playing(self, ctx: commands.Context, message: str) -> None:
        assert ctx.guild is not None
        snapshot = await self.container.get_queue_handler.handle(
            GetQueueQuery(guild_id=ctx.guild.id)
        )
        if snapshot.current is None:
            await ctx.send(message)
            return
        await ctx.send(message, embed=build_playing_embed(snapshot))

    async def _control(
        self, ctx: commands.Context, action: PlaybackAction, voice_channel_id: int | None = None
    ) -> PlaybackControlResult:
        assert ctx.guild is not None
        command = PlaybackControlCommand(
            guild_id=ctx.guild.id, action=action, voice_channel_id=voice_channel_id
        )
        return await self.container.playback_control_handler.handle(command)

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    @commands.command(name="play", aliases=["p"])
    async def play(self, ctx: commands.Context, *args: str) -> None:
        """Play a song or playlist, or resume paused playback."""
        assert ctx.guild is not None
        channel = target_voice_channel(ctx)
        if channel is None:
            await self._error(ctx, UIMessages.NO_VOICE_CHANNEL)
            return

        command = PlayTrackCommand.from_args(
            args,
            guild_id=ctx.guild.id,
            text_channel_id=ctx.channel.id,
            voice_channel_id=channel.id,
            user_id=ctx.author.id,
            playlist_limit=self.container.settings.player.playlist_limit,
        )

        async with ctx.typing():
            result = await self.container.play_track_handler.handle(command)

        if not result.is_success:
            await self._error(ctx, result.message)
            return
        if result.started_playing:
            await self._send_with_now_playing(ctx, result.message)
        else:
            await ctx.send(result.message)

    @commands.command(name="pause")
    async def pause(self, ctx: commands.Context) -> None:
        """Pause the current song."""
        result = await self._control(ctx, PlaybackAction.PAUSE)
        if not result.is_success:
            await self._error(ctx, result.message)
            return
        await ctx.send(result.message)

    @commands.command(name="skip", aliases=["s"])
    async def skip(self, ctx: commands.Context) -> None:
        """Skip to the next song in the queue."""
        result = await self._control(ctx, PlaybackAction.SKIP)
        if not result.is_success:
            await self._error(ctx, result.message)
            return
        if result.track is not None:
            await self._send_with_now_playing(ctx, result.message)
        else:
            await ctx.send(result.message)

    @commands.command(name="unskip", aliases=["back"])
    async def unskip(self, ctx: commands.Context) -> None:
        """Go back to the previous song."""
        channel = target_voice_channel(ctx)
        result = await self._control(
            ctx, PlaybackAction.BACK, channel.id if channel is not None else None
        )
        if not result.is_success:
            await self._error(ctx, result.message)
            return
        await self._send_with_now_playing(ctx, result.message)

    @commands.command(name="remove", aliases=["rm"])
    async def remove(self, ctx: commands.Context, *, selection: str = "") -> None:
        """Remove one position (``3``) or an inclusive range (``5-7``) from the queue."""
        assert ctx.guild is not None
        result = await self.container.remove_tracks_handler.handle(
            RemoveTracksCommand(guild_id=ctx.guild.id, selection=selection)
        )
        if not result.is_success:
            await self._error(ctx, result.message)
            return
        await ctx.send(result.message)

    @commands.command(name="now-playing", aliases=["np"])
    async def now_playing(self, ctx: commands.Context) -> None:
        """Show the current song and what's up next."""
        assert ctx.guild is not None
        snapshot = await self.container.get_queue_handler.handle(
            GetQueueQuery(guild_id=ctx.guild.id)
        )
        if snapshot.current is None:
            await self._error(ctx, UIMessages.NOT_PLAYING)
            return
        await ctx.send(embed=build_playing_embed(snapshot))

    @commands.command(name="disconnect", aliases=["dc"])
    async def disconnect(self, ctx: commands.Context) -> None:
        """Leave the voice channel, keeping the queue."""
        result = await self._control(ctx, PlaybackAction.DISCONNECT)
        if not result.is_success:
            await self._error(ctx, result.message)
            return
        await ctx.send(result.message)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError("Container not found on bot instance")

    await bot.add_cog(MusicCog(bot, container))
