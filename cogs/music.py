"""
Music Cog for RagaBot
Playback, queue and per-server settings commands
"""
import logging
import time

import discord
from discord.ext import commands

from config.messages import get_message
from config.settings import MAX_PREFIX_LENGTH, QUEUE_PAGE_SIZE, SEARCH_PICK_LIMIT, aliases_for
from utils.database_manager import database_manager
from utils.error_handler import error_handler
from utils.exceptions import NoVoiceChannelError, VoiceError
from utils.helpers import request_skip
from utils.logging_manager import logging_manager
from utils.ui_enhancements import (
    ChannelNotifier,
    EnhancedEmbed,
    MusicControlView,
    ProgressBar,
    SearchResultView,
    skip_outcome_message,
)

logger = logging.getLogger('music')

LOOP_MODES = {'song': True, 'on': True, 'track': True, 'off': False}
TOGGLE_VALUES = {'on': True, 'enable': True, 'off': False, 'disable': False}


class Music(commands.Cog):
    """Music cog with voice playback functionality"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.controls = MusicControlView(bot.registry, database_manager)

    @property
    def registry(self):
        return self.bot.registry

    async def cog_load(self):
        # Buttons on old now playing cards keep working across restarts
        self.bot.add_view(self.controls)

    async def _maybe_defer(self, ctx: commands.Context):
        """Defer slash invocations so slow lookups don't expire the interaction"""
        interaction = getattr(ctx, "interaction", None)
        if interaction and not interaction.response.is_done():
            try:
                await interaction.response.defer()
            except discord.HTTPException as e:
                logger.warning(f"⚠️ Could not defer interaction: {e}")

    def cog_check(self, ctx: commands.Context):
        if not ctx.guild:
            raise commands.NoPrivateMessage('This command can\'t be used in DM channels.')
        return True

    async def cog_before_invoke(self, ctx: commands.Context):
        """Attach the guild session and start timing the command"""
        ctx.started_at = time.perf_counter()
        await self._maybe_defer(ctx)
        ctx.session = await self.registry.acquire(ctx.guild.id, ChannelNotifier(ctx.channel, self.controls))
        database_manager.record_command_usage(ctx.guild.id, ctx.author.id, ctx.command.qualified_name)

    async def cog_after_invoke(self, ctx: commands.Context):
        if getattr(ctx, 'command_failed', False):
            return
        elapsed = time.perf_counter() - getattr(ctx, 'started_at', time.perf_counter())
        logging_manager.log_command_execution(ctx.command.qualified_name, ctx.author.id, ctx.guild.id,
                                              elapsed, True)

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        """Handle cog-specific errors using centralized error handler"""
        if ctx.command is not None:
            elapsed = time.perf_counter() - getattr(ctx, 'started_at', time.perf_counter())
            logging_manager.log_command_execution(ctx.command.qualified_name, ctx.author.id,
                                                  ctx.guild.id if ctx.guild else None, elapsed, False,
                                                  str(error_handler.unwrap(error)))
        await error_handler.handle_error(error, ctx, "Music Cog Error")

    async def ensure_voice_state(self, ctx: commands.Context):
        """Connect to the author's channel, or fail if that isn't possible"""
        if not ctx.author.voice or not ctx.author.voice.channel:
            raise NoVoiceChannelError(get_message('NO_VOICE_CHANNEL'))

        channel = ctx.author.voice.channel
        controller = ctx.session.controller
        if controller.is_connected and controller.voice.channel == channel:
            return
        if controller.is_connected and controller.is_active:
            raise VoiceError(f'Already playing in {controller.voice.channel.mention}.')
        await controller.connect(channel)

    def _require_voice(self, ctx: commands.Context) -> bool:
        return ctx.session.controller.is_connected

    # Playback

    @commands.hybrid_command(name='play', aliases=aliases_for('play'),
                             description='Play a song or playlist by name or URL')
    async def _play(self, ctx: commands.Context, *, query: str):
        """Plays a song or playlist.

        Accepts YouTube, SoundCloud and Spotify links or plain search text.
        Playlists are queued as a whole; if the queue can't take all of them
        nothing is added.
        """
        await self.ensure_voice_state(ctx)
        session = ctx.session

        result = await self.bot.resolver.lookup(query, requested_by=ctx.author.id)
        position = len(session.queue) + 1
        started = await session.controller.play(result.tracks, result.playlist_info)

        if result.is_playlist:
            await ctx.send(embed=EnhancedEmbed.create_playlist_embed(result.playlist_info, len(result.tracks)))
        elif not started:
            await ctx.send(embed=EnhancedEmbed.create_added_embed(result.tracks[0], position))
        elif ctx.interaction is not None:
            # The now playing card goes to the channel; the interaction still needs an answer
            await ctx.send(f"{get_message('NOW_PLAYING')} {result.tracks[0]}")

    @commands.hybrid_command(name='search', aliases=aliases_for('search'),
                             description='Search for a song and pick it from a list')
    async def _search(self, ctx: commands.Context, *, query: str):
        """Shows up to ten search results in a menu; picking one queues it."""
        await self.ensure_voice_state(ctx)
        results = await self.bot.resolver.search(query, SEARCH_PICK_LIMIT, requested_by=ctx.author.id)
        if not results:
            return await ctx.send(get_message('NO_RESULTS'))

        view = SearchResultView(self.registry, ctx.guild.id, results, ctx.author.id)
        view.message = await ctx.send(embed=EnhancedEmbed.create_search_embed(query, results), view=view)

    @commands.hybrid_command(name='skip', aliases=aliases_for('skip'), description='Vote to skip the current song')
    async def _skip(self, ctx: commands.Context):
        """Skips the current song.

        The requester and server managers skip right away. Everyone else
        votes, and the song is skipped once half the listeners agree.
        """
        outcome = await request_skip(ctx.session, ctx.author)
        await ctx.send(skip_outcome_message(outcome))

    @commands.hybrid_command(name='stop', aliases=aliases_for('stop'),
                             description='Stop playback, clear the queue and leave')
    async def _stop(self, ctx: commands.Context):
        if not self._require_voice(ctx):
            return await ctx.send(get_message('NOT_CONNECTED'))
        await self.registry.destroy(ctx.guild.id)
        await ctx.send(get_message('MUSIC_STOPPED'))

    @commands.hybrid_command(name='pause', description='Pause the currently playing song')
    async def _pause(self, ctx: commands.Context):
        if ctx.session.controller.pause():
            return await ctx.send(get_message('MUSIC_PAUSED'))
        await ctx.send(get_message('NO_SONG_PLAYING'))

    @commands.hybrid_command(name='resume', description='Resume the paused song')
    async def _resume(self, ctx: commands.Context):
        if ctx.session.controller.resume():
            return await ctx.send(get_message('MUSIC_RESUMED'))
        await ctx.send(get_message('NOT_PAUSED'))

    @commands.hybrid_command(name='previous', aliases=aliases_for('previous'),
                             description='Play the previous song again')
    async def _previous(self, ctx: commands.Context):
        """Replays the most recent song from history; the current one goes back to the queue."""
        await self.ensure_voice_state(ctx)
        recalled = await ctx.session.controller.previous()
        if recalled is None:
            return await ctx.send(get_message('NO_PREVIOUS'))
        await ctx.send(f"⏮️ {recalled}")

    @commands.hybrid_command(name='nowplaying', aliases=aliases_for('nowplaying'),
                             description='Show the currently playing song')
    async def _nowplaying(self, ctx: commands.Context):
        queue = ctx.session.queue
        if queue.now_playing is None:
            return await ctx.send(get_message('NO_SONG_PLAYING'))
        await ctx.send(embed=EnhancedEmbed.create_now_playing_embed(queue.now_playing, queue), view=self.controls)

    # Queue

    @commands.hybrid_command(name='queue', aliases=aliases_for('queue'), description='Show the music queue (paginated)')
    async def _queue(self, ctx: commands.Context, page: int = 1):
        queue = ctx.session.queue
        if queue.is_empty() and queue.now_playing is None:
            return await ctx.send(get_message('QUEUE_EMPTY'))
        await ctx.send(embed=EnhancedEmbed.create_queue_embed(queue, page, QUEUE_PAGE_SIZE))

    @commands.hybrid_command(name='shuffle', aliases=aliases_for('shuffle'), description='Shuffle the current queue')
    async def _shuffle(self, ctx: commands.Context):
        if ctx.session.queue.is_empty():
            return await ctx.send(get_message('QUEUE_EMPTY'))
        ctx.session.queue.shuffle()
        await ctx.send(get_message('QUEUE_SHUFFLED'))

    @commands.hybrid_command(name='clear', aliases=aliases_for('clear'), description='Remove every queued song')
    async def _clear(self, ctx: commands.Context):
        """Empties the queue; the current song keeps playing."""
        if ctx.session.queue.is_empty():
            return await ctx.send(get_message('QUEUE_EMPTY'))
        ctx.session.queue.clear_pending()
        await ctx.send(get_message('QUEUE_CLEARED'))

    @commands.hybrid_command(name='remove', description='Remove a song from the queue by number')
    async def _remove(self, ctx: commands.Context, index: int):
        if ctx.session.queue.is_empty():
            return await ctx.send(get_message('QUEUE_EMPTY'))
        removed = ctx.session.queue.remove(index)
        await ctx.send(f"🗑️ Removed {removed}")

    @commands.hybrid_command(name='move', description='Move a queued song to another position')
    async def _move(self, ctx: commands.Context, source: int, destination: int):
        if ctx.session.queue.is_empty():
            return await ctx.send(get_message('QUEUE_EMPTY'))
        moved = ctx.session.queue.move(source, destination)
        await ctx.send(f"↕️ Moved {moved} to position **{destination}**")

    # Settings

    @commands.hybrid_command(name='volume', aliases=aliases_for('volume'), description='Set or check the volume (0-100)')
    async def _volume(self, ctx: commands.Context, volume: int = None):
        """Sets the server volume, applied to the current song right away and remembered."""
        queue = ctx.session.queue
        if volume is None:
            bar = ProgressBar.create_volume_bar(queue.volume)
            return await ctx.send(f"{get_message('VOLUME_CURRENT')} **{queue.volume}%**\n{bar}")
        if not 0 <= volume <= 100:
            return await ctx.send(get_message('VOLUME_RANGE'))

        ctx.session.controller.set_volume(volume)
        await database_manager.update_volume(ctx.guild.id, volume)
        await ctx.send(f"{get_message('VOLUME_SET')} **{volume}%**\n{ProgressBar.create_volume_bar(volume)}")

    @commands.hybrid_command(name='loop', aliases=aliases_for('loop'), description='Loop the current song (song|off)')
    async def _loop(self, ctx: commands.Context, mode: str = None):
        controller = ctx.session.controller
        if mode is None:
            enabled = controller.toggle_loop()
        elif mode.lower() in LOOP_MODES:
            enabled = LOOP_MODES[mode.lower()]
            ctx.session.queue.loop = enabled
        else:
            raise commands.BadArgument(f'Unknown loop mode `{mode}`, use `song` or `off`.')

        await database_manager.update_loop_mode(ctx.guild.id, enabled)
        await ctx.send(get_message('LOOP_ON' if enabled else 'LOOP_OFF'))

    @commands.hybrid_command(name='autoplay', aliases=aliases_for('autoplay'),
                             description='Keep playing related songs when the queue runs out')
    async def _autoplay(self, ctx: commands.Context, mode: str = None):
        controller = ctx.session.controller
        if mode is None:
            enabled = controller.toggle_autoplay()
        elif mode.lower() in TOGGLE_VALUES:
            enabled = TOGGLE_VALUES[mode.lower()]
            ctx.session.queue.autoplay = enabled
        else:
            raise commands.BadArgument(f'Unknown autoplay mode `{mode}`, use `on` or `off`.')

        await database_manager.update_autoplay(ctx.guild.id, enabled)
        await ctx.send(get_message('AUTOPLAY_ON' if enabled else 'AUTOPLAY_OFF'))

    @commands.hybrid_command(name='setprefix', aliases=aliases_for('setprefix'),
                             description='Change the command prefix for this server')
    @commands.has_permissions(manage_guild=True)
    async def _setprefix(self, ctx: commands.Context, prefix: str):
        prefix = prefix.strip()
        if not prefix or len(prefix) > MAX_PREFIX_LENGTH or any(ch.isspace() for ch in prefix):
            return await ctx.send(get_message('PREFIX_INVALID', length=MAX_PREFIX_LENGTH))
        await database_manager.update_prefix(ctx.guild.id, prefix)
        await ctx.send(f"{get_message('PREFIX_CHANGED')} `{prefix}`")

    # Voice

    @commands.hybrid_command(name='join', description='Join your voice channel')
    async def _join(self, ctx: commands.Context):
        await self.ensure_voice_state(ctx)
        await ctx.send(f"{get_message('JOINED')} {ctx.session.controller.voice.channel.mention}")

    @commands.hybrid_command(name='leave', description='Leave voice channel and clear the queue')
    async def _leave(self, ctx: commands.Context):
        if not self._require_voice(ctx):
            return await ctx.send(get_message('NOT_CONNECTED'))
        await self.registry.destroy(ctx.guild.id)
        await ctx.send(get_message('LEFT'))


async def setup(bot):
    await bot.add_cog(Music(bot))
