"""
UI Enhancements for RagaBot
Embeds, playback control buttons and the channel notifier for playback events
"""
import logging
import math
from typing import Any, Dict, List, Optional

import discord

from config.messages import get_message
from config.settings import PREFIX, QUEUE_PAGE_SIZE, VOLUME_STEP
from utils.error_handler import RESOLUTION_MESSAGES
from utils.exceptions import QueueFullError
from utils.helpers import request_skip

logger = logging.getLogger('music')


class ProgressBar:
    """Visual progress bars for Discord embeds"""

    @staticmethod
    def create_bar(progress: float, length: int = 20, fill_char: str = "█", empty_char: str = "░") -> str:
        progress = min(max(progress, 0), 1)
        filled_length = int(length * progress)
        return f"`{fill_char * filled_length}{empty_char * (length - filled_length)}`"

    @staticmethod
    def create_volume_bar(volume: int, length: int = 20) -> str:
        """Volume on the 0-100 scale"""
        return ProgressBar.create_bar(volume / 100, length)


def format_duration(seconds: int) -> str:
    """Format duration in a user-friendly way"""
    if seconds <= 0:
        return "🔴 Live"

    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def truncate_text(text: str, max_length: int = 50) -> str:
    """Truncate text with ellipsis if too long"""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def requester_mention(track) -> str:
    if track.requested_by is None:
        return "🤖 Autoplay"
    return f"<@{track.requested_by}>"


class EnhancedEmbed:
    """Embed builders for music replies"""

    @staticmethod
    def create_music_embed(title: str, description: str = None, color: discord.Color = discord.Color.blue()) -> discord.Embed:
        embed = discord.Embed(title=f"🎵 {title}", description=description, color=color)
        embed.set_footer(text="🎧 RagaBot")
        return embed

    @staticmethod
    def create_now_playing_embed(track, queue=None) -> discord.Embed:
        """Now playing card for a Track, with queue state when given"""
        embed = discord.Embed(
            title=get_message('NOW_PLAYING'),
            description=f"**[{truncate_text(track.title, 200)}]({track.source_url})**\n🎤 by **{track.author}**",
            color=discord.Color.green()
        )
        if track.thumbnail_url:
            embed.set_thumbnail(url=track.thumbnail_url)

        embed.add_field(name="⏱️ Duration", value=format_duration(track.duration), inline=True)
        embed.add_field(name="👤 Requested by", value=requester_mention(track), inline=True)

        if queue is not None:
            embed.add_field(
                name="🔊 Volume",
                value=f"{ProgressBar.create_volume_bar(queue.volume, 10)} {queue.volume}%",
                inline=True
            )
            modes = []
            if queue.loop:
                modes.append("🔂 Loop")
            if queue.autoplay:
                modes.append("🤖 Autoplay")
            if modes:
                embed.add_field(name="⚙️ Modes", value=" • ".join(modes), inline=True)
            if len(queue):
                embed.add_field(name="📋 Up Next", value=f"{queue[0].title} (+{len(queue) - 1} more)"
                                if len(queue) > 1 else queue[0].title, inline=False)

        embed.set_footer(text=f"🎧 Source: {track.source_kind.value}")
        return embed

    @staticmethod
    def create_added_embed(track, position: int) -> discord.Embed:
        embed = discord.Embed(
            title=get_message('SONG_ADDED'),
            description=f"**[{truncate_text(track.title, 200)}]({track.source_url})**\n🎤 by **{track.author}**",
            color=discord.Color.blue()
        )
        if track.thumbnail_url:
            embed.set_thumbnail(url=track.thumbnail_url)
        embed.add_field(name="⏱️ Duration", value=format_duration(track.duration), inline=True)
        embed.add_field(name="📍 Position", value=f"#{position}", inline=True)
        return embed

    @staticmethod
    def create_playlist_embed(playlist_info: Dict[str, Any], count: int) -> discord.Embed:
        embed = discord.Embed(
            title=get_message('PLAYLIST_ADDED', count=count),
            description=f"**{playlist_info.get('name', 'Unknown Playlist')}**",
            color=discord.Color.purple()
        )
        if playlist_info.get('author'):
            embed.add_field(name="👤 By", value=playlist_info['author'], inline=True)
        embed.set_footer(text=f"🎵 Use {PREFIX}queue to see all loaded songs")
        return embed

    @staticmethod
    def create_search_embed(query: str, results: List) -> discord.Embed:
        embed = discord.Embed(
            title=get_message('SEARCH_TITLE', query=truncate_text(query, 200)),
            description=get_message('SEARCH_PROMPT'),
            color=discord.Color.green()
        )
        for index, track in enumerate(results, 1):
            embed.add_field(
                name=f"{index}. {truncate_text(track.title, 200)}",
                value=f"🎤 {track.author} • ⏱️ {format_duration(track.duration)}",
                inline=False
            )
        return embed

    @staticmethod
    def create_queue_embed(queue, page: int = 1, items_per_page: int = QUEUE_PAGE_SIZE) -> discord.Embed:
        """One page of a GuildQueue"""
        total_songs = len(queue)
        total_pages = max(1, math.ceil(total_songs / items_per_page))
        page = min(max(page, 1), total_pages)
        start_index = (page - 1) * items_per_page

        embed = discord.Embed(title="📋 Music Queue", color=discord.Color.blue())

        if queue.now_playing is not None:
            current = queue.now_playing
            embed.add_field(
                name="▶️ Currently Playing",
                value=f"**{truncate_text(current.title, 80)}**\nby {current.author}",
                inline=False
            )

        if total_songs == 0:
            embed.description = f"📭 **Queue is empty**\nAdd songs with `{PREFIX}play <song name or URL>`"
        else:
            lines = []
            for offset, track in enumerate(queue[start_index:start_index + items_per_page]):
                position = start_index + offset + 1
                lines.append(f"`{position:2d}.` **{truncate_text(track.title, 60)}** "
                             f"`[{format_duration(track.duration)}]`\n     🎤 {track.author}")
            embed.description = "\n".join(lines)
            embed.set_footer(
                text=f"Page {page}/{total_pages} • {total_songs} songs • "
                     f"{format_duration(queue.total_duration)} total"
            )

        if queue.playlist_info:
            embed.add_field(
                name="📀 Active Playlist",
                value=f"**{queue.playlist_info.get('name', 'Unknown Playlist')}**\n"
                      f"{queue.playlist_info.get('count', 0)} songs",
                inline=True
            )
        return embed

    @staticmethod
    def create_help_embed(commands_dict: Dict[str, List[str]], bot_user: discord.User = None) -> discord.Embed:
        embed = discord.Embed(
            title="🎵 RagaBot - Command Help",
            description="Here are all the available commands organized by category:",
            color=discord.Color.gold()
        )
        if bot_user:
            embed.set_thumbnail(url=bot_user.display_avatar.url)

        for category, lines in commands_dict.items():
            if lines:
                embed.add_field(name=f"🎯 {category}", value="\n".join(lines), inline=False)

        embed.add_field(
            name="💡 Pro Tips",
            value=(f"• `{PREFIX}play` takes song names or YouTube/Spotify/SoundCloud links\n"
                   f"• Every command also works as a slash command\n"
                   f"• Use the buttons under the now playing card for quick control"),
            inline=False
        )
        embed.set_footer(text="🎧 Short aliases work too, e.g. p, s, q, np")
        return embed


class MusicControlView(discord.ui.View):
    """Persistent playback buttons attached to now playing cards"""

    def __init__(self, registry, settings_store=None):
        super().__init__(timeout=None)
        self.registry = registry
        self.settings_store = settings_store

    async def _session_for(self, interaction: discord.Interaction):
        """Session the user may control, or None after replying why not"""
        session = self.registry.get(interaction.guild_id) if interaction.guild_id else None
        if session is None or not session.controller.is_connected:
            await interaction.response.send_message(get_message('NOT_CONNECTED'), ephemeral=True)
            return None
        voice = getattr(interaction.user, 'voice', None)
        if voice is None or voice.channel != session.controller.voice.channel:
            await interaction.response.send_message(get_message('NO_VOICE_CHANNEL'), ephemeral=True)
            return None
        return session

    async def _step_volume(self, interaction: discord.Interaction, delta: int):
        session = await self._session_for(interaction)
        if session is None:
            return
        level = min(100, max(0, session.queue.volume + delta))
        session.controller.set_volume(level)
        if self.settings_store is not None:
            await self.settings_store.update_volume(interaction.guild_id, level)
        await interaction.response.send_message(
            f"{get_message('VOLUME_SET')} **{level}%**\n{ProgressBar.create_volume_bar(level)}", ephemeral=True)

    @discord.ui.button(emoji="⏮️", style=discord.ButtonStyle.secondary, custom_id="music:previous")
    async def previous_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = await self._session_for(interaction)
        if session is None:
            return
        await interaction.response.defer(ephemeral=True, thinking=True)
        recalled = await session.controller.previous()
        message = f"⏮️ {recalled}" if recalled else get_message('NO_PREVIOUS')
        await interaction.followup.send(message, ephemeral=True)

    @discord.ui.button(emoji="⏯️", style=discord.ButtonStyle.primary, custom_id="music:pause_resume")
    async def pause_resume_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = await self._session_for(interaction)
        if session is None:
            return
        controller = session.controller
        if controller.pause():
            message = get_message('MUSIC_PAUSED')
        elif controller.resume():
            message = get_message('MUSIC_RESUMED')
        else:
            message = get_message('NO_SONG_PLAYING')
        await interaction.response.send_message(message, ephemeral=True)

    @discord.ui.button(emoji="⏭️", style=discord.ButtonStyle.primary, custom_id="music:skip")
    async def skip_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = await self._session_for(interaction)
        if session is None:
            return
        await interaction.response.defer(ephemeral=True, thinking=True)
        outcome = await request_skip(session, interaction.user)
        await interaction.followup.send(skip_outcome_message(outcome), ephemeral=True)

    @discord.ui.button(emoji="⏹️", style=discord.ButtonStyle.danger, custom_id="music:stop")
    async def stop_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = await self._session_for(interaction)
        if session is None:
            return
        await self.registry.destroy(interaction.guild_id)
        await interaction.response.send_message(get_message('MUSIC_STOPPED'), ephemeral=True)

    @discord.ui.button(emoji="🔂", style=discord.ButtonStyle.secondary, custom_id="music:loop", row=1)
    async def loop_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = await self._session_for(interaction)
        if session is None:
            return
        enabled = session.controller.toggle_loop()
        if self.settings_store is not None:
            await self.settings_store.update_loop_mode(interaction.guild_id, enabled)
        await interaction.response.send_message(get_message('LOOP_ON' if enabled else 'LOOP_OFF'), ephemeral=True)

    @discord.ui.button(emoji="🤖", style=discord.ButtonStyle.secondary, custom_id="music:autoplay", row=1)
    async def autoplay_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = await self._session_for(interaction)
        if session is None:
            return
        enabled = session.controller.toggle_autoplay()
        if self.settings_store is not None:
            await self.settings_store.update_autoplay(interaction.guild_id, enabled)
        await interaction.response.send_message(get_message('AUTOPLAY_ON' if enabled else 'AUTOPLAY_OFF'),
                                                ephemeral=True)

    @discord.ui.button(emoji="🔀", style=discord.ButtonStyle.secondary, custom_id="music:shuffle", row=1)
    async def shuffle_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = await self._session_for(interaction)
        if session is None:
            return
        if session.queue.is_empty():
            await interaction.response.send_message(get_message('QUEUE_EMPTY'), ephemeral=True)
            return
        session.queue.shuffle()
        await interaction.response.send_message(get_message('QUEUE_SHUFFLED'), ephemeral=True)

    @discord.ui.button(emoji="📋", style=discord.ButtonStyle.secondary, custom_id="music:queue", row=1)
    async def queue_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        session = self.registry.get(interaction.guild_id) if interaction.guild_id else None
        if session is None:
            await interaction.response.send_message(get_message('QUEUE_EMPTY'), ephemeral=True)
            return
        await interaction.response.send_message(embed=EnhancedEmbed.create_queue_embed(session.queue),
                                                ephemeral=True)

    @discord.ui.button(emoji="🔉", label="Volume -", style=discord.ButtonStyle.secondary,
                       custom_id="music:volume_down", row=2)
    async def volume_down_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._step_volume(interaction, -VOLUME_STEP)

    @discord.ui.button(emoji="🔊", label="Volume +", style=discord.ButtonStyle.secondary,
                       custom_id="music:volume_up", row=2)
    async def volume_up_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._step_volume(interaction, VOLUME_STEP)


def skip_outcome_message(outcome) -> str:
    if outcome.status == 'idle':
        return get_message('NO_SONG_PLAYING')
    if outcome.status == 'already_voted':
        return get_message('SKIP_ALREADY_VOTED')
    if outcome.status == 'voted':
        return get_message('SKIP_VOTE', votes=outcome.votes, required=outcome.required)
    return f"{get_message('SONG_SKIPPED')} {outcome.track}"


class SearchResultView(discord.ui.View):
    """Dropdown of search results; the member who searched picks one to queue"""

    def __init__(self, registry, guild_id: int, results: List, requester_id: int, timeout: float = 60):
        super().__init__(timeout=timeout)
        self.registry = registry
        self.guild_id = guild_id
        self.results = list(results)
        self.requester_id = requester_id
        self.message: Optional[discord.Message] = None

        options = [
            discord.SelectOption(
                label=truncate_text(track.title, 100),
                description=truncate_text(f"{track.author} • {format_duration(track.duration)}", 100),
                value=str(index),
                emoji="🎵",
            )
            for index, track in enumerate(self.results)
        ]
        self.select = discord.ui.Select(custom_id="song_select", placeholder=get_message('SEARCH_PLACEHOLDER'),
                                        options=options, min_values=1, max_values=1)
        self.select.callback = self.on_select
        self.add_item(self.select)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.requester_id:
            await interaction.response.send_message(get_message('SEARCH_NOT_YOURS'), ephemeral=True)
            return False
        return True

    async def on_select(self, interaction: discord.Interaction):
        await self.choose(interaction, int(self.select.values[0]))

    async def choose(self, interaction: discord.Interaction, index: int):
        """Queue result `index` in the guild the search was made in"""
        track = self.results[index]
        self.stop()

        session = self.registry.get(self.guild_id)
        if session is None or not session.controller.is_connected:
            await interaction.response.edit_message(content=get_message('NOT_CONNECTED'), embed=None, view=None)
            return

        # Answer first, resolving the first track can outlast the interaction window
        await interaction.response.edit_message(content=f"{get_message('SEARCH_PICKED')} {track}",
                                                embed=None, view=None)
        try:
            await session.controller.play([track])
        except QueueFullError as e:
            await interaction.followup.send(get_message('QUEUE_FULL', capacity=e.capacity), ephemeral=True)

    async def on_timeout(self):
        if self.message is None:
            return
        try:
            await self.message.edit(content=get_message('SEARCH_EXPIRED'), view=None)
        except discord.HTTPException as e:
            logger.debug(f"Could not expire search menu: {e}")


class ChannelNotifier:
    """Posts playback events from a PlaybackController into a text channel"""

    def __init__(self, channel: discord.abc.Messageable, view: Optional[discord.ui.View] = None):
        self.channel = channel
        self.view = view

    async def __call__(self, event: str, controller=None, **data):
        if event == 'now_playing':
            queue = controller.queue if controller is not None else None
            embed = EnhancedEmbed.create_now_playing_embed(data['track'], queue)
            if self.view is not None:
                await self.channel.send(embed=embed, view=self.view)
            else:
                await self.channel.send(embed=embed)
        elif event == 'resolution_failed':
            error = data['error']
            await self.channel.send(get_message(RESOLUTION_MESSAGES[error.reason], title=data['track'].title))
        elif event == 'queue_finished':
            await self.channel.send(get_message('QUEUE_FINISHED'))
        else:
            logger.debug(f"Unhandled playback event '{event}'")
