"""
Info Cog for RagaBot
Help and status commands
"""
import platform

import discord
from discord.ext import commands

from config.settings import PREFIX, VERSION, aliases_for, resolve_alias
from utils.cache_manager import cache_manager
from utils.database_manager import database_manager
from utils.error_handler import error_handler
from utils.logging_manager import logging_manager
from utils.ui_enhancements import EnhancedEmbed, format_duration

HELP_SECTIONS = {
    'Playback': [
        ('play <song/url/playlist>', 'Play music or queue a whole playlist'),
        ('search <song>', 'Pick a song from the top search results'),
        ('pause', 'Pause the current song'),
        ('resume', 'Resume a paused song'),
        ('skip', 'Skip the current song (vote if you did not request it)'),
        ('previous', 'Play the previous song again'),
        ('stop', 'Stop, clear the queue and leave'),
        ('nowplaying', 'Show the current song'),
    ],
    'Queue': [
        ('queue [page]', 'Show the queue'),
        ('shuffle', 'Shuffle the queue'),
        ('clear', 'Remove every queued song'),
        ('remove <number>', 'Remove one song'),
        ('move <from> <to>', 'Reorder the queue'),
    ],
    'Settings': [
        ('volume [0-100]', 'Set or check the volume'),
        ('loop [song|off]', 'Loop the current song'),
        ('autoplay [on|off]', 'Play related songs when the queue ends'),
        ('setprefix <prefix>', 'Change the prefix (Manage Server)'),
    ],
    'Voice & Info': [
        ('join', 'Join your voice channel'),
        ('leave', 'Leave the voice channel'),
        ('status', 'Show bot status'),
    ],
}


def format_help_line(prefix: str, usage: str, description: str) -> str:
    name = usage.split()[0]
    aliases = aliases_for(name)
    alias_text = f" ({', '.join(aliases[:3])})" if aliases else ""
    return f"`{prefix}{usage}`{alias_text} - {description}"


class Info(commands.Cog):
    """Information and help commands"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        await error_handler.handle_error(error, ctx, "Info Cog Error")

    @commands.hybrid_command(name='help', aliases=aliases_for('help'), description='Show all commands')
    async def help_command(self, ctx: commands.Context, command: str = None):
        """Shows this help message, or details for one command or alias."""
        prefix = ctx.clean_prefix if ctx.interaction is None else await self._guild_prefix(ctx)
        if command:
            return await self._command_help(ctx, prefix, command)
        sections = {
            category: [format_help_line(prefix, usage, description) for usage, description in lines]
            for category, lines in HELP_SECTIONS.items()
        }
        await ctx.send(embed=EnhancedEmbed.create_help_embed(sections, self.bot.user))

    async def _command_help(self, ctx: commands.Context, prefix: str, name: str):
        target = self.bot.get_command(resolve_alias(name))
        if target is None:
            return await ctx.send(f"❌ No command called `{name}`")
        embed = EnhancedEmbed.create_music_embed(f"{prefix}{target.name} {target.signature}".strip(),
                                                 target.help or target.description)
        aliases = aliases_for(target.name)
        if aliases:
            embed.add_field(name="🔀 Aliases", value=", ".join(f"`{alias}`" for alias in aliases), inline=False)
        await ctx.send(embed=embed)

    async def _guild_prefix(self, ctx: commands.Context) -> str:
        if ctx.guild is None:
            return PREFIX
        return await database_manager.get_prefix(ctx.guild.id)

    @commands.hybrid_command(name='status', aliases=aliases_for('status'), description='Show bot statistics and health')
    async def status_command(self, ctx: commands.Context):
        """Shows bot statistics, playback activity and health."""
        registry = self.bot.registry
        sessions = registry.sessions()
        playing = sum(1 for session in sessions if session.queue.now_playing is not None)
        queued = sum(len(session.queue) for session in sessions)
        health = logging_manager.get_health_status()
        error_stats = error_handler.get_error_statistics()

        embed = discord.Embed(
            title="📊 Bot Status",
            color=discord.Color.green() if health['status'] == 'healthy' else discord.Color.orange()
        )
        embed.add_field(
            name="🌐 Server Info",
            value=f"**Servers:** {len(self.bot.guilds)}\n**Latency:** {round(self.bot.latency * 1000)}ms\n"
                  f"**Uptime:** {format_duration(int(health['uptime']))}",
            inline=True
        )
        embed.add_field(
            name="🎧 Current Activity",
            value=f"**Sessions:** {len(sessions)}\n**Playing:** {playing}\n**Queued:** {queued} songs",
            inline=True
        )
        embed.add_field(
            name="⚡ Performance",
            value=f"**Commands:** {health['commands_executed']}\n**Errors:** {error_stats['total_errors']}\n"
                  f"**Status:** {health['status']}",
            inline=True
        )

        cache_stats = cache_manager.get_comprehensive_stats()
        db_stats = database_manager.get_database_stats()
        embed.add_field(
            name="🗄️ Storage",
            value=f"**Search cache:** {cache_stats['search']['size']} entries "
                  f"({cache_stats['search']['hit_rate']}% hits)\n"
                  f"**Settings cache:** {db_stats['cache_hit_rate']}% hits",
            inline=False
        )

        if ctx.guild is not None:
            top = await database_manager.get_command_stats(ctx.guild.id, limit=3)
            if top:
                embed.add_field(
                    name="🏆 Top Commands",
                    value="\n".join(f"`{row['command']}` × {row['uses']}" for row in top),
                    inline=False
                )

        embed.set_footer(
            text=f"RagaBot v{VERSION} • Python {platform.python_version()} • discord.py {discord.__version__}"
        )
        await ctx.send(embed=embed)


async def setup(bot):
    await bot.add_cog(Info(bot))
