"""
RagaBot - Main Entry Point
A modular Discord music bot with per-server queues, autoplay and a health endpoint
"""
import asyncio
import logging
import sys

import discord
from discord.ext import commands

from config import PREFIX, TOKEN, VERSION, get_bot_intents
from config.settings import FFMPEG_EXECUTABLE, HEALTH_PORT
from utils.cache_manager import cache_manager
from utils.database_manager import database_manager
from utils.error_handler import error_handler
from utils.health_server import HealthServer
from utils.helpers import on_voice_state_update_handler, set_bot_instance, update_bot_status
from utils.logging_manager import logging_manager
from utils.session_registry import GuildSessionRegistry
from utils.track_resolver import TrackResolver

from cogs import Info, Music

logger = logging.getLogger('bot')


async def get_prefix(bot: commands.Bot, message: discord.Message):
    """Per-server prefix, with mentions always working"""
    prefix = PREFIX
    if message.guild is not None:
        prefix = await database_manager.get_prefix(message.guild.id)
    return commands.when_mentioned_or(prefix)(bot, message)


class MusicBot(commands.Bot):
    """Main bot class wiring the playback core to Discord"""

    def __init__(self):
        super().__init__(command_prefix=get_prefix, intents=get_bot_intents(), case_insensitive=True)

        # Custom help lives in the Info cog
        self.remove_command('help')

        self.resolver = None
        self.registry = None
        self.health_server = None
        self._status_task = None

        set_bot_instance(self)

    def runtime_stats(self):
        sessions = self.registry.sessions() if self.registry else []
        return {
            'guilds': len(self.guilds),
            'active_sessions': len(sessions),
            'playing': sum(1 for session in sessions if session.queue.now_playing is not None),
            'latency_ms': round(self.latency * 1000) if self.is_ready() else None,
        }

    async def setup_hook(self):
        """Called once before the gateway connection"""
        logging_manager.setup()
        logger.info("🔧 Setting up bot...")

        await database_manager.initialize_database()

        self.resolver = TrackResolver()
        self.registry = GuildSessionRegistry(self.resolver, database_manager)
        self.registry.start_reaper()
        await cache_manager.start_background_cleanup(interval=600)

        await self.add_cog(Music(self))
        await self.add_cog(Info(self))
        logger.info("✅ All cogs loaded successfully")

        self.health_server = HealthServer(HEALTH_PORT, stats_provider=self.runtime_stats, version=VERSION)
        await self.health_server.start()

        synced = await self.tree.sync()
        logger.info(f"🌲 Synced {len(synced)} slash commands")

    async def on_ready(self):
        logger.info(f"✅ {self.user} has connected to Discord! (ID: {self.user.id})")
        logger.info(f"📊 Connected to {len(self.guilds)} guilds")
        logger.info(f"🎵 FFmpeg: {FFMPEG_EXECUTABLE}")

        if self._status_task is None or self._status_task.done():
            self._status_task = asyncio.create_task(update_bot_status())

    async def on_command_error(self, ctx, error):
        """Global error handler; cog handlers mark what they already answered"""
        await error_handler.handle_error(error, ctx)

    async def on_voice_state_update(self, member, before, after):
        await on_voice_state_update_handler(member, before, after)

    async def close(self):
        logger.info("🛑 Shutting down...")
        if self._status_task is not None:
            self._status_task.cancel()
        if self.registry is not None:
            await self.registry.shutdown()
        cache_manager.stop_background_cleanup()
        await database_manager.close()
        if self.health_server is not None:
            await self.health_server.close()
        await super().close()


def main():
    """Main function to run the bot"""
    if not TOKEN:
        print("❌ TOKEN (or DISCORD_TOKEN) is not set. Add it to your environment or .env file.")
        sys.exit(1)

    bot = MusicBot()
    try:
        bot.run(TOKEN, log_handler=None)
    except KeyboardInterrupt:
        print("\n🛑 Bot stopped by user")


if __name__ == '__main__':
    main()
