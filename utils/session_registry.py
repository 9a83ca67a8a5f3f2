"""
Guild session registry for RagaBot
One queue and playback controller per guild, created lazily and reaped when idle
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from config.settings import IDLE_TIMEOUT, MAX_QUEUE_SIZE, REAPER_INTERVAL
from utils.guild_queue import GuildQueue
from utils.playback_controller import PlaybackController
from utils.track_resolver import TrackResolver

logger = logging.getLogger('music')


@dataclass
class GuildSession:
    queue: GuildQueue
    controller: PlaybackController

    @property
    def guild_id(self) -> int:
        return self.queue.guild_id


class GuildSessionRegistry:
    """Process-wide map of guild id to GuildSession"""

    def __init__(self, resolver: TrackResolver, settings_store=None, *,
                 controller_factory: Callable[..., PlaybackController] = PlaybackController,
                 idle_timeout: float = IDLE_TIMEOUT, reaper_interval: float = REAPER_INTERVAL,
                 max_queue_size: int = MAX_QUEUE_SIZE):
        self.resolver = resolver
        self.settings_store = settings_store
        self.controller_factory = controller_factory
        self.idle_timeout = idle_timeout
        self.reaper_interval = reaper_interval
        self.max_queue_size = max_queue_size
        self._sessions: Dict[int, GuildSession] = {}
        self._creating: Dict[int, asyncio.Lock] = {}
        self._reaper_task: Optional[asyncio.Task] = None

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, guild_id: int):
        return guild_id in self._sessions

    def get(self, guild_id: int) -> Optional[GuildSession]:
        """Existing session, touched, or None"""
        session = self._sessions.get(guild_id)
        if session is not None:
            session.queue.touch()
        return session

    def sessions(self) -> List[GuildSession]:
        return list(self._sessions.values())

    async def acquire(self, guild_id: int, notifier=None) -> GuildSession:
        """Session for a guild, created with stored defaults on first use"""
        session = self.get(guild_id)
        if session is not None:
            if notifier is not None:
                session.controller.notifier = notifier
            return session

        lock = self._creating.setdefault(guild_id, asyncio.Lock())
        async with lock:
            session = self.get(guild_id)
            if session is None:
                settings = {}
                if self.settings_store is not None:
                    settings = await self.settings_store.get_guild_settings(guild_id)
                queue = GuildQueue(
                    guild_id,
                    max_size=self.max_queue_size,
                    volume=settings.get('volume', 50),
                    loop=settings.get('loop_mode', False),
                    autoplay=settings.get('autoplay', False),
                )
                controller = self.controller_factory(queue, self.resolver, notifier=notifier)
                session = GuildSession(queue, controller)
                self._sessions[guild_id] = session
                logger.info(f"🆕 Created session for guild {guild_id}")
            elif notifier is not None:
                session.controller.notifier = notifier
        self._creating.pop(guild_id, None)
        return session

    async def destroy(self, guild_id: int) -> bool:
        """Tear a session down; the entry is removed even if teardown fails"""
        session = self._sessions.pop(guild_id, None)
        if session is None:
            return False
        try:
            await session.controller.shutdown()
        except Exception as e:
            logger.warning(f"⚠️ Teardown of guild {guild_id} failed: {e}")
        logger.info(f"🗑️ Destroyed session for guild {guild_id}")
        return True

    async def reap_idle(self) -> int:
        """Destroy sessions that are empty and inactive past the timeout"""
        idle = [
            guild_id for guild_id, session in self._sessions.items()
            if not session.controller.is_active and session.queue.is_idle_for(self.idle_timeout)
        ]
        for guild_id in idle:
            await self.destroy(guild_id)
        if idle:
            logger.info(f"🧹 Reaped {len(idle)} idle sessions")
        return len(idle)

    def start_reaper(self):
        if self._reaper_task is None or self._reaper_task.done():
            self._reaper_task = asyncio.create_task(self._reaper_loop())

    async def _reaper_loop(self):
        while True:
            await asyncio.sleep(self.reaper_interval)
            try:
                await self.reap_idle()
            except Exception as e:
                logger.exception(f"❌ Idle reaper pass failed: {e}")

    async def shutdown(self):
        """Stop the reaper and tear down every session"""
        if self._reaper_task is not None:
            self._reaper_task.cancel()
            self._reaper_task = None
        for guild_id in list(self._sessions):
            await self.destroy(guild_id)
