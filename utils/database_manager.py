"""
Database Manager for RagaBot
Guild settings and command usage statistics in SQLite
"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from config.settings import DATABASE_PATH, DEFAULT_VOLUME, PREFIX, SETTINGS_CACHE_TTL

logger = logging.getLogger('database')


def default_settings(guild_id: int) -> Dict[str, Any]:
    return {
        'guild_id': guild_id,
        'prefix': PREFIX,
        'volume': DEFAULT_VOLUME,
        'autoplay': False,
        'loop_mode': False,
    }


class DatabaseManager:
    """Settings store backed by aiosqlite"""

    SETTING_COLUMNS = ('prefix', 'volume', 'autoplay', 'loop_mode')

    def __init__(self, db_path: str = DATABASE_PATH, cache_ttl: float = SETTINGS_CACHE_TTL):
        self.db_path = Path(db_path)
        self._cache_ttl = cache_ttl
        self._guild_settings_cache = {}
        self._cache_timestamps = {}
        self._pending_writes = set()

        self.db_operations = 0
        self.cache_hits = 0
        self.cache_misses = 0

    async def initialize_database(self):
        """Create tables if they do not exist yet"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        async with self.get_connection() as db:
            await db.execute(f"""
                CREATE TABLE IF NOT EXISTS guild_settings (
                    guild_id INTEGER PRIMARY KEY,
                    prefix TEXT DEFAULT '{PREFIX}',
                    volume INTEGER DEFAULT {DEFAULT_VOLUME},
                    autoplay INTEGER DEFAULT 0,
                    loop_mode INTEGER DEFAULT 0,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS command_stats (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    guild_id INTEGER,
                    user_id INTEGER,
                    command TEXT NOT NULL,
                    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            await db.execute("CREATE INDEX IF NOT EXISTS idx_command_stats_guild ON command_stats(guild_id)")
            await db.commit()

        logger.info(f"🗄️ Database initialized at {self.db_path}")

    @asynccontextmanager
    async def get_connection(self):
        """Open a connection for one unit of work"""
        conn = await aiosqlite.connect(self.db_path, timeout=30)
        try:
            self.db_operations += 1
            yield conn
        finally:
            await conn.close()

    def _invalidate(self, guild_id: int):
        self._guild_settings_cache.pop(guild_id, None)
        self._cache_timestamps.pop(guild_id, None)

    async def get_guild_settings(self, guild_id: int) -> Dict[str, Any]:
        """Settings for a guild, creating the default row on first access"""
        cached_at = self._cache_timestamps.get(guild_id)
        if cached_at is not None and time.monotonic() - cached_at < self._cache_ttl:
            self.cache_hits += 1
            return dict(self._guild_settings_cache[guild_id])
        self.cache_misses += 1

        try:
            async with self.get_connection() as db:
                await db.execute("INSERT OR IGNORE INTO guild_settings (guild_id) VALUES (?)", (guild_id,))
                await db.commit()
                cursor = await db.execute(
                    "SELECT guild_id, prefix, volume, autoplay, loop_mode FROM guild_settings WHERE guild_id = ?",
                    (guild_id,)
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error(f"❌ Failed to read settings for guild {guild_id}: {e}")
            return default_settings(guild_id)

        settings = {
            'guild_id': row[0],
            'prefix': row[1],
            'volume': int(row[2]),
            'autoplay': bool(row[3]),
            'loop_mode': bool(row[4]),
        }
        self._guild_settings_cache[guild_id] = settings
        self._cache_timestamps[guild_id] = time.monotonic()
        return dict(settings)

    async def update_guild_setting(self, guild_id: int, setting_name: str, setting_value: Any) -> bool:
        """Update one settings column"""
        if setting_name not in self.SETTING_COLUMNS:
            raise ValueError(f"Unknown guild setting: {setting_name}")

        try:
            async with self.get_connection() as db:
                await db.execute("INSERT OR IGNORE INTO guild_settings (guild_id) VALUES (?)", (guild_id,))
                await db.execute(f"""
                    UPDATE guild_settings
                    SET {setting_name} = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE guild_id = ?
                """, (setting_value, guild_id))
                await db.commit()
        except aiosqlite.Error as e:
            logger.error(f"❌ Failed to update {setting_name} for guild {guild_id}: {e}")
            return False
        finally:
            self._invalidate(guild_id)

        logger.info(f"Guild {guild_id}: {setting_name} -> {setting_value}")
        return True

    async def update_prefix(self, guild_id: int, prefix: str) -> bool:
        return await self.update_guild_setting(guild_id, 'prefix', prefix)

    async def update_volume(self, guild_id: int, volume: int) -> bool:
        return await self.update_guild_setting(guild_id, 'volume', int(volume))

    async def update_autoplay(self, guild_id: int, enabled: bool) -> bool:
        return await self.update_guild_setting(guild_id, 'autoplay', int(bool(enabled)))

    async def update_loop_mode(self, guild_id: int, enabled: bool) -> bool:
        return await self.update_guild_setting(guild_id, 'loop_mode', int(bool(enabled)))

    async def get_prefix(self, guild_id: int) -> str:
        return (await self.get_guild_settings(guild_id))['prefix']

    async def log_command_usage(self, guild_id: Optional[int], user_id: int, command: str) -> bool:
        """Append one usage row"""
        try:
            async with self.get_connection() as db:
                await db.execute(
                    "INSERT INTO command_stats (guild_id, user_id, command) VALUES (?, ?, ?)",
                    (guild_id, user_id, command)
                )
                await db.commit()
            return True
        except aiosqlite.Error as e:
            logger.warning(f"⚠️ Failed to log usage of {command}: {e}")
            return False

    def record_command_usage(self, guild_id: Optional[int], user_id: int, command: str):
        """Fire-and-forget wrapper around log_command_usage"""
        task = asyncio.create_task(self.log_command_usage(guild_id, user_id, command))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def get_command_stats(self, guild_id: int = None, limit: int = 10) -> List[Dict[str, Any]]:
        """Most used commands, optionally for one guild"""
        query = "SELECT command, COUNT(*) AS uses FROM command_stats"
        params = ()
        if guild_id is not None:
            query += " WHERE guild_id = ?"
            params = (guild_id,)
        query += " GROUP BY command ORDER BY uses DESC, command LIMIT ?"

        async with self.get_connection() as db:
            cursor = await db.execute(query, params + (limit,))
            rows = await cursor.fetchall()
        return [{'command': command, 'uses': uses} for command, uses in rows]

    async def close(self):
        """Wait for queued usage writes"""
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)

    def get_database_stats(self) -> Dict[str, Any]:
        total = self.cache_hits + self.cache_misses
        return {
            'operations': self.db_operations,
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'cache_hit_rate': round(self.cache_hits / total * 100, 2) if total else 0,
        }


# Global database manager instance
database_manager = DatabaseManager()
