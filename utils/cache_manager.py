"""
Caching layer for RagaBot
Keeps search results and playlist lookups in TTL-bound LRU caches
"""
import asyncio
import hashlib
import logging
import time
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from config.settings import SEARCH_CACHE_SIZE, SEARCH_CACHE_TTL

logger = logging.getLogger('cache')


class CacheEntry:
    """Cached value with its expiry"""

    def __init__(self, data: Any, ttl: float, clock=time.monotonic):
        self.data = data
        self.ttl = ttl
        self._clock = clock
        self.created_at = clock()
        self.access_count = 0

    def is_expired(self) -> bool:
        return self._clock() > self.created_at + self.ttl

    def touch(self):
        self.access_count += 1


class LRUCache:
    """LRU cache with per-entry TTL and a size limit"""

    def __init__(self, max_size: int = 1000, default_ttl: float = 3600, clock=time.monotonic):
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.cache = OrderedDict()
        self._clock = clock
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self):
        return len(self.cache)

    def get(self, key: str) -> Optional[Any]:
        entry = self.cache.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired():
            del self.cache[key]
            self._misses += 1
            return None

        self.cache.move_to_end(key)
        entry.touch()
        self._hits += 1
        return entry.data

    def put(self, key: str, value: Any, ttl: Optional[float] = None):
        self.cache.pop(key, None)
        self.cache[key] = CacheEntry(value, ttl or self.default_ttl, self._clock)

        while len(self.cache) > self.max_size:
            self.cache.popitem(last=False)
            self._evictions += 1

    def clear(self):
        self.cache.clear()

    def cleanup_expired(self) -> int:
        """Remove all expired entries"""
        expired_keys = [key for key, entry in self.cache.items() if entry.is_expired()]
        for key in expired_keys:
            del self.cache[key]
        return len(expired_keys)

    def get_stats(self) -> Dict[str, Any]:
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0
        return {
            'size': len(self.cache),
            'max_size': self.max_size,
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': round(hit_rate, 2),
            'evictions': self._evictions,
        }


class MusicCacheManager:
    """Search and playlist caches shared by every guild"""

    def __init__(self):
        self.search_cache = LRUCache(max_size=SEARCH_CACHE_SIZE, default_ttl=SEARCH_CACHE_TTL)
        self.playlist_cache = LRUCache(max_size=200, default_ttl=3600)
        self._cleanup_task = None

    @staticmethod
    def _generate_key(prefix: str, identifier: str) -> str:
        digest = hashlib.md5(identifier.strip().lower().encode('utf-8')).hexdigest()
        return f"{prefix}:{digest}"

    def get_search_results(self, query: str, limit: int) -> Optional[List[Dict[str, Any]]]:
        return self.search_cache.get(self._generate_key('search', f"{limit}:{query}"))

    def cache_search_results(self, query: str, limit: int, results: List[Dict[str, Any]]):
        self.search_cache.put(self._generate_key('search', f"{limit}:{query}"), results)

    def get_playlist(self, url: str) -> Optional[Dict[str, Any]]:
        return self.playlist_cache.get(self._generate_key('playlist', url))

    def cache_playlist(self, url: str, data: Dict[str, Any]):
        self.playlist_cache.put(self._generate_key('playlist', url), data)

    def cleanup_expired_entries(self) -> int:
        cleaned = self.search_cache.cleanup_expired() + self.playlist_cache.cleanup_expired()
        if cleaned:
            logger.info(f"🧹 Removed {cleaned} expired cache entries")
        return cleaned

    async def start_background_cleanup(self, interval: int = 600):
        """Start periodic expiry sweeps"""
        if self._cleanup_task and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop(interval))

    async def _cleanup_loop(self, interval: int):
        while True:
            await asyncio.sleep(interval)
            self.cleanup_expired_entries()

    def stop_background_cleanup(self):
        if self._cleanup_task:
            self._cleanup_task.cancel()
            self._cleanup_task = None

    def get_comprehensive_stats(self) -> Dict[str, Any]:
        return {
            'search': self.search_cache.get_stats(),
            'playlist': self.playlist_cache.get_stats(),
        }


# Global cache manager instance
cache_manager = MusicCacheManager()
