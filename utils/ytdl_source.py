"""
yt-dlp integration for RagaBot
Stream extraction, text search, playlist listing and the FFmpeg audio source
"""
import asyncio
import functools
import logging
import random
from typing import Any, Dict, List, Optional, Sequence

import discord
import yt_dlp

from config.settings import (
    FFMPEG_EXECUTABLE,
    FFMPEG_OPTIONS,
    PLAYLIST_LIMIT,
    USER_AGENTS,
    YDL_OPTIONS,
)
from utils.cache_manager import cache_manager

logger = logging.getLogger('music')


def first_entry(info: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Unwrap search/playlist results down to the first real entry"""
    if info is None or 'entries' not in info:
        return info
    for entry in info['entries'] or []:
        if entry:
            return entry
    return None


class YTDLExtractor:
    """Turns a page URL (or ytsearch1: query) into a direct audio URL"""

    def __init__(self, name: str, options: Dict[str, Any] = None, user_agents: Sequence[str] = USER_AGENTS):
        self.name = name
        self.options = dict(options or YDL_OPTIONS)
        self.user_agents = list(user_agents)

    def _build_options(self) -> Dict[str, Any]:
        headers = {'User-Agent': random.choice(self.user_agents)} if self.user_agents else {}
        return {**self.options, 'http_headers': headers}

    def _extract(self, target: str, options: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with yt_dlp.YoutubeDL(options) as ydl:
            return first_entry(ydl.extract_info(target, download=False))

    async def extract(self, target: str) -> Optional[Dict[str, Any]]:
        """Full info dict for `target`, or None when nothing came back"""
        loop = asyncio.get_running_loop()
        options = self._build_options()
        info = await loop.run_in_executor(None, functools.partial(self._extract, target, options))
        if info is not None and not info.get('http_headers'):
            info['http_headers'] = options['http_headers']
        return info


class YTDLSearcher:
    """Flat yt-dlp searches and playlist listings, cached"""

    def __init__(self, options: Dict[str, Any] = None, cache=cache_manager):
        self.options = {**(options or YDL_OPTIONS), 'extract_flat': 'in_playlist', 'skip_download': True}
        self.cache = cache

    def _flat_entries(self, target: str, options: Dict[str, Any]) -> Dict[str, Any]:
        with yt_dlp.YoutubeDL(options) as ydl:
            info = ydl.extract_info(target, download=False) or {}
        info['entries'] = [entry for entry in (info.get('entries') or []) if entry]
        return info

    async def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        cached = self.cache.get_search_results(query, limit)
        if cached is not None:
            return cached

        loop = asyncio.get_running_loop()
        info = await loop.run_in_executor(
            None, functools.partial(self._flat_entries, f"ytsearch{limit}:{query}", self.options))
        results = info['entries'][:limit]
        self.cache.cache_search_results(query, limit, results)
        logger.info(f"🔍 Search '{query}' returned {len(results)} results")
        return results

    async def playlist(self, url: str, limit: int = PLAYLIST_LIMIT) -> Dict[str, Any]:
        cached = self.cache.get_playlist(url)
        if cached is not None:
            return cached

        options = {**self.options, 'noplaylist': False, 'playlistend': limit}
        loop = asyncio.get_running_loop()
        info = await loop.run_in_executor(None, functools.partial(self._flat_entries, url, options))
        info['entries'] = info['entries'][:limit]
        self.cache.cache_playlist(url, info)
        return info


class YTDLSource(discord.PCMVolumeTransformer):
    """FFmpeg audio source with volume control, built from a resolved stream"""

    def __init__(self, source: discord.AudioSource, *, stream, volume: float = 0.5):
        super().__init__(source, volume)
        self.stream = stream
        self.track = stream.track

    @classmethod
    def from_stream(cls, stream, volume: int):
        """Audio source for a PlayableStream at a 0-100 volume"""
        before_options = FFMPEG_OPTIONS['before_options']
        user_agent = (stream.http_headers or {}).get('User-Agent')
        if user_agent:
            before_options = f'{before_options} -user_agent "{user_agent}"'
        audio = discord.FFmpegPCMAudio(
            stream.stream_url,
            before_options=before_options,
            options=FFMPEG_OPTIONS['options'],
            executable=FFMPEG_EXECUTABLE,
        )
        return cls(audio, stream=stream, volume=volume / 100)

    def __str__(self):
        return str(self.track)
