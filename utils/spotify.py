"""
Spotify lookups for RagaBot
Turns Spotify track, album and playlist links into Track metadata
"""
import asyncio
import functools
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import spotipy
from spotipy.oauth2 import SpotifyClientCredentials

from config.settings import PLAYLIST_LIMIT, SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET
from utils.exceptions import YTDLError
from utils.retry import retry_with_backoff
from utils.track import Track

logger = logging.getLogger('music')

SPOTIFY_URL_RE = re.compile(r'open\.spotify\.com/(?:intl-\w+/)?(track|album|playlist)/([A-Za-z0-9]+)')


def parse_spotify_url(url: str) -> Optional[Tuple[str, str]]:
    """Return (kind, id) for a Spotify link, or None"""
    match = SPOTIFY_URL_RE.search(url or '')
    if not match:
        return None
    return match.group(1), match.group(2)


class SpotifyLookup:
    """Thin wrapper over spotipy's client-credentials client"""

    def __init__(self, client_id: str = SPOTIFY_CLIENT_ID, client_secret: str = SPOTIFY_CLIENT_SECRET,
                 client: spotipy.Spotify = None):
        self._client = client
        if self._client is None and client_id and client_secret:
            auth_manager = SpotifyClientCredentials(client_id=client_id, client_secret=client_secret)
            self._client = spotipy.Spotify(auth_manager=auth_manager)
        if self._client is None:
            logger.warning("Spotify credentials not configured, Spotify links are disabled")

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def _call(self, method: str, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(getattr(self._client, method), *args, **kwargs))

    @retry_with_backoff(attempts=3, base_delay=1.0, retry_on=(spotipy.SpotifyException, ConnectionError))
    async def fetch(self, url: str, requested_by: Any = None) -> Tuple[List[Track], Optional[Dict[str, Any]]]:
        """Tracks behind a Spotify link plus playlist metadata for albums and playlists"""
        if not self.enabled:
            raise YTDLError('Spotify support is not configured on this bot')

        parsed = parse_spotify_url(url)
        if parsed is None:
            raise YTDLError(f"Not a Spotify track, album or playlist link: `{url}`")
        kind, item_id = parsed

        if kind == 'track':
            item = await self._call('track', item_id)
            return [Track.from_spotify(item, requested_by)], None

        if kind == 'album':
            album = await self._call('album', item_id)
            items = (await self._call('album_tracks', item_id, limit=PLAYLIST_LIMIT))['items']
            # album_tracks omits the album block, borrow it for thumbnails
            tracks = [Track.from_spotify({**item, 'album': album}, requested_by) for item in items]
            info = {'name': album.get('name'), 'author': ', '.join(a['name'] for a in album.get('artists', [])),
                    'count': len(tracks)}
            return tracks, info

        playlist = await self._call('playlist', item_id)
        items = (await self._call('playlist_items', item_id, limit=PLAYLIST_LIMIT))['items']
        tracks = [Track.from_spotify(entry['track'], requested_by) for entry in items
                  if entry.get('track') and entry['track'].get('name')]
        info = {'name': playlist.get('name'), 'author': (playlist.get('owner') or {}).get('display_name'),
                'count': len(tracks)}
        return tracks, info
