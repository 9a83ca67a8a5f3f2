"""
TrackResolver for RagaBot
Turns Track records into playable streams through an ordered fallback chain,
and turns user queries into Track records
"""
import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import parse_qs, urlparse

from config.settings import (
    MIN_CANDIDATE_DURATION,
    PLAYLIST_LIMIT,
    RESOLVE_ATTEMPTS,
    RESOLVE_BACKOFF_BASE,
    SEARCH_RESULT_LIMIT,
    YDL_FALLBACK_OPTIONS,
    YDL_OPTIONS,
)
from utils.exceptions import ResolutionError, ResolutionReason, YTDLError
from utils.retry import retry_async
from utils.spotify import SpotifyLookup, parse_spotify_url
from utils.track import Track
from utils.ytdl_source import YTDLExtractor, YTDLSearcher

logger = logging.getLogger('music')

BLOCKED_MARKERS = ('403', 'forbidden', '429', 'too many requests', 'sign in to confirm',
                   'not a bot', 'blocked')
SOUNDCLOUD_SET_MARKER = '/sets/'


class NoStreamFound(Exception):
    """An extractor answered but gave no playable URL"""
    pass


@dataclass
class PlayableStream:
    """Direct media URL plus what is needed to open it"""
    track: Track
    stream_url: str
    extractor: str
    candidate_url: str
    http_headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class LookupResult:
    tracks: List[Track]
    playlist_info: Optional[Dict[str, Any]] = None

    @property
    def is_playlist(self) -> bool:
        return self.playlist_info is not None


def is_url(query: str) -> bool:
    return query.startswith(('http://', 'https://'))


def is_playlist_url(url: str) -> bool:
    """Whole-playlist links only; a video shared from inside a playlist or mix is one track"""
    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    path = parsed.path.lower()
    if 'soundcloud.com' in parsed.netloc.lower():
        return SOUNDCLOUD_SET_MARKER in path
    if 'list' not in params or parsed.netloc.lower().endswith('youtu.be'):
        return False
    return path.rstrip('/').endswith('/playlist') or 'v' not in params


def too_short(track: Track, minimum: int = MIN_CANDIDATE_DURATION) -> bool:
    """Known duration under the minimum; unknown durations pass"""
    return 0 < track.duration < minimum


def classify_failure(errors: Iterable[BaseException]) -> ResolutionReason:
    """Pick the user-facing reason for a failed resolution"""
    errors = list(errors)
    if not errors or all(isinstance(error, NoStreamFound) for error in errors):
        return ResolutionReason.NO_STREAM
    for error in errors:
        text = str(error).lower()
        if any(marker in text for marker in BLOCKED_MARKERS):
            return ResolutionReason.BLOCKED
    return ResolutionReason.GENERIC


class TrackResolver:
    """Stream acquisition with primary, secondary and search fallbacks"""

    def __init__(self, primary: YTDLExtractor = None, secondary: YTDLExtractor = None,
                 searcher: YTDLSearcher = None, spotify: SpotifyLookup = None, *,
                 attempts: int = RESOLVE_ATTEMPTS, base_delay: float = RESOLVE_BACKOFF_BASE,
                 min_duration: int = MIN_CANDIDATE_DURATION, sleep=asyncio.sleep, rng: random.Random = None):
        self.primary = primary or YTDLExtractor('primary', YDL_OPTIONS)
        self.secondary = secondary or YTDLExtractor('secondary', YDL_FALLBACK_OPTIONS)
        self.searcher = searcher or YTDLSearcher()
        self.spotify = spotify if spotify is not None else SpotifyLookup()
        self.attempts = attempts
        self.base_delay = base_delay
        self.min_duration = min_duration
        self._sleep = sleep
        self._rng = rng or random.Random()

    @staticmethod
    def query_variants(track: Track) -> List[str]:
        """Alternate searches for a track, most specific first"""
        variants = [
            f"{track.title} {track.author}",
            track.title,
            f"{track.title} audio",
            f"{track.author} {track.title}",
        ]
        seen = []
        for variant in variants:
            if variant not in seen:
                seen.append(variant)
        return seen

    async def _extract_or_fail(self, extractor: YTDLExtractor, target: str) -> Dict[str, Any]:
        info = await extractor.extract(target)
        if not info or not info.get('url'):
            raise NoStreamFound(f"{extractor.name} extractor returned no stream for {target}")
        return info

    async def _try_extractors(self, track: Track, target: str, errors: list) -> Optional[PlayableStream]:
        """Primary then secondary extractor on one target, each with retries"""
        for extractor in (self.primary, self.secondary):
            try:
                info = await retry_async(
                    self._extract_or_fail, extractor, target,
                    attempts=self.attempts, base_delay=self.base_delay, sleep=self._sleep,
                )
            except Exception as e:
                errors.append(e)
                logger.warning(f"⚠️ {extractor.name} extractor failed for '{track.title}': {e}")
                continue

            logger.info(f"✅ Resolved '{track.title}' with {extractor.name} extractor")
            return PlayableStream(
                track=track,
                stream_url=info['url'],
                extractor=extractor.name,
                candidate_url=info.get('webpage_url') or target,
                http_headers=dict(info.get('http_headers') or {}),
            )
        return None

    async def resolve(self, track: Track) -> PlayableStream:
        """Playable stream for `track`, or ResolutionError once every strategy failed"""
        errors = []
        stream = await self._try_extractors(track, track.extraction_target, errors)
        if stream is not None:
            return stream

        if not track.is_direct:
            tried = {track.source_url, track.extraction_target}
            for query in self.query_variants(track):
                try:
                    results = await self.searcher.search(query, SEARCH_RESULT_LIMIT)
                except Exception as e:
                    errors.append(e)
                    logger.warning(f"⚠️ Fallback search '{query}' failed: {e}")
                    continue

                for entry in results:
                    candidate = Track.from_ytdl(entry, track.requested_by, searched=True)
                    if too_short(candidate, self.min_duration) or candidate.source_url in tried:
                        continue
                    tried.add(candidate.source_url)
                    stream = await self._try_extractors(track, candidate.source_url, errors)
                    if stream is not None:
                        return stream

        reason = classify_failure(errors)
        logger.error(f"❌ Could not resolve '{track.title}' ({reason.value}) after {len(errors)} failures")
        raise ResolutionError(reason, f"Could not play {track.title} ({reason.value})", title=track.title)

    async def search(self, query: str, limit: int = SEARCH_RESULT_LIMIT, requested_by: Any = None) -> List[Track]:
        entries = await self.searcher.search(query, limit)
        return [Track.from_ytdl(entry, requested_by, searched=True) for entry in entries]

    async def lookup(self, query: str, requested_by: Any = None) -> LookupResult:
        """Tracks a user's play query refers to"""
        query = query.strip()
        if not query:
            raise YTDLError('Nothing to search for')

        if is_url(query):
            if parse_spotify_url(query):
                tracks, info = await self.spotify.fetch(query, requested_by)
                if not tracks:
                    raise YTDLError(f"Couldn't find any tracks behind `{query}`")
                return LookupResult(tracks, info)

            if is_playlist_url(query):
                return await self._lookup_playlist(query, requested_by)

            info = await self.primary.extract(query)
            if not info:
                raise YTDLError(f"Couldn't fetch `{query}`")
            return LookupResult([Track.from_ytdl(info, requested_by)])

        candidates = await self.search(query, SEARCH_RESULT_LIMIT, requested_by)
        if not candidates:
            raise YTDLError(f"Couldn't find anything that matches `{query}`")
        full_length = [track for track in candidates if not too_short(track, self.min_duration)]
        return LookupResult([(full_length or candidates)[0]])

    async def _lookup_playlist(self, url: str, requested_by: Any) -> LookupResult:
        info = await self.searcher.playlist(url, PLAYLIST_LIMIT)
        tracks = [Track.from_ytdl(entry, requested_by) for entry in info.get('entries', [])]
        if not tracks:
            raise YTDLError(f"Couldn't extract any tracks from playlist `{url}`")
        playlist_info = {
            'name': info.get('title') or 'Unknown Playlist',
            'author': info.get('uploader') or info.get('channel'),
            'count': len(tracks),
        }
        return LookupResult(tracks, playlist_info)

    async def suggest(self, last_track: Track, exclude: Iterable[str] = ()) -> Optional[Track]:
        """Autoplay pick related to `last_track`, or None"""
        if last_track.author and last_track.author != 'Unknown Artist':
            query = f"{last_track.author} similar songs"
        else:
            query = f"{last_track.title} similar songs"

        try:
            results = await self.search(query, SEARCH_RESULT_LIMIT)
        except Exception as e:
            logger.warning(f"⚠️ Autoplay search failed for '{query}': {e}")
            return None

        excluded = set(exclude) | {last_track.source_url}
        candidates = [
            track for track in results
            if track.source_url not in excluded
            and not too_short(track, self.min_duration)
            and not _same_title(track.title, last_track.title)
        ]
        if not candidates:
            return None
        return self._rng.choice(candidates[:4])


def _same_title(left: str, right: str) -> bool:
    def normalize(text):
        return re.sub(r'[^a-z0-9]+', '', (text or '').lower())
    return normalize(left) == normalize(right)
