"""
Track value type for RagaBot
Every extractor result is normalized into a Track at the boundary
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class SourceKind(str, Enum):
    YOUTUBE = 'youtube'
    SPOTIFY = 'spotify'
    SOUNDCLOUD = 'soundcloud'
    FALLBACK_GENERIC = 'fallback-generic'

    @classmethod
    def from_url(cls, url: str) -> 'SourceKind':
        url = (url or '').lower()
        if 'youtube.com' in url or 'youtu.be' in url:
            return cls.YOUTUBE
        if 'spotify.com' in url:
            return cls.SPOTIFY
        if 'soundcloud.com' in url:
            return cls.SOUNDCLOUD
        return cls.FALLBACK_GENERIC


@dataclass(frozen=True)
class Track:
    """A single playable item with its metadata"""
    title: str
    author: str
    duration: int
    source_url: str
    source_kind: SourceKind
    requested_by: Any = None
    thumbnail_url: Optional[str] = None
    searched: bool = field(default=False, compare=False)

    @classmethod
    def from_ytdl(cls, entry: Dict[str, Any], requested_by: Any = None, searched: bool = False) -> 'Track':
        """Build a Track from a yt-dlp info dict (full or flat)"""
        url = entry.get('webpage_url') or entry.get('original_url')
        if not url:
            raw = entry.get('url') or ''
            if raw.startswith('http'):
                url = raw
            elif entry.get('id'):
                url = f"https://www.youtube.com/watch?v={entry['id']}"
            else:
                url = raw

        thumbnail = entry.get('thumbnail')
        if not thumbnail and entry.get('thumbnails'):
            thumbnail = entry['thumbnails'][-1].get('url')

        return cls(
            title=entry.get('title') or 'Unknown Title',
            author=entry.get('uploader') or entry.get('channel') or entry.get('artist') or 'Unknown Artist',
            duration=int(entry.get('duration') or 0),
            source_url=url,
            source_kind=SourceKind.from_url(url),
            requested_by=requested_by,
            thumbnail_url=thumbnail,
            searched=searched,
        )

    @classmethod
    def from_spotify(cls, item: Dict[str, Any], requested_by: Any = None) -> 'Track':
        """Build a Track from a spotipy track object"""
        artists = ', '.join(artist['name'] for artist in item.get('artists', []) if artist.get('name'))
        images = (item.get('album') or {}).get('images') or []
        return cls(
            title=item.get('name') or 'Unknown Title',
            author=artists or 'Unknown Artist',
            duration=int((item.get('duration_ms') or 0) // 1000),
            source_url=(item.get('external_urls') or {}).get('spotify', ''),
            source_kind=SourceKind.SPOTIFY,
            requested_by=requested_by,
            thumbnail_url=images[0]['url'] if images else None,
        )

    @property
    def is_direct(self) -> bool:
        """True when source_url itself points at the audio page"""
        return self.source_kind != SourceKind.SPOTIFY and not self.searched

    @property
    def extraction_target(self) -> str:
        """What the extractors are handed for this track"""
        if self.source_kind == SourceKind.SPOTIFY:
            return f"ytsearch1:{self.author} {self.title}"
        return self.source_url

    def __str__(self):
        return f"**{self.title}** by **{self.author}**"
