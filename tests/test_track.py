"""
Tests for the Track value type (utils/track.py).
"""

import pytest

from utils.track import SourceKind, Track


class TestSourceKind:
    @pytest.mark.parametrize("url,kind", [
        ("https://www.youtube.com/watch?v=abc", SourceKind.YOUTUBE),
        ("https://youtu.be/abc", SourceKind.YOUTUBE),
        ("https://open.spotify.com/track/xyz", SourceKind.SPOTIFY),
        ("https://soundcloud.com/a/b", SourceKind.SOUNDCLOUD),
        ("https://example.com/song.mp3", SourceKind.FALLBACK_GENERIC),
        (None, SourceKind.FALLBACK_GENERIC),
    ])
    def test_from_url(self, url, kind):
        assert SourceKind.from_url(url) is kind


class TestFromYtdl:
    def test_full_info_dict(self):
        track = Track.from_ytdl({
            "title": "Tum Hi Ho",
            "uploader": "T-Series",
            "duration": 262.4,
            "webpage_url": "https://www.youtube.com/watch?v=Umqb9KENgmk",
            "thumbnail": "https://i.ytimg.com/x.jpg",
        }, requested_by=42)
        assert track.title == "Tum Hi Ho"
        assert track.author == "T-Series"
        assert track.duration == 262
        assert track.source_kind is SourceKind.YOUTUBE
        assert track.requested_by == 42
        assert track.is_direct

    def test_flat_search_entry_builds_watch_url(self):
        track = Track.from_ytdl({"id": "abc123", "url": "abc123", "title": "X", "channel": "Chan"}, searched=True)
        assert track.source_url == "https://www.youtube.com/watch?v=abc123"
        assert track.author == "Chan"
        assert track.searched
        assert not track.is_direct

    def test_missing_metadata_defaults(self):
        track = Track.from_ytdl({"url": "https://example.com/a.mp3"})
        assert track.title == "Unknown Title"
        assert track.author == "Unknown Artist"
        assert track.duration == 0


class TestFromSpotify:
    def test_spotify_item(self):
        track = Track.from_spotify({
            "name": "Kesariya",
            "artists": [{"name": "Arijit Singh"}, {"name": "Pritam"}],
            "duration_ms": 268000,
            "external_urls": {"spotify": "https://open.spotify.com/track/abc"},
            "album": {"images": [{"url": "https://img/1.jpg"}]},
        }, requested_by=7)
        assert track.author == "Arijit Singh, Pritam"
        assert track.duration == 268
        assert track.source_kind is SourceKind.SPOTIFY
        assert track.thumbnail_url == "https://img/1.jpg"
        assert not track.is_direct
        assert track.extraction_target == "ytsearch1:Arijit Singh, Pritam Kesariya"

    def test_str_is_markdown(self, track_factory):
        assert str(track_factory("A", "B")) == "**A** by **B**"

    def test_searched_flag_does_not_affect_equality(self, track_factory):
        assert track_factory("A", searched=True) == track_factory("A", searched=False)
