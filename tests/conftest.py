"""Pytest configuration helpers."""

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings read the token at import time; keep tests off any real .env values.
os.environ.setdefault("TOKEN", "TEST_TOKEN")
os.environ.setdefault("BOT_LANGUAGE", "en")

from utils.track import SourceKind, Track  # noqa: E402


def make_track(title="Song", author="Artist", duration=200, url=None, kind=SourceKind.YOUTUBE,
               requested_by=1, searched=False):
    return Track(
        title=title,
        author=author,
        duration=duration,
        source_url=url or f"https://www.youtube.com/watch?v={title.replace(' ', '_')}",
        source_kind=kind,
        requested_by=requested_by,
        searched=searched,
    )


@pytest.fixture
def track_factory():
    return make_track
