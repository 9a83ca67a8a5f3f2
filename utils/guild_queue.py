"""
GuildQueue class for RagaBot
Per-guild pending tracks, now playing, history and playback toggles
"""
import itertools
import math
import random
import time
from collections import deque
from typing import Any, Dict, Iterable, Optional

from config.settings import DEFAULT_VOLUME, HISTORY_LIMIT, MAX_QUEUE_SIZE
from utils.exceptions import QueueFullError
from utils.track import Track


class GuildQueue:
    """Ordered play queue for one guild"""

    def __init__(self, guild_id: int, *, max_size: int = MAX_QUEUE_SIZE, volume: int = DEFAULT_VOLUME,
                 loop: bool = False, autoplay: bool = False, history_limit: int = HISTORY_LIMIT,
                 clock=time.monotonic):
        self.guild_id = guild_id
        self.max_size = max_size
        self.history_limit = history_limit
        self.pending = deque()
        self.history = deque(maxlen=history_limit)
        self.now_playing: Optional[Track] = None
        self.loop = loop
        self.autoplay = autoplay
        self.skip_votes = set()
        self.playlist_info: Optional[Dict[str, Any]] = None
        self._clock = clock
        self.last_activity = clock()
        self._volume = DEFAULT_VOLUME
        self.set_volume(volume)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return list(itertools.islice(self.pending, item.start, item.stop, item.step))
        return self.pending[item]

    def __iter__(self):
        return iter(self.pending)

    def __len__(self):
        return len(self.pending)

    def touch(self):
        """Mark the queue as recently used"""
        self.last_activity = self._clock()

    @property
    def volume(self) -> int:
        return self._volume

    def set_volume(self, level: int):
        if not 0 <= level <= 100:
            raise ValueError(f"Volume must be between 0 and 100, got {level}")
        self._volume = int(level)
        self.touch()

    def enqueue(self, track: Track):
        """Append a track, refusing when the queue is at capacity"""
        if len(self.pending) >= self.max_size:
            raise QueueFullError(self.max_size)
        self.pending.append(track)
        self.touch()

    def enqueue_many(self, tracks: Iterable[Track], playlist_info: Optional[Dict[str, Any]] = None) -> int:
        """Append several tracks at once; all or nothing"""
        tracks = list(tracks)
        if len(self.pending) + len(tracks) > self.max_size:
            raise QueueFullError(self.max_size)
        self.pending.extend(tracks)
        if playlist_info is not None:
            self.playlist_info = playlist_info
        self.touch()
        return len(tracks)

    def advance(self, ignore_loop: bool = False) -> Optional[Track]:
        """Pick the track that plays after now_playing.

        A looped track is returned unchanged. Otherwise now_playing moves to
        the front of history and the head of pending is returned. The caller
        assigns the result to now_playing.
        """
        self.touch()
        if self.loop and not ignore_loop and self.now_playing is not None:
            return self.now_playing

        if self.now_playing is not None:
            self.history.appendleft(self.now_playing)
        self.skip_votes.clear()
        return self.pending.popleft() if self.pending else None

    def recall_previous(self) -> Optional[Track]:
        """Pop the newest history entry, requeueing now_playing in front"""
        self.touch()
        if not self.history:
            return None
        previous = self.history.popleft()
        if self.now_playing is not None:
            self.pending.appendleft(self.now_playing)
        self.skip_votes.clear()
        return previous

    def clear(self):
        """Drop everything queued and playing; toggles and volume are kept"""
        self.pending.clear()
        self.now_playing = None
        self.skip_votes.clear()
        self.playlist_info = None
        self.touch()

    def clear_pending(self) -> int:
        """Drop waiting tracks only, the current one keeps playing"""
        removed = len(self.pending)
        self.pending.clear()
        self.playlist_info = None
        self.touch()
        return removed

    def shuffle(self, rng: random.Random = None):
        """Unbiased in-place shuffle of pending tracks"""
        rng = rng or random
        items = self.pending
        for i in range(len(items) - 1, 0, -1):
            j = rng.randint(0, i)
            items[i], items[j] = items[j], items[i]
        self.touch()

    def remove(self, position: int) -> Track:
        """Remove the track at a 1-indexed queue position"""
        if not 1 <= position <= len(self.pending):
            raise IndexError(f"No track at position {position}")
        track = self.pending[position - 1]
        del self.pending[position - 1]
        self.touch()
        return track

    def move(self, source: int, destination: int) -> Track:
        """Move a track between 1-indexed queue positions"""
        size = len(self.pending)
        if not 1 <= source <= size or not 1 <= destination <= size:
            raise IndexError(f"Positions must be between 1 and {size}")
        track = self.pending[source - 1]
        del self.pending[source - 1]
        self.pending.insert(destination - 1, track)
        self.touch()
        return track

    def is_empty(self) -> bool:
        return len(self.pending) == 0

    def register_skip_vote(self, user_id) -> int:
        self.skip_votes.add(user_id)
        self.touch()
        return len(self.skip_votes)

    def clear_skip_votes(self):
        self.skip_votes.clear()

    @staticmethod
    def required_skip_votes(channel_size: int) -> int:
        """Majority of the humans listening, never less than one"""
        return max(1, math.ceil(channel_size / 2))

    def is_idle_for(self, seconds: float) -> bool:
        """Nothing playing, nothing queued, and untouched for `seconds`"""
        return (self.now_playing is None and not self.pending
                and self._clock() - self.last_activity > seconds)

    @property
    def total_duration(self) -> int:
        return sum(track.duration for track in self.pending)
