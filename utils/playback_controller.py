"""
PlaybackController for RagaBot
Owns a guild's voice connection and decides what plays next
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Iterable, Optional

import discord

from config.settings import AUTOPLAY_MAX_ATTEMPTS
from utils.exceptions import (
    PermissionDeniedError,
    ResolutionError,
    ResolutionReason,
    VoiceConnectionError,
)
from utils.guild_queue import GuildQueue
from utils.logging_manager import logging_manager
from utils.track import Track
from utils.track_resolver import TrackResolver
from utils.ytdl_source import YTDLSource

logger = logging.getLogger('music')

Notifier = Callable[..., Awaitable[None]]


class PlayerState(Enum):
    IDLE = 'idle'
    PLAYING = 'playing'
    PAUSED = 'paused'
    RESOLVING = 'resolving'


class PlaybackController:
    """Continuation state machine for one guild.

    Natural track ends, skips, first plays and recalls are serialized by a
    per-guild lock. stop() never waits on that lock; it bumps a generation
    counter that in-flight resolutions compare against before touching the
    player.
    """

    def __init__(self, queue: GuildQueue, resolver: TrackResolver, *,
                 audio_factory: Callable = YTDLSource.from_stream, notifier: Notifier = None,
                 autoplay_attempts: int = AUTOPLAY_MAX_ATTEMPTS):
        self.queue = queue
        self.resolver = resolver
        self.audio_factory = audio_factory
        self.notifier = notifier
        self.autoplay_attempts = autoplay_attempts

        self.voice: Optional[discord.VoiceClient] = None
        self.state = PlayerState.IDLE
        self.source = None
        self.current_stream = None

        self._lock = asyncio.Lock()
        self._generation = 0
        self._play_token = 0

    @property
    def guild_id(self) -> int:
        return self.queue.guild_id

    @property
    def is_connected(self) -> bool:
        return self.voice is not None and self.voice.is_connected()

    @property
    def is_active(self) -> bool:
        return self.queue.now_playing is not None or self.state is not PlayerState.IDLE

    # Voice connection

    async def connect(self, channel: discord.VoiceChannel):
        """Join `channel`, or move there when already connected elsewhere"""
        permissions = channel.permissions_for(channel.guild.me)
        if not permissions.connect or not permissions.speak:
            raise PermissionDeniedError(f"Missing Connect/Speak permission in {channel.name}")

        if self.voice is None and channel.guild.voice_client is not None:
            self.voice = channel.guild.voice_client

        try:
            if self.is_connected:
                if self.voice.channel != channel:
                    await self.voice.move_to(channel)
            else:
                self.voice = await channel.connect(timeout=30.0, reconnect=True)
        except (asyncio.TimeoutError, discord.ClientException, discord.HTTPException) as e:
            await self.disconnect()
            raise VoiceConnectionError(f"Could not connect to {channel.name}: {e}") from e

        logging_manager.log_music_event('voice_connected', self.guild_id, {'channel': channel.name})

    async def disconnect(self):
        """Best-effort release of the voice connection"""
        voice, self.voice = self.voice, None
        if voice is None:
            return
        try:
            await voice.disconnect(force=True)
        except (discord.ClientException, discord.HTTPException, OSError) as e:
            logger.warning(f"⚠️ Voice disconnect failed in guild {self.guild_id}: {e}")
        logging_manager.log_music_event('voice_disconnected', self.guild_id, {})

    # Commands

    async def play(self, tracks: Iterable[Track], playlist_info: dict = None) -> bool:
        """Queue tracks and start playback if the guild is idle.

        Returns True when the first queued track started right away. A first
        play takes the head of pending as now_playing directly; advance() is
        only used for continuations.
        """
        self.queue.enqueue_many(tracks, playlist_info)
        async with self._lock:
            if self.is_active or self.queue.is_empty():
                return False
            first = self.queue.pending.popleft()
            await self._start(first, self._generation)
            return True

    async def _start(self, track: Track, generation: int):
        self.queue.now_playing = track
        self.queue.clear_skip_votes()
        if not await self._play_track(track, generation):
            await self._continue(generation, ignore_loop=True, seed=track)

    async def skip(self) -> Optional[Track]:
        """Manual skip, loop is bypassed for this one transition"""
        async with self._lock:
            skipped = self.queue.now_playing
            if skipped is None:
                return None
            self._halt_player()
            await self._continue(self._generation, ignore_loop=True)
            return skipped

    async def previous(self) -> Optional[Track]:
        """Replay the newest history entry, requeueing the current track"""
        async with self._lock:
            recalled = self.queue.recall_previous()
            if recalled is None:
                return None
            self._halt_player()
            await self._start(recalled, self._generation)
            return recalled

    def pause(self) -> bool:
        if self.voice is not None and self.voice.is_playing():
            self.voice.pause()
            self.state = PlayerState.PAUSED
            return True
        return False

    def resume(self) -> bool:
        if self.voice is not None and self.voice.is_paused():
            self.voice.resume()
            self.state = PlayerState.PLAYING
            return True
        return False

    def set_volume(self, level: int):
        """Set the guild volume (0-100), applied to the sounding track too"""
        self.queue.set_volume(level)
        if self.source is not None:
            self.source.volume = level / 100

    def toggle_loop(self) -> bool:
        self.queue.loop = not self.queue.loop
        return self.queue.loop

    def toggle_autoplay(self) -> bool:
        self.queue.autoplay = not self.queue.autoplay
        return self.queue.autoplay

    def stop(self):
        """Stop playback and clear the queue without waiting for in-flight work"""
        self._generation += 1
        self._halt_player()
        self.queue.clear()
        self.state = PlayerState.IDLE
        logging_manager.log_music_event('stopped', self.guild_id, {})

    async def shutdown(self):
        """Stop everything and leave the voice channel"""
        self.stop()
        await self.disconnect()

    # Continuation

    async def handle_track_end(self, error: Optional[Exception], token: int):
        """Player finished (or crashed on) the track started with `token`"""
        if token != self._play_token:
            return
        async with self._lock:
            if token != self._play_token:
                return
            self._play_token += 1
            if error:
                logger.warning(f"⚠️ Playback error in guild {self.guild_id}: {error}")
            # A looped track that crashed is not replayed
            await self._continue(self._generation, ignore_loop=bool(error))

    async def _continue(self, generation: int, ignore_loop: bool, seed: Track = None):
        try:
            await self._advance_and_play(generation, ignore_loop, seed)
        except Exception as e:
            logger.exception(f"❌ Continuation crashed in guild {self.guild_id}: {e}")
            logging_manager.log_error(e, {'guild_id': self.guild_id, 'where': 'continuation'})
            self._halt_player()
            self.queue.clear()
            self.state = PlayerState.IDLE

    async def _advance_and_play(self, generation: int, ignore_loop: bool, seed: Track = None):
        """Loop, then next queued track, then autoplay, then idle"""
        seed = self.queue.now_playing or seed
        autoplay_tries = 0
        failures = 0
        max_failures = len(self.queue) + self.autoplay_attempts + 1

        while generation == self._generation:
            next_track = self.queue.advance(ignore_loop=ignore_loop)
            self.queue.now_playing = next_track

            if next_track is None:
                if self.queue.autoplay and seed is not None and autoplay_tries < self.autoplay_attempts:
                    autoplay_tries += 1
                    self.state = PlayerState.RESOLVING
                    recent = [track.source_url for track in self.queue.history]
                    suggestion = await self.resolver.suggest(seed, exclude=recent)
                    if generation != self._generation:
                        return
                    if suggestion is not None:
                        self.queue.enqueue(suggestion)
                        logging_manager.log_music_event('autoplay', self.guild_id, {'title': suggestion.title})
                        continue
                    if not self.queue.is_empty():
                        continue
                    logger.info(f"🤖 No autoplay suggestion for '{seed.title}' in guild {self.guild_id}")
                    await self._go_idle(release_voice=False)
                    return

                await self._go_idle(release_voice=not self.queue.autoplay)
                return

            if await self._play_track(next_track, generation):
                return

            seed = next_track
            ignore_loop = True
            failures += 1
            if failures >= max_failures:
                logger.error(f"❌ Giving up after {failures} failed tracks in guild {self.guild_id}")
                await self._go_idle(release_voice=False)
                return

    async def _play_track(self, track: Track, generation: int) -> bool:
        """Resolve and start `track`. False means it failed and was reported"""
        self.state = PlayerState.RESOLVING
        try:
            stream = await self.resolver.resolve(track)
            if generation != self._generation or self.queue.now_playing is not track:
                logger.info(f"🗑️ Discarding stale stream for '{track.title}'")
                return True
            if not self.is_connected:
                logger.warning(f"⚠️ Lost voice connection in guild {self.guild_id}, going idle")
                self.queue.clear()
                self.state = PlayerState.IDLE
                return True

            source = self.audio_factory(stream, self.queue.volume)
            self._play_token += 1
            token = self._play_token
            loop = asyncio.get_running_loop()
            self.voice.play(source, after=lambda error: self._after_playback(error, token, loop))
        except ResolutionError as e:
            return await self._report_failure(track, generation, e)
        except (discord.ClientException, OSError) as e:
            return await self._report_failure(track, generation, ResolutionError(ResolutionReason.GENERIC, str(e), title=track.title))

        self.source = source
        self.current_stream = stream
        self.state = PlayerState.PLAYING
        logging_manager.log_music_event('now_playing', self.guild_id, {
            'title': track.title, 'extractor': stream.extractor, 'url': stream.candidate_url})
        await self._notify('now_playing', track=track)
        return True

    async def _report_failure(self, track: Track, generation: int, error: ResolutionError) -> bool:
        if generation != self._generation:
            return True
        if self.queue.now_playing is track:
            self.queue.now_playing = None
        logging_manager.log_music_event('resolution_failed', self.guild_id, {
            'title': track.title, 'reason': error.reason.value})
        await self._notify('resolution_failed', track=track, error=error)
        return False

    def _after_playback(self, error, token: int, loop: asyncio.AbstractEventLoop):
        # Runs on the voice player thread
        if loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self.handle_track_end(error, token), loop)

    def _halt_player(self):
        """Invalidate the running playback so its end signal is ignored"""
        self._play_token += 1
        if self.voice is not None and (self.voice.is_playing() or self.voice.is_paused()):
            self.voice.stop()
        self.source = None
        self.current_stream = None

    async def _go_idle(self, release_voice: bool):
        self.queue.clear()
        self.state = PlayerState.IDLE
        self.source = None
        self.current_stream = None
        await self._notify('queue_finished')
        if release_voice:
            await self.disconnect()

    async def _notify(self, event: str, **data):
        if self.notifier is None:
            return
        try:
            await self.notifier(event, controller=self, **data)
        except discord.HTTPException as e:
            logger.warning(f"⚠️ Could not send '{event}' notice in guild {self.guild_id}: {e}")
