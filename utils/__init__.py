"""
Utils package for RagaBot
Playback core, storage, logging and Discord UI helpers
"""

from .exceptions import (
    MusicBotError,
    QueueFullError,
    VoiceError,
    NoVoiceChannelError,
    PermissionDeniedError,
    VoiceConnectionError,
    YTDLError,
    ResolutionError,
    ResolutionReason,
)
from .track import Track, SourceKind
from .guild_queue import GuildQueue
from .track_resolver import TrackResolver, PlayableStream, LookupResult
from .playback_controller import PlaybackController, PlayerState
from .session_registry import GuildSessionRegistry, GuildSession
from .error_handler import error_handler
from .cache_manager import cache_manager
from .database_manager import database_manager
from .logging_manager import logging_manager

__all__ = [
    'MusicBotError',
    'QueueFullError',
    'VoiceError',
    'NoVoiceChannelError',
    'PermissionDeniedError',
    'VoiceConnectionError',
    'YTDLError',
    'ResolutionError',
    'ResolutionReason',
    'Track',
    'SourceKind',
    'GuildQueue',
    'TrackResolver',
    'PlayableStream',
    'LookupResult',
    'PlaybackController',
    'PlayerState',
    'GuildSessionRegistry',
    'GuildSession',
    'error_handler',
    'cache_manager',
    'database_manager',
    'logging_manager',
]
