"""
Custom exceptions for RagaBot
"""
from enum import Enum


class MusicBotError(Exception):
    """Base class for every error the bot raises on purpose"""
    pass


class QueueFullError(MusicBotError):
    """Exception raised when a guild queue is at capacity"""

    def __init__(self, capacity: int):
        super().__init__(f"Queue is full (max {capacity} tracks)")
        self.capacity = capacity


class VoiceError(MusicBotError):
    """Exception raised for voice-related errors"""
    pass


class NoVoiceChannelError(VoiceError):
    """The invoking user is not in a voice channel"""
    pass


class PermissionDeniedError(VoiceError):
    """The bot may not connect or speak in the target channel"""
    pass


class VoiceConnectionError(VoiceError):
    """Joining or moving between voice channels failed"""
    pass


class YTDLError(MusicBotError):
    """Exception raised when a lookup finds nothing playable"""
    pass


class ResolutionReason(str, Enum):
    BLOCKED = 'blocked'
    NO_STREAM = 'no-stream'
    GENERIC = 'generic'


class ResolutionError(YTDLError):
    """Every extractor and search fallback failed for a track"""

    def __init__(self, reason: ResolutionReason, message: str = None, title: str = None):
        super().__init__(message or f"Could not resolve a stream ({reason.value})")
        self.reason = reason
        self.title = title
