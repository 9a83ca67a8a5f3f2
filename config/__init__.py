"""
Configuration package for RagaBot
Contains bot configuration, settings and localized messages
"""

from .settings import (
    VERSION,
    PREFIX,
    TOKEN,
    MAX_QUEUE_SIZE,
    DEFAULT_VOLUME,
    HISTORY_LIMIT,
    HEALTH_PORT,
    FFMPEG_EXECUTABLE,
    FFMPEG_OPTIONS,
    YDL_OPTIONS,
    COMMAND_ALIASES,
    resolve_alias,
    aliases_for,
    get_ffmpeg_executable,
    get_bot_intents,
)
from .messages import MESSAGES, get_message

__all__ = [
    'VERSION',
    'PREFIX',
    'TOKEN',
    'MAX_QUEUE_SIZE',
    'DEFAULT_VOLUME',
    'HISTORY_LIMIT',
    'HEALTH_PORT',
    'FFMPEG_EXECUTABLE',
    'FFMPEG_OPTIONS',
    'YDL_OPTIONS',
    'COMMAND_ALIASES',
    'resolve_alias',
    'aliases_for',
    'get_ffmpeg_executable',
    'get_bot_intents',
    'MESSAGES',
    'get_message',
]
