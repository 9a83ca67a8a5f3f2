"""
Centralized Error Handler for RagaBot
Turns command errors into localized replies and categorized log entries
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import discord
from discord.ext import commands

from config.messages import get_message
from utils.exceptions import (
    MusicBotError,
    NoVoiceChannelError,
    PermissionDeniedError,
    QueueFullError,
    ResolutionError,
    ResolutionReason,
    VoiceConnectionError,
    VoiceError,
    YTDLError,
)
from utils.logging_manager import logging_manager

logger = logging.getLogger('errors')

RESOLUTION_MESSAGES = {
    ResolutionReason.BLOCKED: 'RESOLVE_BLOCKED',
    ResolutionReason.NO_STREAM: 'RESOLVE_NO_STREAM',
    ResolutionReason.GENERIC: 'RESOLVE_GENERIC',
}


class ErrorCategory:
    """Error categories with different handling approaches"""
    USER_ERROR = "user_error"
    VOICE_ERROR = "voice_error"
    MUSIC_ERROR = "music_error"
    PERMISSION_ERROR = "permission_error"
    SYSTEM_ERROR = "system_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN_ERROR = "unknown_error"


class MusicBotErrorHandler:
    """Centralized error handling system"""

    def __init__(self):
        self.error_counts = {}
        self.error_messages = {
            ErrorCategory.USER_ERROR: {
                'title': '❌ Command Error',
                'color': discord.Color.orange(),
                'help_text': 'Check your command usage with `/help`',
            },
            ErrorCategory.VOICE_ERROR: {
                'title': '🔊 Voice Error',
                'color': discord.Color.red(),
                'help_text': "Make sure you're in a voice channel and I have permissions",
            },
            ErrorCategory.MUSIC_ERROR: {
                'title': '🎵 Music Error',
                'color': discord.Color.red(),
                'help_text': 'Try a different song or check if the URL is valid',
            },
            ErrorCategory.PERMISSION_ERROR: {
                'title': '🔒 Permission Error',
                'color': discord.Color.red(),
                'help_text': 'I need proper permissions to execute this command',
            },
            ErrorCategory.SYSTEM_ERROR: {
                'title': '⚙️ System Error',
                'color': discord.Color.dark_red(),
                'help_text': 'An internal error occurred. Please try again later',
            },
            ErrorCategory.NETWORK_ERROR: {
                'title': '🌐 Network Error',
                'color': discord.Color.orange(),
                'help_text': 'Network or service issues. Please try again',
            },
            ErrorCategory.UNKNOWN_ERROR: {
                'title': '❓ Unexpected Error',
                'color': discord.Color.dark_red(),
                'help_text': 'An unexpected error occurred. Please report this',
            },
        }

    @staticmethod
    def unwrap(error: Exception) -> Exception:
        """Strip discord.py's invoke wrappers down to the original exception"""
        while isinstance(error, (commands.CommandInvokeError, commands.HybridCommandError,
                                 discord.app_commands.CommandInvokeError)):
            original = getattr(error, 'original', None)
            if original is None:
                break
            error = original
        return error

    def categorize_error(self, error: Exception) -> str:
        """Categorize error based on type"""
        if isinstance(error, (commands.MissingPermissions, commands.BotMissingPermissions,
                              commands.CheckFailure)) and not isinstance(error, commands.NoPrivateMessage):
            return ErrorCategory.PERMISSION_ERROR
        if isinstance(error, (commands.UserInputError, commands.CommandNotFound, commands.NoPrivateMessage,
                              commands.DisabledCommand, commands.CommandOnCooldown, QueueFullError,
                              ValueError, IndexError)):
            return ErrorCategory.USER_ERROR
        if isinstance(error, PermissionDeniedError):
            return ErrorCategory.PERMISSION_ERROR
        if isinstance(error, VoiceError):
            return ErrorCategory.VOICE_ERROR
        if isinstance(error, YTDLError):
            return ErrorCategory.MUSIC_ERROR
        if isinstance(error, discord.Forbidden):
            return ErrorCategory.PERMISSION_ERROR
        if isinstance(error, (ConnectionError, TimeoutError, discord.HTTPException)):
            return ErrorCategory.NETWORK_ERROR
        if isinstance(error, (MemoryError, OSError)):
            return ErrorCategory.SYSTEM_ERROR
        return ErrorCategory.UNKNOWN_ERROR

    def _get_specific_message(self, error: Exception, category: str) -> str:
        """Localized description for the error"""
        if isinstance(error, NoVoiceChannelError):
            return get_message('NO_VOICE_CHANNEL')
        if isinstance(error, PermissionDeniedError):
            return get_message('BOT_NO_PERMISSION')
        if isinstance(error, VoiceConnectionError):
            return get_message('VOICE_CONNECT_FAILED')
        if isinstance(error, QueueFullError):
            return get_message('QUEUE_FULL', capacity=error.capacity)
        if isinstance(error, ResolutionError):
            return get_message(RESOLUTION_MESSAGES[error.reason], title=error.title or 'this track')

        if category == ErrorCategory.USER_ERROR:
            if isinstance(error, commands.MissingRequiredArgument):
                return f"Missing required parameter: `{error.param.name}`"
            if isinstance(error, commands.CommandOnCooldown):
                return f"Command is on cooldown. Try again in {error.retry_after:.1f} seconds."
            if isinstance(error, commands.NoPrivateMessage):
                return "This command cannot be used in direct messages."
            return str(error) or get_message('ERROR_OCCURRED')

        if category == ErrorCategory.PERMISSION_ERROR:
            if isinstance(error, (commands.MissingPermissions, commands.BotMissingPermissions)):
                perms = ', '.join(error.missing_permissions)
                return f"Missing permissions: {perms}"
            return "Permission denied for this operation."

        if category == ErrorCategory.MUSIC_ERROR:
            return str(error) or get_message('NO_RESULTS')
        if category == ErrorCategory.VOICE_ERROR:
            return f"Voice connection issue: {error}"
        return get_message('ERROR_OCCURRED')

    def get_user_friendly_message(self, error: Exception, category: str) -> Dict[str, Any]:
        base_info = self.error_messages.get(category, self.error_messages[ErrorCategory.UNKNOWN_ERROR])
        return {
            'title': base_info['title'],
            'description': self._get_specific_message(error, category),
            'color': base_info['color'],
            'help_text': base_info['help_text'],
        }

    async def handle_error(self, error: Exception, ctx: Optional[commands.Context] = None,
                           additional_info: Optional[str] = None) -> bool:
        """Categorize, log and answer an error; never raises"""
        error = self.unwrap(error)
        if isinstance(error, commands.CommandNotFound):
            return True
        if ctx is not None and getattr(ctx, 'error_handled', False):
            return True

        category = self.categorize_error(error)
        self._update_error_stats(category, error)
        self._log_error(error, category, ctx, additional_info)

        if ctx is not None:
            ctx.error_handled = True
            try:
                await self._send_error_message(error, category, ctx)
            except discord.HTTPException as e:
                logger.warning(f"Could not deliver error message: {e}")
                return False
        return True

    def _update_error_stats(self, category: str, error: Exception):
        by_type = self.error_counts.setdefault(category, {})
        error_type = type(error).__name__
        by_type[error_type] = by_type.get(error_type, 0) + 1

    def _log_error(self, error: Exception, category: str, ctx: Optional[commands.Context],
                   additional_info: Optional[str]):
        error_info = {
            'category': category,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'guild': ctx.guild.id if ctx and ctx.guild else 'DM',
            'user': ctx.author.id if ctx else 'System',
            'command': ctx.command.name if ctx and ctx.command else 'Unknown',
            'additional_info': additional_info,
        }

        if category in (ErrorCategory.SYSTEM_ERROR, ErrorCategory.UNKNOWN_ERROR):
            logging_manager.log_error(error, error_info)
        elif category == ErrorCategory.NETWORK_ERROR:
            logger.warning(f"Network Error: {error_info}")
        elif isinstance(error, MusicBotError):
            logging.getLogger('music').info(f"Music Error: {error_info}")
        else:
            logging.getLogger('bot').info(f"User Error: {error_info}")

    async def _send_error_message(self, error: Exception, category: str, ctx: commands.Context):
        message_info = self.get_user_friendly_message(error, category)

        embed = discord.Embed(
            title=message_info['title'],
            description=message_info['description'],
            color=message_info['color'],
            timestamp=datetime.now(timezone.utc),
        )
        embed.add_field(name="💡 Help", value=message_info['help_text'], inline=False)
        if ctx.command:
            embed.add_field(name="📝 Command", value=f"`/{ctx.command.qualified_name}`", inline=True)
        if category in (ErrorCategory.SYSTEM_ERROR, ErrorCategory.UNKNOWN_ERROR):
            embed.set_footer(text=f"Error ID: {datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}")

        await ctx.send(embed=embed, ephemeral=ctx.interaction is not None)

    def get_error_statistics(self) -> Dict[str, Any]:
        total_errors = sum(sum(counts.values()) for counts in self.error_counts.values())
        all_errors = [
            {'category': category, 'type': error_type, 'count': count}
            for category, errors in self.error_counts.items()
            for error_type, count in errors.items()
        ]
        return {
            'total_errors': total_errors,
            'by_category': dict(self.error_counts),
            'most_common': sorted(all_errors, key=lambda x: x['count'], reverse=True)[:5],
        }


# Global error handler instance
error_handler = MusicBotErrorHandler()
