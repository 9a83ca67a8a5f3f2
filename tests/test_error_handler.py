"""
Tests for error categorization and replies (utils/error_handler.py).
"""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from discord.ext import commands

from utils.error_handler import ErrorCategory, MusicBotErrorHandler
from utils.exceptions import (
    NoVoiceChannelError,
    PermissionDeniedError,
    QueueFullError,
    ResolutionError,
    ResolutionReason,
    VoiceConnectionError,
    YTDLError,
)


def make_ctx(interaction=None):
    ctx = MagicMock()
    ctx.send = AsyncMock()
    ctx.interaction = interaction
    ctx.error_handled = False
    ctx.guild.id = 1
    ctx.author.id = 2
    ctx.command.name = "play"
    ctx.command.qualified_name = "play"
    return ctx


@pytest.fixture
def handler():
    return MusicBotErrorHandler()


class TestCategorize:
    @pytest.mark.parametrize("error,category", [
        (QueueFullError(500), ErrorCategory.USER_ERROR),
        (IndexError("No track at position 9"), ErrorCategory.USER_ERROR),
        (NoVoiceChannelError("join first"), ErrorCategory.VOICE_ERROR),
        (VoiceConnectionError("timeout"), ErrorCategory.VOICE_ERROR),
        (PermissionDeniedError("no speak"), ErrorCategory.PERMISSION_ERROR),
        (ResolutionError(ResolutionReason.BLOCKED, title="A"), ErrorCategory.MUSIC_ERROR),
        (YTDLError("nothing found"), ErrorCategory.MUSIC_ERROR),
        (ConnectionError("reset"), ErrorCategory.NETWORK_ERROR),
        (RuntimeError("bug"), ErrorCategory.UNKNOWN_ERROR),
    ])
    def test_categories(self, handler, error, category):
        assert handler.categorize_error(error) == category

    def test_unwraps_invoke_errors(self, handler):
        original = QueueFullError(10)
        wrapped = commands.CommandInvokeError(original)
        assert handler.unwrap(wrapped) is original


class TestMessages:
    def test_resolution_message_names_track(self, handler):
        error = ResolutionError(ResolutionReason.BLOCKED, title="Kesariya")
        info = handler.get_user_friendly_message(error, handler.categorize_error(error))
        assert "Kesariya" in info["description"]
        assert "blocked" in info["description"].lower()

    def test_queue_full_mentions_capacity(self, handler):
        info = handler.get_user_friendly_message(QueueFullError(500), ErrorCategory.USER_ERROR)
        assert "500" in info["description"]


class TestHandleError:
    @pytest.mark.asyncio
    async def test_sends_one_embed_and_counts(self, handler):
        ctx = make_ctx()
        error = commands.CommandInvokeError(NoVoiceChannelError("join"))

        assert await handler.handle_error(error, ctx)
        assert await handler.handle_error(error, ctx)

        ctx.send.assert_awaited_once()
        embed = ctx.send.await_args.kwargs["embed"]
        assert isinstance(embed, discord.Embed)
        assert ctx.send.await_args.kwargs["ephemeral"] is False
        assert handler.get_error_statistics()["total_errors"] == 1

    @pytest.mark.asyncio
    async def test_slash_replies_are_ephemeral(self, handler):
        ctx = make_ctx(interaction=MagicMock())
        await handler.handle_error(YTDLError("nothing"), ctx)
        assert ctx.send.await_args.kwargs["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_command_not_found_is_silent(self, handler):
        ctx = make_ctx()
        assert await handler.handle_error(commands.CommandNotFound("nope"), ctx)
        ctx.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delivery_failure_is_reported(self, handler):
        ctx = make_ctx()
        response = MagicMock(status=403, reason="Forbidden")
        ctx.send.side_effect = discord.Forbidden(response, "Missing Access")
        assert await handler.handle_error(YTDLError("x"), ctx) is False
