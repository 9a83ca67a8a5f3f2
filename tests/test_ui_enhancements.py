"""
Tests for playback notices, embeds, control buttons, the search menu and skip voting
(utils/ui_enhancements.py, utils/helpers.py).
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.messages import get_message
from utils.exceptions import QueueFullError, ResolutionError, ResolutionReason
from utils.guild_queue import GuildQueue
from utils.helpers import request_skip
from utils.ui_enhancements import (
    ChannelNotifier,
    EnhancedEmbed,
    MusicControlView,
    SearchResultView,
    format_duration,
    skip_outcome_message,
)


def member(user_id, manager=False, bot=False):
    return SimpleNamespace(id=user_id, bot=bot, guild_permissions=SimpleNamespace(manage_guild=manager))


def make_session(track, listeners):
    queue = GuildQueue(1)
    queue.now_playing = track
    controller = MagicMock()
    controller.is_connected = True
    controller.voice.channel.members = listeners
    controller.skip = AsyncMock(return_value=track)
    return SimpleNamespace(queue=queue, controller=controller)


class TestFormatting:
    def test_format_duration(self):
        assert format_duration(0) == "🔴 Live"
        assert format_duration(65) == "1:05"
        assert format_duration(3725) == "1:02:05"

    def test_queue_embed_pages(self, track_factory):
        queue = GuildQueue(1)
        queue.enqueue_many([track_factory(f"T{i}") for i in range(25)])

        embed = EnhancedEmbed.create_queue_embed(queue, page=3, items_per_page=10)

        assert "T20" in embed.description
        assert "T19" not in embed.description
        assert embed.footer.text.startswith("Page 3/3")

    def test_queue_embed_clamps_page(self, track_factory):
        queue = GuildQueue(1)
        queue.enqueue(track_factory("Only"))
        embed = EnhancedEmbed.create_queue_embed(queue, page=99)
        assert "Only" in embed.description

    def test_now_playing_marks_autoplay(self, track_factory):
        embed = EnhancedEmbed.create_now_playing_embed(track_factory("S", requested_by=None), GuildQueue(1))
        fields = {field.name: field.value for field in embed.fields}
        assert fields["👤 Requested by"] == "🤖 Autoplay"


class TestChannelNotifier:
    @pytest.mark.asyncio
    async def test_now_playing_sends_card_with_controls(self, track_factory):
        channel = MagicMock()
        channel.send = AsyncMock()
        view = MagicMock()
        notifier = ChannelNotifier(channel, view)
        controller = SimpleNamespace(queue=GuildQueue(1))

        await notifier("now_playing", controller=controller, track=track_factory("A"))

        kwargs = channel.send.await_args.kwargs
        assert "A" in kwargs["embed"].description
        assert kwargs["view"] is view

    @pytest.mark.asyncio
    async def test_resolution_failure_message(self, track_factory):
        channel = MagicMock()
        channel.send = AsyncMock()
        error = ResolutionError(ResolutionReason.NO_STREAM, title="B")

        await ChannelNotifier(channel)("resolution_failed", controller=None, track=track_factory("B"), error=error)

        channel.send.assert_awaited_once_with(get_message("RESOLVE_NO_STREAM", title="B"))

    @pytest.mark.asyncio
    async def test_queue_finished(self):
        channel = MagicMock()
        channel.send = AsyncMock()
        await ChannelNotifier(channel)("queue_finished", controller=None)
        channel.send.assert_awaited_once_with(get_message("QUEUE_FINISHED"))


class TestSkipVoting:
    @pytest.mark.asyncio
    async def test_requester_skips_outright(self, track_factory):
        session = make_session(track_factory("A", requested_by=1), [member(1), member(2), member(3)])
        outcome = await request_skip(session, member(1))
        assert outcome.status == "skipped"
        session.controller.skip.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_manager_skips_outright(self, track_factory):
        session = make_session(track_factory("A", requested_by=1), [member(1), member(2), member(3)])
        outcome = await request_skip(session, member(2, manager=True))
        assert outcome.status == "skipped"

    @pytest.mark.asyncio
    async def test_votes_until_majority(self, track_factory):
        listeners = [member(i) for i in range(1, 5)] + [member(99, bot=True)]
        session = make_session(track_factory("A", requested_by=1), listeners)

        first = await request_skip(session, member(2))
        again = await request_skip(session, member(2))
        second = await request_skip(session, member(3))

        assert (first.status, first.votes, first.required) == ("voted", 1, 2)
        assert again.status == "already_voted"
        assert second.status == "skipped"
        session.controller.skip.assert_awaited_once()
        assert skip_outcome_message(first) == get_message("SKIP_VOTE", votes=1, required=2)

    @pytest.mark.asyncio
    async def test_nothing_playing(self):
        session = make_session(None, [])
        outcome = await request_skip(session, member(1))
        assert outcome.status == "idle"
        session.controller.skip.assert_not_awaited()


# ─── Control buttons ──────────────────────────────────────────────────────────

def make_interaction(channel, user_id=1, guild_id=1):
    interaction = MagicMock()
    interaction.guild_id = guild_id
    interaction.user = SimpleNamespace(id=user_id, voice=SimpleNamespace(channel=channel))
    interaction.response.send_message = AsyncMock()
    interaction.response.edit_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


def connected_session(volume=50):
    queue = GuildQueue(1, volume=volume)
    controller = MagicMock()
    controller.is_connected = True
    controller.queue = queue
    controller.set_volume = MagicMock(side_effect=queue.set_volume)
    controller.play = AsyncMock(return_value=True)
    return SimpleNamespace(queue=queue, controller=controller)


def registry_for(session):
    return SimpleNamespace(get=lambda guild_id: session, destroy=AsyncMock())


class TestControlButtons:
    @pytest.mark.asyncio
    async def test_volume_up_applies_and_persists(self):
        session = connected_session(volume=50)
        store = AsyncMock()
        view = MusicControlView(registry_for(session), store)
        interaction = make_interaction(session.controller.voice.channel)

        await view.volume_up_button.callback(interaction)

        session.controller.set_volume.assert_called_once_with(60)
        assert session.queue.volume == 60
        store.update_volume.assert_awaited_once_with(1, 60)
        assert "60%" in interaction.response.send_message.await_args.args[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start,button,expected", [
        (95, "volume_up_button", 100),
        (5, "volume_down_button", 0),
        (40, "volume_down_button", 30),
    ])
    async def test_volume_steps_stay_in_range(self, start, button, expected):
        session = connected_session(volume=start)
        view = MusicControlView(registry_for(session), AsyncMock())

        await getattr(view, button).callback(make_interaction(session.controller.voice.channel))

        assert session.queue.volume == expected

    @pytest.mark.asyncio
    async def test_volume_needs_the_same_voice_channel(self):
        session = connected_session(volume=50)
        store = AsyncMock()
        view = MusicControlView(registry_for(session), store)
        interaction = make_interaction(MagicMock(name="elsewhere"))

        await view.volume_up_button.callback(interaction)

        session.controller.set_volume.assert_not_called()
        store.update_volume.assert_not_awaited()
        interaction.response.send_message.assert_awaited_once_with(get_message("NO_VOICE_CHANNEL"), ephemeral=True)

    @pytest.mark.asyncio
    async def test_toggles_persist_through_typed_setters(self):
        session = connected_session()
        session.controller.toggle_loop = MagicMock(return_value=True)
        session.controller.toggle_autoplay = MagicMock(return_value=False)
        store = AsyncMock()
        view = MusicControlView(registry_for(session), store)

        await view.loop_button.callback(make_interaction(session.controller.voice.channel))
        await view.autoplay_button.callback(make_interaction(session.controller.voice.channel))

        store.update_loop_mode.assert_awaited_once_with(1, True)
        store.update_autoplay.assert_awaited_once_with(1, False)
        store.update_guild_setting.assert_not_awaited()


# ─── Search menu ──────────────────────────────────────────────────────────────

class TestSearchResultView:
    @pytest.mark.asyncio
    async def test_lists_every_result(self, track_factory):
        results = [track_factory("A" * 150), track_factory("B")]
        view = SearchResultView(registry_for(None), 1, results, requester_id=7)

        labels = [option.label for option in view.select.options]
        assert len(labels) == 2
        assert len(labels[0]) == 100
        assert labels[1] == "B"
        assert [option.value for option in view.select.options] == ["0", "1"]

    @pytest.mark.asyncio
    async def test_pick_queues_the_chosen_track(self, track_factory):
        session = connected_session()
        results = [track_factory("A"), track_factory("B")]
        view = SearchResultView(registry_for(session), 1, results, requester_id=7)
        interaction = make_interaction(None, user_id=7)

        await view.choose(interaction, 1)

        session.controller.play.assert_awaited_once_with([results[1]])
        content = interaction.response.edit_message.await_args.kwargs["content"]
        assert content.startswith(get_message("SEARCH_PICKED"))
        assert "B" in content
        assert view.is_finished()

    @pytest.mark.asyncio
    async def test_pick_when_queue_is_full(self, track_factory):
        session = connected_session()
        session.controller.play = AsyncMock(side_effect=QueueFullError(500))
        view = SearchResultView(registry_for(session), 1, [track_factory("A")], requester_id=7)
        interaction = make_interaction(None, user_id=7)

        await view.choose(interaction, 0)

        interaction.followup.send.assert_awaited_once_with(get_message("QUEUE_FULL", capacity=500), ephemeral=True)

    @pytest.mark.asyncio
    async def test_pick_after_the_bot_left(self, track_factory):
        view = SearchResultView(registry_for(None), 1, [track_factory("A")], requester_id=7)
        interaction = make_interaction(None, user_id=7)

        await view.choose(interaction, 0)

        interaction.response.edit_message.assert_awaited_once_with(
            content=get_message("NOT_CONNECTED"), embed=None, view=None)

    @pytest.mark.asyncio
    async def test_only_the_searcher_can_pick(self, track_factory):
        view = SearchResultView(registry_for(None), 1, [track_factory("A")], requester_id=7)
        interaction = make_interaction(None, user_id=8)

        assert await view.interaction_check(interaction) is False
        interaction.response.send_message.assert_awaited_once_with(get_message("SEARCH_NOT_YOURS"), ephemeral=True)
        assert await view.interaction_check(make_interaction(None, user_id=7)) is True

    def test_search_embed_numbers_results(self, track_factory):
        embed = EnhancedEmbed.create_search_embed("kesariya", [track_factory("A"), track_factory("B")])
        assert [field.name for field in embed.fields] == ["1. A", "2. B"]
        assert "kesariya" in embed.title
