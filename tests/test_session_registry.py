"""
Tests for the guild session registry (utils/session_registry.py).
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from utils.session_registry import GuildSessionRegistry


class FakeController:
    def __init__(self, queue, resolver, notifier=None):
        self.queue = queue
        self.resolver = resolver
        self.notifier = notifier
        self.active = False
        self.shutdown = AsyncMock()

    @property
    def is_active(self):
        return self.active


def make_registry(settings=None, **kwargs):
    store = MagicMock()
    store.get_guild_settings = AsyncMock(return_value=settings or {})
    registry = GuildSessionRegistry(MagicMock(name="resolver"), store, controller_factory=FakeController,
                                    **kwargs)
    return registry, store


def age(session, seconds):
    session.queue.last_activity -= seconds


class TestAcquire:
    @pytest.mark.asyncio
    async def test_creates_session_from_stored_settings(self):
        registry, store = make_registry({"volume": 70, "loop_mode": True, "autoplay": True})

        session = await registry.acquire(5)

        assert session.guild_id == 5
        assert session.queue.volume == 70
        assert session.queue.loop is True
        assert session.queue.autoplay is True
        store.get_guild_settings.assert_awaited_once_with(5)

    @pytest.mark.asyncio
    async def test_same_guild_gets_same_session(self):
        registry, store = make_registry()
        first = await registry.acquire(5)
        second = await registry.acquire(5)
        assert first is second
        assert len(registry) == 1
        assert store.get_guild_settings.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_first_use_creates_one_session(self):
        registry, _ = make_registry()
        sessions = await asyncio.gather(*(registry.acquire(9) for _ in range(5)))
        assert all(session is sessions[0] for session in sessions)
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_guilds_are_isolated(self):
        registry, _ = make_registry()
        a = await registry.acquire(1)
        b = await registry.acquire(2)
        assert a.queue is not b.queue
        assert a.controller is not b.controller

    @pytest.mark.asyncio
    async def test_notifier_is_refreshed(self):
        registry, _ = make_registry()
        first, second = AsyncMock(), AsyncMock()
        await registry.acquire(1, first)
        session = await registry.acquire(1, second)
        assert session.controller.notifier is second

    @pytest.mark.asyncio
    async def test_get_unknown_guild(self):
        registry, _ = make_registry()
        assert registry.get(123) is None
        assert 123 not in registry


class TestTeardown:
    @pytest.mark.asyncio
    async def test_destroy_shuts_down_and_removes(self):
        registry, _ = make_registry()
        session = await registry.acquire(1)

        assert await registry.destroy(1)

        session.controller.shutdown.assert_awaited_once()
        assert registry.get(1) is None
        assert not await registry.destroy(1)

    @pytest.mark.asyncio
    async def test_destroy_removes_even_when_shutdown_fails(self):
        registry, _ = make_registry()
        session = await registry.acquire(1)
        session.controller.shutdown.side_effect = OSError("socket closed")

        assert await registry.destroy(1)
        assert 1 not in registry

    @pytest.mark.asyncio
    async def test_reaper_only_takes_idle_sessions(self, track_factory):
        registry, _ = make_registry(idle_timeout=300)
        idle = await registry.acquire(1)
        busy = await registry.acquire(2)
        fresh = await registry.acquire(3)

        age(idle, 301)
        busy.queue.enqueue(track_factory("A"))
        age(busy, 1000)
        busy.controller.active = True

        reaped = await registry.reap_idle()

        assert reaped == 1
        assert 1 not in registry
        assert 2 in registry
        assert 3 in registry
        idle.controller.shutdown.assert_awaited_once()
        fresh.controller.shutdown.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shutdown_destroys_everything(self):
        registry, _ = make_registry(reaper_interval=3600)
        registry.start_reaper()
        await registry.acquire(1)
        await registry.acquire(2)

        await registry.shutdown()

        assert len(registry) == 0
        assert registry._reaper_task is None
