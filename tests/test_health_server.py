"""
Tests for the /health endpoint (utils/health_server.py) and the bot stats it serves.
"""

import json
from types import SimpleNamespace

import pytest
from aiohttp.test_utils import make_mocked_request

from bot import MusicBot
from utils.guild_queue import GuildQueue
from utils.health_server import HealthServer


def fake_bot(sessions, guilds=3, ready=True):
    registry = SimpleNamespace(sessions=lambda: sessions)
    return SimpleNamespace(registry=registry, guilds=[object()] * guilds, latency=0.042,
                           is_ready=lambda: ready)


class TestRuntimeStats:
    def test_shape_served_by_health(self, track_factory):
        playing = GuildQueue(1)
        playing.now_playing = track_factory("A")
        sessions = [SimpleNamespace(queue=playing), SimpleNamespace(queue=GuildQueue(2))]

        stats = MusicBot.runtime_stats(fake_bot(sessions))

        assert stats == {'guilds': 3, 'active_sessions': 2, 'playing': 1, 'latency_ms': 42}

    def test_before_ready(self):
        stats = MusicBot.runtime_stats(fake_bot([], guilds=0, ready=False))
        assert stats['active_sessions'] == 0
        assert stats['latency_ms'] is None


class TestHealthServer:
    @pytest.mark.asyncio
    async def test_reports_ok_with_runtime_stats(self, track_factory):
        bot = fake_bot([SimpleNamespace(queue=GuildQueue(1))])
        server = HealthServer(port=0, stats_provider=lambda: MusicBot.runtime_stats(bot), version="9.9.9")

        response = await server.handle_health(make_mocked_request("GET", "/health"))
        payload = json.loads(response.text)

        assert response.status == 200
        assert payload["status"] == "ok"
        assert payload["version"] == "9.9.9"
        assert payload["guilds"] == 3
        assert payload["active_sessions"] == 1
        assert payload["playing"] == 0
        assert payload["uptime"] >= 0
        assert payload["memory"]["rss_mb"] > 0
        assert set(payload) >= {"status", "uptime", "timestamp", "memory", "version", "guilds", "active_sessions"}

    @pytest.mark.asyncio
    async def test_route_is_registered(self):
        server = HealthServer(port=0)
        routes = [(route.method, route.resource.canonical) for route in server.app.router.routes()]
        assert ("GET", "/health") in routes

    @pytest.mark.asyncio
    async def test_close_without_start(self):
        server = HealthServer(port=0)
        await server.close()
