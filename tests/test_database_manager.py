"""
Tests for the SQLite settings store (utils/database_manager.py).
Each test gets its own database file under tmp_path.
"""

import pytest
import pytest_asyncio

from utils.database_manager import DatabaseManager, default_settings


@pytest_asyncio.fixture
async def db(tmp_path):
    manager = DatabaseManager(tmp_path / "nested" / "ragabot.db")
    await manager.initialize_database()
    yield manager
    await manager.close()


class TestGuildSettings:
    @pytest.mark.asyncio
    async def test_first_read_returns_defaults(self, db):
        settings = await db.get_guild_settings(10)
        assert settings == default_settings(10)

    @pytest.mark.asyncio
    async def test_updates_persist_across_instances(self, db, tmp_path):
        await db.update_volume(10, 75)
        await db.update_autoplay(10, True)
        await db.update_loop_mode(10, True)
        await db.update_prefix(10, "?")

        fresh = DatabaseManager(db.db_path)
        settings = await fresh.get_guild_settings(10)

        assert settings["volume"] == 75
        assert settings["autoplay"] is True
        assert settings["loop_mode"] is True
        assert settings["prefix"] == "?"
        assert await fresh.get_prefix(10) == "?"

    @pytest.mark.asyncio
    async def test_reads_are_cached_and_writes_invalidate(self, db):
        await db.get_guild_settings(10)
        await db.get_guild_settings(10)
        assert db.cache_hits == 1

        await db.update_volume(10, 20)
        assert (await db.get_guild_settings(10))["volume"] == 20

    @pytest.mark.asyncio
    async def test_cached_copy_is_not_shared(self, db):
        settings = await db.get_guild_settings(10)
        settings["volume"] = 99
        assert (await db.get_guild_settings(10))["volume"] != 99

    @pytest.mark.asyncio
    async def test_unknown_setting_is_rejected(self, db):
        with pytest.raises(ValueError):
            await db.update_guild_setting(10, "guild_id; DROP TABLE guild_settings", 1)

    @pytest.mark.asyncio
    async def test_guilds_do_not_share_settings(self, db):
        await db.update_volume(1, 90)
        assert (await db.get_guild_settings(2))["volume"] == default_settings(2)["volume"]


class TestCommandStats:
    @pytest.mark.asyncio
    async def test_usage_counts(self, db):
        for command in ("play", "play", "skip", "play"):
            assert await db.log_command_usage(1, 100, command)
        await db.log_command_usage(2, 100, "queue")

        stats = await db.get_command_stats(1)
        assert stats[0] == {"command": "play", "uses": 3}
        assert {"command": "skip", "uses": 1} in stats
        assert all(row["command"] != "queue" for row in stats)

        overall = await db.get_command_stats(limit=1)
        assert overall == [{"command": "play", "uses": 3}]

    @pytest.mark.asyncio
    async def test_fire_and_forget_usage_is_flushed_on_close(self, db):
        db.record_command_usage(1, 5, "loop")
        await db.close()
        assert await db.get_command_stats(1) == [{"command": "loop", "uses": 1}]
