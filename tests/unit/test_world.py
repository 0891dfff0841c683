"""Tests for core.world module."""

import pytest
from fastapi import FastAPI

from bossrush.game_server.combat.boss import boss_key
from bossrush.game_server.core.errors import StartupError
from bossrush.game_server.core.store import JsonFileDocumentStore, MemoryDocumentStore
from bossrush.game_server.core.world import GameWorld, lifespan, world
from bossrush.game_server.rpc.events import EventDispatcher


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.delenv("BOSSRUSH_CONFIG", raising=False)
    monkeypatch.setenv("BOSSRUSH_DATA_DIR", str(tmp_path))
    return tmp_path


@pytest.mark.asyncio
class TestGameWorld:
    """Tests for GameWorld class."""

    async def test_memory_backend(self, env, monkeypatch):
        monkeypatch.setenv("BOSSRUSH_STORE", "memory")
        game = GameWorld(EventDispatcher())

        game.load_data()
        await game.seed_bosses()

        assert isinstance(game.store, MemoryDocumentStore)
        boss = await game.bosses.get_boss("volcano")
        assert boss.current_hp == boss.max_hp == 5000

    async def test_file_backend_recovers_dead_boss(self, env, monkeypatch):
        monkeypatch.setenv("BOSSRUSH_STORE", "file")
        first = GameWorld(EventDispatcher())
        first.load_data()
        await first.seed_bosses()
        # Simulate a crash between the killing decrement and the reset
        await first.store.atomic_decrement_if_positive(boss_key("meadow"), "current_hp", 500)

        second = GameWorld(EventDispatcher())
        second.load_data()
        await second.seed_bosses()

        assert isinstance(second.store, JsonFileDocumentStore)
        boss = await second.bosses.get_boss("meadow")
        assert boss.current_hp == 100
        assert boss.kill_count == 0
        assert (env / "documents").is_dir()

    async def test_unknown_backend(self, env, monkeypatch):
        monkeypatch.setenv("BOSSRUSH_STORE", "redis")

        with pytest.raises(StartupError, match="BOSSRUSH_STORE"):
            GameWorld(EventDispatcher()).load_data()

    async def test_missing_config(self, env, monkeypatch):
        monkeypatch.setenv("BOSSRUSH_CONFIG", str(env / "nope.yaml"))

        with pytest.raises(StartupError):
            GameWorld(EventDispatcher()).load_data()

    async def test_seed_requires_configuration(self):
        with pytest.raises(StartupError):
            await GameWorld(EventDispatcher()).seed_bosses()

    async def test_lifespan_wires_global_world(self, env, monkeypatch):
        monkeypatch.setenv("BOSSRUSH_STORE", "memory")

        try:
            async with lifespan(FastAPI()):
                assert world.coordinator is not None
                assert (await world.bosses.get_boss("meadow")).alive
        finally:
            world.dispatcher.set_event_logger(None)
            world.table = None
            world.store = None
            world.bosses = None
            world.players = None
            world.coordinator = None
