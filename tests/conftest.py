"""Shared fixtures for Boss Rush tests."""

from __future__ import annotations

import pytest

from bossrush.game_server.combat import BossStateMachine, ZoneCombatCoordinator
from bossrush.game_server.core.locks import PlayerLockManager
from bossrush.game_server.core.players import PlayerRepository
from bossrush.game_server.core.store import MemoryDocumentStore
from bossrush.game_server.progression import ProgressionTable
from bossrush.game_server.rpc.events import EventDispatcher

TEST_TABLE = {
    "max_hit_damage": 100,
    "starting_zone": "meadow",
    "starting_weapons": ["woodenSword"],
    "zones": {
        "meadow": {"name": "Meadow", "max_hp": 10, "kill_reward": 5},
        "forest": {"name": "Forest", "max_hp": 100, "kill_reward": 20},
    },
    "weapons": {
        "woodenSword": {
            "thresholds": [0, 20, 100],
            "unlock_level": 3,
            "unlocks": "stoneSword",
        },
        "stoneSword": {
            "thresholds": [0, 50, 200],
            "unlocks_zone": "forest",
        },
    },
}


class DummySink:
    """Connection stand-in that records every envelope it receives."""

    def __init__(self, player_id: str | None = None) -> None:
        self.player_id = player_id
        self.zone_id: str | None = None
        self.connection_id = f"conn-{player_id}"
        self.envelopes: list[dict] = []

    async def send_event(self, envelope: dict) -> None:
        self.envelopes.append(envelope)

    def match_character(self, player_id: str) -> bool:
        return self.player_id == player_id

    def set_player(self, player_id: str) -> None:
        if self.player_id is not None and self.player_id != player_id:
            raise ValueError(f"Connection already associated with player '{self.player_id}'")
        self.player_id = player_id

    def set_zone(self, zone_id: str | None) -> None:
        self.zone_id = zone_id

    def events(self, name: str) -> list[dict]:
        return [env["payload"] for env in self.envelopes if env.get("event") == name]


@pytest.fixture
def table() -> ProgressionTable:
    return ProgressionTable.model_validate(TEST_TABLE)


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def dispatcher() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture
def bosses(store, table) -> BossStateMachine:
    return BossStateMachine(store, table)


@pytest.fixture
def players(store, table) -> PlayerRepository:
    return PlayerRepository(store, table, PlayerLockManager(timeout=2.0))


@pytest.fixture
def coordinator(table, bosses, players, dispatcher) -> ZoneCombatCoordinator:
    return ZoneCombatCoordinator(
        table=table, bosses=bosses, players=players, gateway=dispatcher
    )
