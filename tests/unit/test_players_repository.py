"""Tests for core.players module."""

import asyncio

import pytest

from bossrush.game_server.core.errors import PersistenceError, ValidationError
from bossrush.game_server.core.locks import PlayerLockManager
from bossrush.game_server.core.players import PlayerRepository, player_key
from bossrush.game_server.core.store import MemoryDocumentStore
from bossrush.game_server.progression import award_active_weapon


class NoCommitStore(MemoryDocumentStore):
    """Store whose compare-and-set always loses."""

    async def compare_and_set(self, key, expected, update):
        return False


def _add_xp(table, amount):
    def mutate(player):
        return award_active_weapon(table, player, amount)

    return mutate


@pytest.mark.asyncio
class TestPlayerRepository:
    """Tests for PlayerRepository class."""

    async def test_get_or_create_starting_loadout(self, players):
        player = await players.get_or_create("p1")

        assert player.current_zone == "meadow"
        assert player.unlocked_zones == ["meadow"]
        assert player.unlocked_weapons == ["woodenSword"]
        assert player.active_weapon_id == "woodenSword"
        # Every known weapon is pre-populated, not only unlocked ones
        assert set(player.weapons) == {"woodenSword", "stoneSword"}
        assert player.weapons["stoneSword"].level == 1

    async def test_get_or_create_is_stable(self, players, table):
        await players.get_or_create("p1")
        await players.update("p1", _add_xp(table, 5))

        again = await players.get_or_create("p1")

        assert again.weapons["woodenSword"].xp == 5

    async def test_missing_player_id_rejected(self, players):
        with pytest.raises(ValidationError):
            await players.get_or_create("")

    async def test_require_unknown_player(self, players):
        with pytest.raises(ValidationError, match="Unknown player"):
            await players.require("ghost")

    async def test_update_increments_revision(self, players, table):
        await players.get_or_create("p1")

        player, award = await players.update("p1", _add_xp(table, 25))

        assert player.revision == 1
        assert (award.level, award.xp) == (2, 5)
        stored = await players.get("p1")
        assert stored == player

    async def test_concurrent_updates_not_lost(self, players, table):
        """Damage award and kill reward landing together both count."""
        await players.get_or_create("p1")

        await asyncio.gather(
            *(players.update("p1", _add_xp(table, 1), owner=f"u{i}") for i in range(15))
        )

        player = await players.get("p1")
        assert player.weapons["woodenSword"].xp == 15
        assert player.revision == 15

    async def test_update_unknown_player(self, players, table):
        with pytest.raises(ValidationError):
            await players.update("ghost", _add_xp(table, 1))

    async def test_conflicts_exhaust_retries(self, table):
        store = NoCommitStore()
        repo = PlayerRepository(store, table, PlayerLockManager(timeout=1.0), max_attempts=3)
        await repo.get_or_create("p1")

        with pytest.raises(PersistenceError, match="after 3 conflicts"):
            await repo.update("p1", _add_xp(table, 1))

    async def test_corrupt_document(self, store, players):
        await store.upsert_if_absent(player_key("p1"), {"player_id": "p1"})

        with pytest.raises(PersistenceError, match="Corrupt"):
            await players.get("p1")
