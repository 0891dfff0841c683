"""Tests for progression.unlocks module."""

from bossrush.game_server.progression import (
    Player,
    WeaponProgress,
    award_active_weapon,
    resolve_unlocks,
)


def _player(table, **weapons) -> Player:
    player = Player.new("p1", table)
    for weapon_id, (level, xp) in weapons.items():
        player.weapons[weapon_id] = WeaponProgress(level=level, xp=xp)
    return player


class TestResolveUnlocks:
    """Tests for resolve_unlocks function."""

    def test_nothing_to_unlock(self, table):
        player = _player(table, woodenSword=(2, 5))

        result = resolve_unlocks(table, player)

        assert result.changed is False
        assert result.player.unlocked_weapons == ["woodenSword"]
        assert result.player.unlocked_zones == ["meadow"]

    def test_weapon_unlock_cascades_into_zone(self, table):
        """woodenSword at level 3 yields stoneSword and the forest in one pass."""
        player = _player(table, woodenSword=(3, 0))

        result = resolve_unlocks(table, player)

        assert result.player.unlocked_weapons == ["woodenSword", "stoneSword"]
        assert result.player.unlocked_zones == ["meadow", "forest"]
        assert result.new_weapons == ["stoneSword"]
        assert result.new_zones == ["forest"]

    def test_cascade_after_level_up(self, table):
        player = _player(table, woodenSword=(2, 0))

        leveled, award = award_active_weapon(table, player, 100)
        result = resolve_unlocks(table, leveled)

        assert award.level == 3
        assert "stoneSword" in result.player.unlocked_weapons
        assert "forest" in result.player.unlocked_zones

    def test_active_weapon_unchanged_by_unlock(self, table):
        player = _player(table, woodenSword=(3, 0))

        result = resolve_unlocks(table, player)

        assert result.player.active_weapon_id == "woodenSword"

    def test_idempotent(self, table):
        player = _player(table, woodenSword=(3, 0))

        once = resolve_unlocks(table, player)
        twice = resolve_unlocks(table, once.player)

        assert twice.player == once.player
        assert twice.changed is False

    def test_never_removes_entries(self, table):
        """Unlocks survive even if levels would no longer justify them."""
        player = _player(table, woodenSword=(1, 0))
        player.unlocked_weapons = ["woodenSword", "stoneSword"]
        player.unlocked_zones = ["meadow", "forest"]

        result = resolve_unlocks(table, player)

        assert result.player.unlocked_weapons == ["woodenSword", "stoneSword"]
        assert result.player.unlocked_zones == ["meadow", "forest"]

    def test_monotone_across_sequence(self, table):
        player = _player(table, woodenSword=(1, 0))
        seen_weapons: list[str] = []
        seen_zones: list[str] = []

        for _ in range(12):
            player, _award = award_active_weapon(table, player, 15)
            player = resolve_unlocks(table, player).player
            assert player.unlocked_weapons[: len(seen_weapons)] == seen_weapons
            assert player.unlocked_zones[: len(seen_zones)] == seen_zones
            seen_weapons = list(player.unlocked_weapons)
            seen_zones = list(player.unlocked_zones)

        assert seen_weapons == ["woodenSword", "stoneSword"]
        assert seen_zones == ["meadow", "forest"]

    def test_locked_weapon_levels_ignored(self, table):
        """Only unlocked weapons drive the chain."""
        player = _player(table, stoneSword=(3, 0))

        result = resolve_unlocks(table, player)

        assert result.player.unlocked_zones == ["meadow"]
