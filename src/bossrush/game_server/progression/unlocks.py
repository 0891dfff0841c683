"""Weapon and zone unlock cascades."""

from __future__ import annotations

from typing import List

from .models import Player, UnlockResult
from .table import ProgressionTable


def resolve_unlocks(table: ProgressionTable, player: Player) -> UnlockResult:
    """Derive newly unlocked weapons and zones from current weapon levels.

    Runs to a fixed point, so a weapon unlock that gates a zone is picked up
    in the same call. Entries are only ever appended.
    """
    updated = player.model_copy(deep=True)
    new_weapons: List[str] = []
    new_zones: List[str] = []

    changed = True
    while changed:
        changed = False
        for weapon_id in list(updated.unlocked_weapons):
            spec = table.weapons.get(weapon_id)
            if spec is None:
                continue

            if (
                spec.unlocks is not None
                and spec.unlocks not in updated.unlocked_weapons
                and updated.progress(weapon_id).level >= spec.unlock_level
            ):
                updated.unlocked_weapons.append(spec.unlocks)
                new_weapons.append(spec.unlocks)
                changed = True

            if spec.unlocks_zone is not None and spec.unlocks_zone not in updated.unlocked_zones:
                updated.unlocked_zones.append(spec.unlocks_zone)
                new_zones.append(spec.unlocks_zone)
                changed = True

    return UnlockResult(player=updated, new_weapons=new_weapons, new_zones=new_zones)


__all__ = ["resolve_unlocks"]
