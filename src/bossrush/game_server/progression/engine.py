"""XP accumulation and threshold-based leveling."""

from __future__ import annotations

from typing import Tuple

from bossrush.game_server.core.errors import ValidationError

from .models import Player, WeaponProgress, XpAward
from .table import ProgressionTable


def award_xp(
    table: ProgressionTable,
    weapon_id: str,
    progress: WeaponProgress,
    amount: int,
) -> XpAward:
    """Add ``amount`` xp to a weapon and climb the level ladder.

    Excess xp past a threshold carries over toward the next level, so one
    award may cross several levels. At the max level xp keeps accumulating.

    Raises:
        ValidationError: If amount is negative or weapon_id is unknown
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"XP amount must be an integer, got {amount!r}")
    if amount < 0:
        raise ValidationError(f"Cannot award negative xp: {amount}")

    max_level = table.max_level(weapon_id)
    level = progress.level
    xp = progress.xp + amount
    start_level = level

    while level < max_level:
        needed = table.threshold(weapon_id, level)
        if xp < needed:
            break
        xp -= needed
        level += 1

    return XpAward(
        weapon_id=weapon_id,
        level=level,
        xp=xp,
        leveled_up=level > start_level,
        levels_gained=level - start_level,
    )


def award_active_weapon(
    table: ProgressionTable, player: Player, amount: int
) -> Tuple[Player, XpAward]:
    """Apply xp to the player's active weapon and return the new player."""
    weapon_id = player.active_weapon_id
    award = award_xp(table, weapon_id, player.progress(weapon_id), amount)

    updated = player.model_copy(deep=True)
    updated.weapons[weapon_id] = WeaponProgress(level=award.level, xp=award.xp)
    return updated, award


__all__ = ["award_xp", "award_active_weapon"]
