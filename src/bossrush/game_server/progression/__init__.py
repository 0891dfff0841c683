"""Progression table, leveling engine and unlock resolver."""

from .engine import award_active_weapon, award_xp
from .models import Player, UnlockResult, WeaponProgress, XpAward
from .table import ProgressionTable, WeaponSpec, ZoneSpec, load_progression_table
from .unlocks import resolve_unlocks

__all__ = [
    "award_active_weapon",
    "award_xp",
    "Player",
    "UnlockResult",
    "WeaponProgress",
    "XpAward",
    "ProgressionTable",
    "WeaponSpec",
    "ZoneSpec",
    "load_progression_table",
    "resolve_unlocks",
]
