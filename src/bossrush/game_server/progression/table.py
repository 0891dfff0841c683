"""Static progression table: weapon thresholds, unlock chains and zones.

The table is loaded once from YAML and validated with pydantic. Everything
else in the progression package is a pure function over it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, model_validator

from bossrush.game_server.core.errors import StartupError, ValidationError


class ZoneSpec(BaseModel):
    """Boss seed values for a zone."""

    name: str = ""
    max_hp: int = Field(gt=0)
    kill_reward: int = Field(default=0, ge=0)


class WeaponSpec(BaseModel):
    """Leveling ladder and unlock rules for one weapon."""

    thresholds: List[int] = Field(min_length=1)
    unlock_level: Optional[int] = Field(default=None, ge=0)
    unlocks: Optional[str] = None
    unlocks_zone: Optional[str] = None

    @model_validator(mode="after")
    def _check_thresholds(self) -> "WeaponSpec":
        if any(value < 0 for value in self.thresholds):
            raise ValueError("thresholds must be non-negative")
        if any(b < a for a, b in zip(self.thresholds, self.thresholds[1:])):
            raise ValueError("thresholds must be non-decreasing")
        if self.unlocks is not None and self.unlock_level is None:
            raise ValueError("unlocks requires unlock_level")
        return self

    @property
    def max_level(self) -> int:
        return len(self.thresholds)


class ProgressionTable(BaseModel):
    """Complete game table as read from ``game.yaml``."""

    max_hit_damage: int = Field(default=100, gt=0)
    starting_zone: str
    starting_weapons: List[str] = Field(min_length=1)
    zones: Dict[str, ZoneSpec]
    weapons: Dict[str, WeaponSpec]

    @model_validator(mode="after")
    def _check_references(self) -> "ProgressionTable":
        if self.starting_zone not in self.zones:
            raise ValueError(f"starting_zone '{self.starting_zone}' is not a configured zone")
        for weapon_id in self.starting_weapons:
            if weapon_id not in self.weapons:
                raise ValueError(f"starting weapon '{weapon_id}' is not a configured weapon")
        for weapon_id, spec in self.weapons.items():
            if spec.unlocks is not None and spec.unlocks not in self.weapons:
                raise ValueError(f"weapon '{weapon_id}' unlocks unknown weapon '{spec.unlocks}'")
            if spec.unlocks_zone is not None and spec.unlocks_zone not in self.zones:
                raise ValueError(f"weapon '{weapon_id}' gates unknown zone '{spec.unlocks_zone}'")
        return self

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def weapon(self, weapon_id: str) -> WeaponSpec:
        spec = self.weapons.get(weapon_id) if isinstance(weapon_id, str) else None
        if spec is None:
            raise ValidationError(f"Unknown weapon '{weapon_id}'")
        return spec

    def zone(self, zone_id: str) -> ZoneSpec:
        spec = self.zones.get(zone_id) if isinstance(zone_id, str) else None
        if spec is None:
            raise ValidationError(f"Unknown zone '{zone_id}'")
        return spec

    def threshold(self, weapon_id: str, level: int) -> int:
        """XP needed to advance ``weapon_id`` from ``level`` to ``level + 1``.

        Levels past the end of the ladder reuse the last threshold so the
        step function stays non-decreasing.
        """
        thresholds = self.weapon(weapon_id).thresholds
        index = max(0, min(level, len(thresholds) - 1))
        return thresholds[index]

    def max_level(self, weapon_id: str) -> int:
        return self.weapon(weapon_id).max_level

    def zone_ids(self) -> List[str]:
        return list(self.zones)

    def weapon_ids(self) -> List[str]:
        return list(self.weapons)


def load_progression_table(path: Path) -> ProgressionTable:
    """Read and validate the game table.

    Raises:
        StartupError: If the file is missing, unreadable or invalid
    """
    if not path.exists():
        raise StartupError(f"Game config not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise StartupError(f"Failed to read game config {path}: {exc}") from exc

    try:
        table = ProgressionTable.model_validate(raw)
    except PydanticValidationError as exc:
        raise StartupError(f"Invalid game config {path}: {exc}") from exc

    logger.info(
        "Loaded game config from {} ({} zones, {} weapons)",
        path,
        len(table.zones),
        len(table.weapons),
    )
    return table


__all__ = ["ZoneSpec", "WeaponSpec", "ProgressionTable", "load_progression_table"]
