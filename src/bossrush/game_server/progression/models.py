"""Player progression records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from pydantic import BaseModel, Field

from .table import ProgressionTable


class WeaponProgress(BaseModel):
    """Level/xp pair for a single weapon."""

    level: int = Field(default=1, ge=0)
    xp: int = Field(default=0, ge=0)


class Player(BaseModel):
    """Persistent progression state for one participant."""

    player_id: str
    current_zone: str
    unlocked_zones: List[str]
    unlocked_weapons: List[str] = Field(min_length=1)
    weapons: Dict[str, WeaponProgress] = {}
    revision: int = 0

    @property
    def active_weapon_id(self) -> str:
        """The weapon that receives all xp.

        Always the first entry of ``unlocked_weapons``; equipping a weapon
        moves it to the front rather than tracking a separate pointer.
        """
        return self.unlocked_weapons[0]

    def progress(self, weapon_id: str) -> WeaponProgress:
        return self.weapons.get(weapon_id) or WeaponProgress()

    def to_payload(self) -> dict:
        """Wire form sent as ``playerState``."""
        return {
            "playerId": self.player_id,
            "currentZone": self.current_zone,
            "unlockedZones": list(self.unlocked_zones),
            "unlockedWeapons": list(self.unlocked_weapons),
            "activeWeapon": self.active_weapon_id,
            "weapons": {
                weapon_id: {"level": progress.level, "xp": progress.xp}
                for weapon_id, progress in self.weapons.items()
            },
        }

    @classmethod
    def new(cls, player_id: str, table: ProgressionTable) -> "Player":
        """Fixed starting loadout: every known weapon at level 1."""
        return cls(
            player_id=player_id,
            current_zone=table.starting_zone,
            unlocked_zones=[table.starting_zone],
            unlocked_weapons=list(table.starting_weapons),
            weapons={weapon_id: WeaponProgress() for weapon_id in table.weapon_ids()},
        )


@dataclass(frozen=True)
class XpAward:
    """Result of applying xp to one weapon."""

    weapon_id: str
    level: int
    xp: int
    leveled_up: bool
    levels_gained: int = 0


@dataclass(frozen=True)
class UnlockResult:
    """Player after unlock resolution plus what changed."""

    player: Player
    new_weapons: List[str] = field(default_factory=list)
    new_zones: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.new_weapons or self.new_zones)
