"""Data models for the combat subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from bossrush.game_server.progression import Player, XpAward


class Boss(BaseModel):
    """Persisted boss record, one per zone."""

    zone_id: str
    max_hp: int = Field(gt=0)
    current_hp: int
    kill_reward: int = Field(default=0, ge=0)
    kill_count: int = Field(default=0, ge=0)

    @property
    def alive(self) -> bool:
        return self.current_hp > 0

    def to_payload(self) -> dict:
        """Wire form sent as ``bossState``; HP is never reported below zero."""
        return {
            "zoneId": self.zone_id,
            "maxHP": self.max_hp,
            "currentHP": max(0, self.current_hp),
            "killReward": self.kill_reward,
            "kills": self.kill_count,
        }


@dataclass
class DamageOutcome:
    """Result of one ``apply_damage`` call."""

    boss: Boss
    applied: bool
    killed: bool = False
    kill_reward: int = 0


@dataclass
class PlayerUpdate:
    """Committed progression change for one player."""

    player: Player
    award: XpAward
    new_weapons: List[str] = field(default_factory=list)
    new_zones: List[str] = field(default_factory=list)


@dataclass
class HitOutcome:
    """Everything an accepted hit changed."""

    zone_id: str
    player_id: str
    damage: int
    boss: Boss
    killed: bool
    actor_update: Optional[PlayerUpdate] = None
    rewards: Dict[str, PlayerUpdate] = field(default_factory=dict)
    failed_players: List[str] = field(default_factory=list)
