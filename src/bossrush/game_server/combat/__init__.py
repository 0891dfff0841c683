from .boss import BossStateMachine
from .coordinator import ZoneCombatCoordinator
from .models import Boss, DamageOutcome, HitOutcome, PlayerUpdate

__all__ = [
    "BossStateMachine",
    "ZoneCombatCoordinator",
    "Boss",
    "DamageOutcome",
    "HitOutcome",
    "PlayerUpdate",
]
