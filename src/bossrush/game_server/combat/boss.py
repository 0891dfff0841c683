"""Boss health state machine: damage, kill detection and respawn."""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from bossrush.game_server.core.errors import PersistenceError, ValidationError
from bossrush.game_server.core.store import DocumentStore
from bossrush.game_server.progression import ProgressionTable

from .models import Boss, DamageOutcome

logger = logging.getLogger("bossrush.combat.boss")


def boss_key(zone_id: str) -> str:
    return f"boss:{zone_id}"


class BossStateMachine:
    """Sole writer of boss HP.

    ALIVE (hp > 0) -> DEAD (hp <= 0, transient) -> ALIVE (hp = max_hp).

    Damage uses the store's conditional decrement, so only the decrement that
    takes HP from positive to zero-or-below sees a non-positive result. That
    caller is the killer of record and distributes the reward. The reset is
    a compare-and-set against the dead document: the killer attempts it, and
    any later hit that finds the boss still dead completes it, so a failed
    reset never leaves the zone without a boss.
    """

    def __init__(
        self,
        store: DocumentStore,
        table: ProgressionTable,
        *,
        max_reset_attempts: int = 5,
    ) -> None:
        self._store = store
        self._table = table
        self._max_reset_attempts = max_reset_attempts

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def ensure_boss(self, zone_id: str) -> Boss:
        """Return the zone's boss, seeding it on first reference."""
        spec = self._table.zone(zone_id)
        seed = Boss(
            zone_id=zone_id,
            max_hp=spec.max_hp,
            current_hp=spec.max_hp,
            kill_reward=spec.kill_reward,
        )
        doc = await self._store.upsert_if_absent(boss_key(zone_id), seed.model_dump())
        return self._parse(zone_id, doc)

    async def get_boss(self, zone_id: str) -> Boss:
        doc = await self._store.get(boss_key(zone_id))
        if doc is None:
            return await self.ensure_boss(zone_id)
        return self._parse(zone_id, doc)

    async def apply_damage(self, zone_id: str, amount: int) -> DamageOutcome:
        """Damage the zone boss.

        Raises:
            ValidationError: If amount is not a positive integer or the zone is unknown
            PersistenceError: If the respawn write could not be committed
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError(f"Damage must be a positive integer, got {amount!r}")

        await self.ensure_boss(zone_id)
        new_hp = await self._store.atomic_decrement_if_positive(
            boss_key(zone_id), "current_hp", amount
        )

        if new_hp is None:
            boss = await self.get_boss(zone_id)
            if boss.alive:
                logger.debug("Damage absorbed: zone=%s boss already respawned", zone_id)
                return DamageOutcome(boss=boss, applied=False)
            # Still dead: the killer is mid-reset or its reset failed. Whichever
            # compare-and-set commits first resets the boss and counts the kill.
            logger.debug("Damage absorbed: zone=%s completing respawn", zone_id)
            boss = await self._respawn(zone_id, count_kill=True)
            return DamageOutcome(boss=boss, applied=False)

        if new_hp > 0:
            boss = await self.get_boss(zone_id)
            # Report the value this decrement produced, not a later one.
            boss = boss.model_copy(update={"current_hp": new_hp})
            return DamageOutcome(boss=boss, applied=True)

        boss = await self._respawn(zone_id, count_kill=True)
        logger.info(
            "Boss killed: zone=%s kill=%d reward=%d",
            zone_id,
            boss.kill_count,
            boss.kill_reward,
        )
        return DamageOutcome(
            boss=boss, applied=True, killed=True, kill_reward=boss.kill_reward
        )

    async def recover(self, zone_id: str) -> Boss:
        """Respawn a boss left dead by an interrupted reset. No reward is paid."""
        boss = await self.ensure_boss(zone_id)
        if boss.alive:
            return boss
        logger.warning("Recovering dead boss: zone=%s hp=%d", zone_id, boss.current_hp)
        return await self._respawn(zone_id, count_kill=False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _respawn(self, zone_id: str, *, count_kill: bool) -> Boss:
        key = boss_key(zone_id)
        for _ in range(self._max_reset_attempts):
            doc = await self._store.get(key)
            if doc is None:
                raise PersistenceError(f"Boss document for zone '{zone_id}' disappeared")
            dead = self._parse(zone_id, doc)
            if dead.alive:
                # Another caller committed the reset first.
                return dead
            reset = dead.model_copy(
                update={
                    "current_hp": dead.max_hp,
                    "kill_count": dead.kill_count + (1 if count_kill else 0),
                }
            )
            if await self._store.compare_and_set(key, doc, reset.model_dump()):
                return reset
        raise PersistenceError(
            f"Could not respawn boss in zone '{zone_id}' after {self._max_reset_attempts} attempts"
        )

    def _parse(self, zone_id: str, doc: dict) -> Boss:
        try:
            return Boss.model_validate(doc)
        except PydanticValidationError as exc:
            raise PersistenceError(f"Corrupt boss document '{zone_id}': {exc}") from exc


__all__ = ["BossStateMachine", "boss_key"]
