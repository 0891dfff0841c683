"""Per-hit orchestration of boss damage, progression and kill rewards."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from bossrush.game_server.core.errors import (
    NotUnlockedError,
    PersistenceError,
    ValidationError,
)
from bossrush.game_server.core.players import PlayerRepository
from bossrush.game_server.progression import (
    Player,
    ProgressionTable,
    UnlockResult,
    XpAward,
    award_active_weapon,
    resolve_unlocks,
)
from bossrush.game_server.rpc.events import EventDispatcher, EventLogContext, EventSink

from .boss import BossStateMachine
from .models import Boss, HitOutcome, PlayerUpdate

logger = logging.getLogger("bossrush.combat.coordinator")

BOSS_STATE_EVENT = "bossState"
PLAYER_STATE_EVENT = "playerState"


def validate_damage(raw_damage: object, max_damage: int) -> int:
    """Return ``raw_damage`` if it is an integer in ``[1, max_damage]``.

    Raises:
        ValidationError: Otherwise
    """
    if isinstance(raw_damage, bool) or not isinstance(raw_damage, int):
        raise ValidationError(f"Damage must be an integer, got {raw_damage!r}")
    if raw_damage < 1 or raw_damage > max_damage:
        raise ValidationError(f"Damage {raw_damage} outside 1..{max_damage}")
    return raw_damage


class ZoneCombatCoordinator:
    """Runs one transaction per incoming hit.

    The boss HP update and each player's progression update are independent
    units of work: a failure persisting one player is logged and leaves the
    boss and every other player's committed update intact.
    """

    def __init__(
        self,
        *,
        table: ProgressionTable,
        bosses: BossStateMachine,
        players: PlayerRepository,
        gateway: EventDispatcher,
    ) -> None:
        self._table = table
        self._bosses = bosses
        self._players = players
        self._gateway = gateway

    @property
    def max_hit_damage(self) -> int:
        return self._table.max_hit_damage

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def on_hit(
        self, player_id: str, zone_id: str, raw_damage: object
    ) -> Optional[HitOutcome]:
        """Apply one damage event. Returns None when the hit is dropped."""
        try:
            damage = validate_damage(raw_damage, self.max_hit_damage)
            self._table.zone(zone_id)
            actor = await self._players.require(player_id)
            if zone_id not in actor.unlocked_zones:
                raise NotUnlockedError(f"Zone '{zone_id}' not unlocked for '{player_id}'")
        except (ValidationError, NotUnlockedError) as exc:
            logger.debug("Dropped hit player=%s zone=%s: %s", player_id, zone_id, exc)
            return None

        try:
            damage_outcome = await self._bosses.apply_damage(zone_id, damage)
        except PersistenceError:
            logger.exception("Boss update failed zone=%s player=%s", zone_id, player_id)
            return None

        recipients: List[str] = []
        if damage_outcome.killed:
            # Reward audience is whoever is in the room when the kill is recognised.
            recipients = await self._reward_audience(zone_id, player_id)

        outcome = HitOutcome(
            zone_id=zone_id,
            player_id=player_id,
            damage=damage,
            boss=damage_outcome.boss,
            killed=damage_outcome.killed,
        )

        outcome.actor_update = await self._award(player_id, damage, owner="hit")
        if outcome.actor_update is None:
            outcome.failed_players.append(player_id)

        if damage_outcome.killed:
            updates = await asyncio.gather(
                *(
                    self._award(pid, damage_outcome.kill_reward, owner="kill")
                    for pid in recipients
                )
            )
            for pid, update in zip(recipients, updates):
                if update is None:
                    if pid not in outcome.failed_players:
                        outcome.failed_players.append(pid)
                else:
                    outcome.rewards[pid] = update

        await self._publish(outcome)
        return outcome

    async def join_zone(
        self, connection: EventSink, player_id: str, zone_id: str
    ) -> Tuple[Player, Boss]:
        """Move a connection into a zone room.

        Raises:
            ValidationError: Unknown zone, missing player id, or a connection
                already bound to another player
            NotUnlockedError: Zone not unlocked for this player
            PersistenceError: Player record could not be written
        """
        if not isinstance(zone_id, str) or not zone_id:
            raise ValidationError("Missing zoneId")
        self._table.zone(zone_id)
        player = await self._players.get_or_create(player_id)
        if zone_id not in player.unlocked_zones:
            raise NotUnlockedError(f"Zone '{zone_id}' not unlocked for '{player_id}'")

        set_player = getattr(connection, "set_player", None)
        if set_player is not None:
            try:
                set_player(player_id)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc

        boss = await self._bosses.ensure_boss(zone_id)
        if player.current_zone != zone_id:
            player, _ = await self._players.update(
                player_id,
                lambda p: (p.model_copy(update={"current_zone": zone_id}), None),
                owner="join",
            )

        set_zone = getattr(connection, "set_zone", None)
        if set_zone is not None:
            set_zone(zone_id)
        await self._gateway.join(connection, zone_id)
        logger.info("Player %s joined zone %s", player_id, zone_id)

        await self._gateway.send(connection, PLAYER_STATE_EVENT, player.to_payload())
        await self._gateway.broadcast(zone_id, BOSS_STATE_EVENT, boss.to_payload())
        return player, boss

    async def leave(self, connection: EventSink) -> None:
        """Release the connection's zone membership."""
        await self._gateway.unregister(connection)
        set_zone = getattr(connection, "set_zone", None)
        if set_zone is not None:
            set_zone(None)

    async def equip_weapon(self, player_id: str, weapon_id: str) -> Player:
        """Make an unlocked weapon the active one.

        Raises:
            ValidationError: Unknown player or weapon
            NotUnlockedError: Weapon not unlocked
        """
        self._table.weapon(weapon_id)

        def mutate(player: Player) -> Tuple[Player, None]:
            if weapon_id not in player.unlocked_weapons:
                raise NotUnlockedError(f"Weapon '{weapon_id}' not unlocked for '{player_id}'")
            order = [weapon_id] + [w for w in player.unlocked_weapons if w != weapon_id]
            return player.model_copy(update={"unlocked_weapons": order}), None

        player, _ = await self._players.update(player_id, mutate, owner="equip")
        await self._gateway.emit(
            PLAYER_STATE_EVENT, player.to_payload(), character_filter=[player_id]
        )
        return player

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _reward_audience(self, zone_id: str, actor_id: str) -> List[str]:
        members = await self._gateway.members_of(zone_id)
        audience = [actor_id]
        for sink in members:
            pid = getattr(sink, "player_id", None)
            if pid and pid not in audience:
                audience.append(pid)
        return audience

    async def _award(self, player_id: str, amount: int, *, owner: str) -> Optional[PlayerUpdate]:
        """Award xp to the player's active weapon and resolve unlocks in one write."""

        def mutate(player: Player) -> Tuple[Player, Tuple[XpAward, UnlockResult]]:
            leveled, award = award_active_weapon(self._table, player, amount)
            unlocks = resolve_unlocks(self._table, leveled)
            return unlocks.player, (award, unlocks)

        try:
            player, (award, unlocks) = await self._players.update(player_id, mutate, owner=owner)
        except (PersistenceError, ValidationError):
            logger.exception("Progression update failed player=%s owner=%s", player_id, owner)
            return None

        if award.leveled_up:
            logger.info(
                "Level up player=%s weapon=%s level=%d",
                player_id,
                award.weapon_id,
                award.level,
            )
        if unlocks.changed:
            logger.info(
                "Unlocks player=%s weapons=%s zones=%s",
                player_id,
                unlocks.new_weapons,
                unlocks.new_zones,
            )
        return PlayerUpdate(
            player=player,
            award=award,
            new_weapons=list(unlocks.new_weapons),
            new_zones=list(unlocks.new_zones),
        )

    async def _publish(self, outcome: HitOutcome) -> None:
        context = EventLogContext(
            sender=outcome.player_id,
            zone=outcome.zone_id,
            meta={"damage": outcome.damage, "killed": outcome.killed},
        )
        await self._gateway.broadcast(
            outcome.zone_id,
            BOSS_STATE_EVENT,
            outcome.boss.to_payload(),
            log_context=context,
        )

        latest: Dict[str, Player] = {}
        if outcome.actor_update is not None:
            latest[outcome.player_id] = outcome.actor_update.player
        for pid, update in outcome.rewards.items():
            latest[pid] = update.player

        await asyncio.gather(
            *(
                self._gateway.emit(
                    PLAYER_STATE_EVENT, player.to_payload(), character_filter=[pid]
                )
                for pid, player in latest.items()
            )
        )


__all__ = [
    "ZoneCombatCoordinator",
    "validate_damage",
    "BOSS_STATE_EVENT",
    "PLAYER_STATE_EVENT",
]
