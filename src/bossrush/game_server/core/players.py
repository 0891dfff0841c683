"""Player record persistence with per-player atomic updates."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, TypeVar

from pydantic import ValidationError as PydanticValidationError

from bossrush.game_server.core.errors import PersistenceError, ValidationError
from bossrush.game_server.core.locks import PlayerLockManager
from bossrush.game_server.core.store import DocumentStore
from bossrush.game_server.progression import Player, ProgressionTable

logger = logging.getLogger("bossrush.players")

T = TypeVar("T")

PlayerMutation = Callable[[Player], Tuple[Player, T]]


def player_key(player_id: str) -> str:
    return f"player:{player_id}"


class PlayerRepository:
    """Loads, creates and updates player documents.

    ``update`` is the single transaction boundary for a logical player
    change: it takes the player's lock, reads the document, applies a pure
    mutation and writes it back once with compare-and-set on ``revision``.
    """

    def __init__(
        self,
        store: DocumentStore,
        table: ProgressionTable,
        locks: Optional[PlayerLockManager] = None,
        *,
        max_attempts: int = 5,
    ) -> None:
        self._store = store
        self._table = table
        self._locks = locks or PlayerLockManager()
        self._max_attempts = max_attempts

    async def get(self, player_id: str) -> Optional[Player]:
        doc = await self._store.get(player_key(player_id))
        if doc is None:
            return None
        return self._parse(player_id, doc)

    async def require(self, player_id: str) -> Player:
        if not isinstance(player_id, str) or not player_id:
            raise ValidationError("Missing playerId")
        player = await self.get(player_id)
        if player is None:
            raise ValidationError(f"Unknown player '{player_id}'")
        return player

    async def get_or_create(self, player_id: str) -> Player:
        if not isinstance(player_id, str) or not player_id:
            raise ValidationError("Missing playerId")
        seed = Player.new(player_id, self._table).model_dump()
        doc = await self._store.upsert_if_absent(player_key(player_id), seed)
        return self._parse(player_id, doc)

    async def update(
        self, player_id: str, mutate: PlayerMutation[T], *, owner: str = "update"
    ) -> Tuple[Player, T]:
        """Apply ``mutate`` to the stored player and persist the result.

        ``mutate`` receives the current player and returns the new player
        plus an arbitrary result passed back to the caller. It may run more
        than once if another writer commits first.

        Raises:
            ValidationError: If the player does not exist
            PersistenceError: On lock timeout or exhausted write conflicts
        """
        key = player_key(player_id)
        async with self._locks.lock(player_id, owner=owner):
            for attempt in range(1, self._max_attempts + 1):
                doc = await self._store.get(key)
                if doc is None:
                    raise ValidationError(f"Unknown player '{player_id}'")
                current = self._parse(player_id, doc)
                updated, result = mutate(current)
                updated = updated.model_copy(update={"revision": current.revision + 1})
                if await self._store.compare_and_set(key, doc, updated.model_dump()):
                    return updated, result
                logger.debug(
                    "Write conflict on player=%s owner=%s attempt=%d",
                    player_id,
                    owner,
                    attempt,
                )
        raise PersistenceError(
            f"Gave up updating player '{player_id}' after {self._max_attempts} conflicts"
        )

    def _parse(self, player_id: str, doc: dict) -> Player:
        try:
            return Player.model_validate(doc)
        except PydanticValidationError as exc:
            raise PersistenceError(f"Corrupt player document '{player_id}': {exc}") from exc


__all__ = ["PlayerRepository", "player_key"]
