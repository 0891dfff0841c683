"""Player locking for atomic progression updates."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict

from bossrush.game_server.core.errors import PersistenceError

logger = logging.getLogger("bossrush.locks.player")


class PlayerLockManager:
    """Manages per-player locks for progression read-modify-write cycles.

    Prevents lost updates when a damage award and a kill reward land on the
    same player at the same time. Each player gets its own lock, so updates
    for different players never wait on each other.

    Uses asyncio.Lock for proper queueing - concurrent updates for one
    player are serialized in FIFO order. A player's lock is dropped once no
    holder or waiter references it.
    """

    def __init__(self, timeout: float = 10.0):
        """Initialize player lock manager.

        Args:
            timeout: Seconds to wait for a lock before giving up
        """
        self.timeout = timeout
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def _checkout(self, player_id: str) -> asyncio.Lock:
        lock = self._locks.get(player_id)
        if lock is None:
            lock = self._locks[player_id] = asyncio.Lock()
        self._users[player_id] = self._users.get(player_id, 0) + 1
        return lock

    def _checkin(self, player_id: str) -> None:
        remaining = self._users[player_id] - 1
        if remaining:
            self._users[player_id] = remaining
        else:
            del self._users[player_id]
            del self._locks[player_id]

    @asynccontextmanager
    async def lock(self, player_id: str, owner: str = ""):
        """Acquire the progression lock for a player.

        Usage:
            async with player_locks.lock(player_id, owner="hit"):
                player = await repository.load(player_id)
                ...

        Args:
            player_id: Player whose record is being updated
            owner: Label for log messages

        Raises:
            PersistenceError: If the lock is not acquired within ``timeout``
        """
        lock = self._checkout(player_id)
        try:
            logger.debug("Acquiring player lock: player=%s owner=%s", player_id, owner)
            try:
                # Runs in this task: a timeout cancels the acquire itself.
                async with asyncio.timeout(self.timeout):
                    await lock.acquire()
            except TimeoutError as exc:
                logger.warning(
                    "Player lock timeout: player=%s owner=%s waited %.2fs",
                    player_id,
                    owner,
                    self.timeout,
                )
                raise PersistenceError(
                    f"Timed out waiting for player lock '{player_id}'"
                ) from exc
            logger.debug("Player lock acquired: player=%s owner=%s", player_id, owner)
            try:
                yield
            finally:
                lock.release()
                logger.debug("Player lock released: player=%s owner=%s", player_id, owner)
        finally:
            self._checkin(player_id)
