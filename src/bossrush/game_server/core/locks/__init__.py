"""Lock implementations for preventing race conditions in game operations."""

from bossrush.game_server.core.locks.player_locks import PlayerLockManager

__all__ = ["PlayerLockManager"]
