"""Error taxonomy for the combat engine."""

from __future__ import annotations


class GameError(Exception):
    """Base class for game errors. ``status_code`` maps onto RPC error frames."""

    status_code = 500


class ValidationError(GameError):
    """Malformed or out-of-range input, or an unknown zone/player/weapon."""

    status_code = 400


class NotUnlockedError(GameError):
    """Player acted on a zone or weapon it has not unlocked."""

    status_code = 403


class PersistenceError(GameError):
    """Storage unavailable, write conflict retries exhausted, or lock timeout."""

    status_code = 503


class StartupError(RuntimeError):
    """Fatal configuration problem detected while the process starts."""


__all__ = [
    "GameError",
    "ValidationError",
    "NotUnlockedError",
    "PersistenceError",
    "StartupError",
]
