"""Shared helpers for API handlers."""

from __future__ import annotations

from fastapi import HTTPException

from bossrush.game_server.core.errors import GameError


def require_coordinator(world):
    if world.coordinator is None:
        raise HTTPException(status_code=503, detail="Combat system not initialised")
    return world.coordinator


def to_http_error(exc: GameError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=str(exc))
