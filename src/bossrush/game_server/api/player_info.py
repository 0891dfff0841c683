"""Account bootstrap: fetch a player's record, creating it on first reference."""

from __future__ import annotations

from fastapi import HTTPException

from bossrush.game_server.api.utils import to_http_error
from bossrush.game_server.core.errors import GameError


async def handle(request: dict, world) -> dict:
    if world.players is None:
        raise HTTPException(status_code=503, detail="Player store not initialised")

    player_id = request.get("playerId")
    if not player_id or not isinstance(player_id, str):
        raise HTTPException(status_code=400, detail="playerId is required")

    try:
        player = await world.players.get_or_create(player_id)
    except GameError as exc:
        raise to_http_error(exc) from exc
    return player.to_payload()
