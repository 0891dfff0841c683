from __future__ import annotations

from fastapi import HTTPException

from bossrush.game_server.api.utils import require_coordinator, to_http_error
from bossrush.game_server.core.errors import GameError


async def handle(request: dict, world, connection) -> dict:
    player_id = request.get("playerId")
    zone_id = request.get("zoneId")

    if not player_id or not zone_id:
        raise HTTPException(status_code=400, detail="Missing required fields")

    coordinator = require_coordinator(world)
    try:
        player, boss = await coordinator.join_zone(connection, player_id, zone_id)
    except GameError as exc:
        raise to_http_error(exc) from exc

    return {
        "joined": True,
        "zoneId": zone_id,
        "player": player.to_payload(),
        "boss": boss.to_payload(),
    }
