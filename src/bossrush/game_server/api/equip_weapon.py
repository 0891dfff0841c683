from __future__ import annotations

from fastapi import HTTPException

from bossrush.game_server.api.utils import require_coordinator, to_http_error
from bossrush.game_server.core.errors import GameError


async def handle(request: dict, world) -> dict:
    player_id = request.get("playerId")
    weapon_id = request.get("weaponId")

    if not player_id or not weapon_id:
        raise HTTPException(status_code=400, detail="Missing required fields")

    coordinator = require_coordinator(world)
    try:
        player = await coordinator.equip_weapon(player_id, weapon_id)
    except GameError as exc:
        raise to_http_error(exc) from exc

    return {"equipped": weapon_id, "player": player.to_payload()}
