from __future__ import annotations

from fastapi import HTTPException

from bossrush.game_server.api.utils import to_http_error
from bossrush.game_server.core.errors import GameError, ValidationError


async def handle(request: dict, world) -> dict:
    if world.bosses is None:
        raise HTTPException(status_code=503, detail="Combat system not initialised")

    zone_id = request.get("zoneId")
    try:
        boss = await world.bosses.get_boss(zone_id)
    except ValidationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except GameError as exc:
        raise to_http_error(exc) from exc
    return boss.to_payload()
