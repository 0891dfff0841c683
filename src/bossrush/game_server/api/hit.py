"""Fire-and-forget damage events. Invalid hits are dropped without a reply."""

from __future__ import annotations

from typing import Optional

from bossrush.game_server.combat.models import HitOutcome


async def handle(request: dict, world) -> Optional[HitOutcome]:
    if world.coordinator is None:
        return None
    return await world.coordinator.on_hit(
        request.get("playerId"),
        request.get("zoneId"),
        request.get("damage"),
    )
