from __future__ import annotations

from fastapi import HTTPException


async def handle(request: dict, world) -> dict:
    table = world.table
    if table is None:
        raise HTTPException(status_code=503, detail="Game config not loaded")

    zones = []
    for zone_id, spec in table.zones.items():
        gated_by = [
            weapon_id
            for weapon_id, weapon in table.weapons.items()
            if weapon.unlocks_zone == zone_id
        ]
        zones.append(
            {
                "zoneId": zone_id,
                "name": spec.name or zone_id,
                "maxHP": spec.max_hp,
                "killReward": spec.kill_reward,
                "starting": zone_id == table.starting_zone,
                "unlockedBy": gated_by,
            }
        )
    return {"zones": zones}
