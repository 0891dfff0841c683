#!/usr/bin/env python3
"""Boss Rush WebSocket server with unified event dispatch."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from bossrush import __version__
from bossrush.game_server.api import (
    boss_state as api_boss_state,
    equip_weapon as api_equip_weapon,
    event_query as api_event_query,
    hit as api_hit,
    join_zone as api_join_zone,
    player_info as api_player_info,
    zone_list as api_zone_list,
)
from bossrush.game_server.core.world import lifespan as world_lifespan, world
from bossrush.game_server.rpc import rpc_error, rpc_success
from bossrush.game_server.rpc.connection import Connection

logger = logging.getLogger("bossrush.server")
logging.basicConfig(level=logging.INFO)

ConnectionHandler = Callable[[Dict[str, Any], Connection], Awaitable[Dict[str, Any]]]

HIT_EVENT = "hit"

app = FastAPI(title="Boss Rush", version=__version__, lifespan=world_lifespan)


# Events that answer with an rpc frame. ``hit`` is handled separately and
# never replies.
EVENT_HANDLERS: Dict[str, ConnectionHandler] = {
    "joinZone": lambda payload, connection: api_join_zone.handle(
        payload, world, connection
    ),
    "equipWeapon": lambda payload, connection: api_equip_weapon.handle(payload, world),
    "playerInfo": lambda payload, connection: api_player_info.handle(payload, world),
    "bossState": lambda payload, connection: api_boss_state.handle(payload, world),
    "eventQuery": lambda payload, connection: api_event_query.handle(payload, world),
}


@app.get("/")
async def root() -> Dict[str, Any]:
    return {
        "name": "Boss Rush",
        "version": __version__,
        "status": "running",
        "zones": len(world.table.zones) if world.table else 0,
    }


@app.get("/players/{player_id}")
async def get_player(player_id: str) -> Dict[str, Any]:
    return await api_player_info.handle({"playerId": player_id}, world)


@app.get("/zones")
async def list_zones() -> Dict[str, Any]:
    return await api_zone_list.handle({}, world)


@app.get("/zones/{zone_id}/boss")
async def get_boss(zone_id: str) -> Dict[str, Any]:
    return await api_boss_state.handle({"zoneId": zone_id}, world)


@app.get("/events")
async def query_events(
    start: str,
    end: str,
    player_id: Optional[str] = None,
    zone_id: Optional[str] = None,
    event: Optional[str] = None,
    limit: Optional[int] = None,
    sort_direction: str = "forward",
) -> Dict[str, Any]:
    return await api_event_query.handle(
        {
            "start": start,
            "end": end,
            "playerId": player_id,
            "zoneId": zone_id,
            "event": event,
            "limit": limit,
            "sortDirection": sort_direction,
        },
        world,
    )


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    connection = Connection(websocket)
    await world.dispatcher.register(connection)
    logger.info("WebSocket connected id=%s", connection.connection_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json(
                    rpc_error(
                        str(uuid.uuid4()),
                        "unknown",
                        HTTPException(status_code=400, detail="Invalid JSON"),
                    )
                )
                continue
            if not isinstance(frame, dict):
                frame = {}

            event_name = frame.get("event")
            raw_payload = frame.get("payload")
            payload: Dict[str, Any] = dict(raw_payload) if isinstance(raw_payload, dict) else {}

            if event_name == HIT_EVENT:
                # Fire-and-forget: the outcome goes out as bossState/playerState events.
                try:
                    await api_hit.handle(payload, world)
                except Exception:  # noqa: BLE001
                    logger.exception("Hit handler error connection=%s", connection.connection_id)
                continue

            frame_id = str(frame.get("id") or uuid.uuid4())
            if raw_payload is not None and not isinstance(raw_payload, dict):
                await websocket.send_json(
                    rpc_error(
                        frame_id,
                        event_name or "unknown",
                        HTTPException(
                            status_code=400,
                            detail="Invalid payload type; expected object",
                        ),
                    )
                )
                continue

            handler = EVENT_HANDLERS.get(event_name)
            if not handler:
                await websocket.send_json(
                    rpc_error(
                        frame_id,
                        event_name or "unknown",
                        HTTPException(
                            status_code=404, detail=f"Unknown event: {event_name}"
                        ),
                    )
                )
                continue

            try:
                result = await handler(payload, connection)
                await websocket.send_json(rpc_success(frame_id, event_name, result))
            except HTTPException as exc:
                await websocket.send_json(rpc_error(frame_id, event_name, exc))
            except Exception as exc:  # noqa: BLE001
                logger.exception("Event handler error event=%s", event_name)
                await websocket.send_json(rpc_error(frame_id, event_name, exc))
    except WebSocketDisconnect:
        logger.info("WebSocket disconnected id=%s", connection.connection_id)
    finally:
        if world.coordinator is not None:
            await world.coordinator.leave(connection)
        else:
            await world.dispatcher.unregister(connection)


if __name__ == "__main__":
    import uvicorn

    from bossrush.utils.config import get_port

    uvicorn.run(app, host="0.0.0.0", port=get_port())
