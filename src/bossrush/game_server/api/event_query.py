"""Query the structured event log by time window, player, zone or event name."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import HTTPException

from bossrush.game_server.server_logging.event_log import MAX_QUERY_RESULTS


def _parse_timestamp(value: str | None, label: str) -> datetime:
    if not value:
        raise HTTPException(status_code=400, detail=f"Missing {label}")
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{label} must be a string")
    try:
        timestamp = datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} format")
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def _optional_str(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{key} must be a string")
    return value or None


async def handle(payload: dict, world) -> dict:
    event_logger = getattr(world, "event_logger", None)
    if event_logger is None:
        raise HTTPException(status_code=503, detail="Event log unavailable")

    start = _parse_timestamp(payload.get("start"), "start")
    end = _parse_timestamp(payload.get("end"), "end")
    if start > end:
        raise HTTPException(status_code=400, detail="start must be before end")

    player_id = _optional_str(payload, "playerId")
    zone_id = _optional_str(payload, "zoneId")
    event = _optional_str(payload, "event")

    limit = payload.get("limit")
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int)):
        raise HTTPException(status_code=400, detail="limit must be an integer")

    sort_direction = payload.get("sortDirection") or "forward"
    if sort_direction not in ("forward", "reverse"):
        raise HTTPException(
            status_code=400, detail="sortDirection must be 'forward' or 'reverse'"
        )

    events, truncated = event_logger.query(
        start,
        end,
        player_id=player_id,
        zone=zone_id,
        event=event,
        limit=limit,
        sort_direction=sort_direction,
    )
    return {
        "events": events,
        "count": len(events),
        "truncated": truncated,
        "maxResults": MAX_QUERY_RESULTS,
    }
