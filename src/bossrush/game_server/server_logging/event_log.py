"""Structured event logging for Boss Rush server events."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
import json
from collections import deque
from pathlib import Path
from typing import Any, Iterable

from loguru import logger

MAX_QUERY_RESULTS = 1024


def _json_default(value: Any) -> Any:
    """Fallback serializer for objects that json cannot handle."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, set):
        return sorted(value)
    if hasattr(value, "__dict__"):
        return value.__dict__
    return str(value)


@dataclass(slots=True)
class EventRecord:
    """Serializable representation of an emitted or delivered event."""

    timestamp: str
    direction: str
    event: str
    payload: dict[str, Any]
    sender: str | None
    receiver: str | None
    zone: str | None
    meta: dict[str, Any] | None

    def to_json(self) -> str:
        """Serialize record to a JSON string."""
        return json.dumps(asdict(self), separators=(",", ":"), default=_json_default)


class EventLogger:
    """Append-only JSON Lines logger for game events."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: EventRecord) -> None:
        """Append a record to the log file."""
        line = record.to_json()
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
            handle.flush()

    def query(
        self,
        start: datetime,
        end: datetime,
        *,
        player_id: str | None = None,
        zone: str | None = None,
        event: str | None = None,
        limit: int | None = None,
        sort_direction: str = "forward",
    ) -> tuple[list[dict[str, Any]], bool]:
        """Return log entries within a time window, optionally filtered."""
        if not self._path.exists():
            return [], False

        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)

        if limit is None or limit <= 0:
            limit = MAX_QUERY_RESULTS
        limit = min(limit, MAX_QUERY_RESULTS)

        reverse = (sort_direction or "forward").lower() == "reverse"

        results: list[dict[str, Any]] = []
        truncated = False
        window: deque | None = deque(maxlen=limit) if reverse else None

        for entry in self._iter_entries():
            timestamp_str = entry.get("timestamp")
            if not isinstance(timestamp_str, str):
                continue
            try:
                timestamp = datetime.fromisoformat(timestamp_str)
            except ValueError:
                continue
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)

            if timestamp < start or timestamp > end:
                continue

            if player_id and player_id not in (entry.get("sender"), entry.get("receiver")):
                continue
            if zone is not None and entry.get("zone") != zone:
                continue
            if event is not None and entry.get("event") != event:
                continue

            if window is not None:
                if len(window) == window.maxlen:
                    truncated = True
                window.append(entry)
            else:
                results.append(entry)
                if len(results) >= limit:
                    truncated = True
                    break

        if window is not None:
            return list(window)[::-1], truncated
        return results, truncated

    def _iter_entries(self) -> Iterable[dict[str, Any]]:
        with self._path.open("r", encoding="utf-8") as handle:
            for raw in handle:
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    yield json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Skipping malformed event log line: {}", raw)
