"""Runtime event dispatcher: rooms, unicast and zone-wide broadcast."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Dict, Iterable, Protocol, Sequence, Set

from bossrush.game_server.server_logging.event_log import EventLogger, EventRecord


class EventSink(Protocol):
    """Protocol implemented by WebSocket connections that can receive events.

    Each EventSink represents a single player's connection.
    """

    connection_id: str

    async def send_event(self, envelope: dict) -> None:
        """Send an event to this connection."""
        ...

    def match_character(self, player_id: str) -> bool:
        """Check if this connection is for the given player."""
        ...


logger = logging.getLogger("bossrush.events")


def _infer_sender(payload: dict) -> str | None:
    if not isinstance(payload, dict):
        return None
    player_id = payload.get("playerId")
    if isinstance(player_id, str) and player_id:
        return player_id
    return None


def _infer_zone(payload: dict) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in ("zoneId", "currentZone"):
        zone_id = payload.get(key)
        if isinstance(zone_id, str) and zone_id:
            return zone_id
    return None


@dataclass(slots=True)
class EventLogContext:
    """Optional metadata describing an emitted event for logging."""

    sender: str | None = None
    zone: str | None = None
    meta: dict | None = None
    timestamp: datetime | None = None


class EventDispatcher:
    """Dispatches server events to registered sinks.

    Sinks may belong to at most one room (a zone). Room membership is changed
    only by ``join``/``leave``/``unregister`` for that sink, and read through
    ``members_of`` when resolving an audience.
    """

    def __init__(self) -> None:
        self._sinks: set[EventSink] = set()
        self._rooms: Dict[str, Set[EventSink]] = {}
        self._room_of: Dict[EventSink, str] = {}
        self._lock = asyncio.Lock()
        self._event_logger: EventLogger | None = None

    def set_event_logger(self, event_logger: EventLogger | None) -> None:
        """Attach an EventLogger instance for structured logging."""
        self._event_logger = event_logger

    async def register(self, sink: EventSink) -> None:
        async with self._lock:
            self._sinks.add(sink)

    async def unregister(self, sink: EventSink) -> None:
        async with self._lock:
            self._sinks.discard(sink)
            self._leave_locked(sink)

    async def join(self, sink: EventSink, room_id: str) -> None:
        """Move ``sink`` into ``room_id``, leaving any previous room."""
        async with self._lock:
            self._sinks.add(sink)
            self._leave_locked(sink)
            self._rooms.setdefault(room_id, set()).add(sink)
            self._room_of[sink] = room_id

    async def leave(self, sink: EventSink) -> None:
        async with self._lock:
            self._leave_locked(sink)

    async def members_of(self, room_id: str) -> set[EventSink]:
        async with self._lock:
            return set(self._rooms.get(room_id, ()))

    async def send(
        self,
        sink: EventSink,
        event: str,
        payload: dict,
        *,
        log_context: EventLogContext | None = None,
    ) -> None:
        """Unicast to a single connection."""
        await self._deliver(event, payload, [sink], log_context=log_context)

    async def broadcast(
        self,
        room_id: str,
        event: str,
        payload: dict,
        *,
        log_context: EventLogContext | None = None,
    ) -> None:
        """Multicast to every connection currently in ``room_id``."""
        sinks = await self.members_of(room_id)
        if log_context is None:
            log_context = EventLogContext(zone=room_id)
        await self._deliver(event, payload, sinks, log_context=log_context)

    async def emit(
        self,
        event: str,
        payload: dict,
        *,
        character_filter: Sequence[str] | None = None,
        log_context: EventLogContext | None = None,
    ) -> None:
        """Broadcast an event to all sinks that match the provided filters.

        Args:
            event: Event name (e.g., "playerState")
            payload: Event data
            character_filter: Only send to connections for these player IDs.
                If None, broadcast to all connections.
        """
        character_filter_list = (
            [c for c in character_filter if c] if character_filter is not None else None
        )
        async with self._lock:
            sinks_snapshot = list(self._sinks)
        if character_filter_list is not None:
            sinks_snapshot = [
                sink
                for sink in sinks_snapshot
                if any(sink.match_character(cid) for cid in character_filter_list)
            ]
        if log_context is None and character_filter_list and len(character_filter_list) == 1:
            log_context = EventLogContext(sender=character_filter_list[0])
        await self._deliver(event, payload, sinks_snapshot, log_context=log_context)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _leave_locked(self, sink: EventSink) -> None:
        room_id = self._room_of.pop(sink, None)
        if room_id is None:
            return
        members = self._rooms.get(room_id)
        if members is not None:
            members.discard(sink)
            if not members:
                del self._rooms[room_id]

    async def _deliver(
        self,
        event: str,
        payload: dict,
        sinks: Iterable[EventSink],
        *,
        log_context: EventLogContext | None,
    ) -> None:
        envelope: dict = {
            "frame_type": "event",
            "event": event,
            "payload": payload,
        }

        coros: list[Awaitable[None]] = []
        receivers: list[str | None] = []
        for sink in sinks:
            logger.debug(
                "Dispatch event=%s to connection=%s",
                event,
                getattr(sink, "connection_id", "<unknown>"),
            )
            coros.append(sink.send_event(envelope))
            receivers.append(getattr(sink, "player_id", None))

        outcomes: list[dict] = []
        if coros:
            results = await asyncio.gather(*coros, return_exceptions=True)
            success_count = 0
            for i, result in enumerate(results):
                if isinstance(result, BaseException):
                    # Errors from a sink should not crash the dispatcher
                    logger.error(
                        "Error delivering event=%s to sink_index=%s: %r",
                        event,
                        i,
                        result,
                    )
                    outcomes.append({"status": "error", "error": repr(result)})
                else:
                    success_count += 1
                    outcomes.append({"status": "ok"})
            logger.debug(
                "Completed event=%s (%s/%s sinks succeeded)",
                event,
                success_count,
                len(results),
            )

        self._log_event_records(
            event=event,
            payload=payload,
            receivers=receivers,
            outcomes=outcomes,
            log_context=log_context,
        )

    def _log_event_records(
        self,
        *,
        event: str,
        payload: dict,
        receivers: list[str | None],
        outcomes: list[dict],
        log_context: EventLogContext | None,
    ) -> None:
        """Write event records for dispatch and delivery."""
        if self._event_logger is None:
            return

        timestamp = (
            log_context.timestamp if log_context and log_context.timestamp else None
        )
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)
        timestamp_str = timestamp.isoformat()

        sender = log_context.sender if log_context else None
        if sender is None:
            sender = _infer_sender(payload)
        zone = log_context.zone if log_context else None
        if zone is None:
            zone = _infer_zone(payload)
        meta = dict(log_context.meta) if log_context and log_context.meta else None

        try:
            self._event_logger.append(
                EventRecord(
                    timestamp=timestamp_str,
                    direction="sent",
                    event=event,
                    payload=payload,
                    sender=sender,
                    receiver=None,
                    zone=zone,
                    meta=meta,
                )
            )
            for receiver, outcome in zip(receivers, outcomes):
                delivery_meta = dict(meta) if meta else {}
                delivery_meta.update(outcome)
                self._event_logger.append(
                    EventRecord(
                        timestamp=timestamp_str,
                        direction="received",
                        event=event,
                        payload=payload,
                        sender=sender,
                        receiver=receiver,
                        zone=zone,
                        meta=delivery_meta or None,
                    )
                )
        except Exception:  # pragma: no cover - logging must not break dispatch
            logger.exception("Failed to append event log record for event=%s", event)


event_dispatcher = EventDispatcher()

__all__ = ["event_dispatcher", "EventDispatcher", "EventSink", "EventLogContext"]
