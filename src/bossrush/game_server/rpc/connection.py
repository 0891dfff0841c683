"""WebSocket connection management for Boss Rush server."""

import asyncio
import logging
import uuid

from fastapi import WebSocket

from bossrush.game_server.rpc.events import EventSink

logger = logging.getLogger("bossrush.server.connection")


class Connection(EventSink):
    """Represents a connected WebSocket client for a single player.

    Design: One WebSocket connection = One player
    The player is set once (on first joinZone) and cannot change. The zone
    is this connection's membership and changes with every joinZone.
    """

    def __init__(self, websocket: WebSocket) -> None:
        """Initialize a new WebSocket connection.

        Args:
            websocket: The FastAPI WebSocket instance
        """
        self.websocket = websocket
        self.connection_id = str(uuid.uuid4())
        self.player_id: str | None = None
        self.zone_id: str | None = None
        self._send_lock = asyncio.Lock()

    async def send_event(self, envelope: dict) -> None:
        """Send an event envelope to the WebSocket client.

        Args:
            envelope: The event envelope to send

        Note:
            Concurrent sends are serialized via _send_lock.
        """
        logger.debug(
            "Connection %s sending event %s", self.connection_id, envelope.get("event")
        )
        async with self._send_lock:
            await self.websocket.send_json(envelope)

    def match_character(self, player_id: str) -> bool:
        """Check if this connection is for the given player."""
        return self.player_id == player_id

    def set_player(self, player_id: str) -> None:
        """Set the player for this connection.

        Raises:
            ValueError: If player is already set to a different ID
        """
        if self.player_id is not None and self.player_id != player_id:
            raise ValueError(
                f"Connection already associated with player '{self.player_id}', "
                f"cannot change to '{player_id}'"
            )
        self.player_id = str(player_id)

    def set_zone(self, zone_id: str | None) -> None:
        self.zone_id = zone_id
