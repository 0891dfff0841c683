"""Server infrastructure for Boss Rush WebSocket server."""

from bossrush.game_server.rpc.rpc import rpc_success, rpc_error, RPCHandler
from bossrush.game_server.rpc.events import (
    event_dispatcher,
    EventSink,
    EventDispatcher,
    EventLogContext,
)

__all__ = [
    "rpc_success",
    "rpc_error",
    "RPCHandler",
    "event_dispatcher",
    "EventSink",
    "EventDispatcher",
    "EventLogContext",
]
