"""Socket providers the connection session can run on."""

from .base import (
    EVENT_CLOSE,
    EVENT_MESSAGE,
    EVENT_OPEN,
    SocketConnection,
    SocketNotOpen,
    SocketProvider,
)
from .loopback import LoopbackConnection, LoopbackProvider
from .websocket import WebSocketConnection, WebSocketProvider

__all__ = [
    "EVENT_CLOSE",
    "EVENT_MESSAGE",
    "EVENT_OPEN",
    "SocketConnection",
    "SocketNotOpen",
    "SocketProvider",
    "LoopbackConnection",
    "LoopbackProvider",
    "WebSocketConnection",
    "WebSocketProvider",
]
