"""Network stack (transport/session/correlation/send) for the device link."""

from rpi_link.network.bus import MessageBus
from rpi_link.network.client import DeviceClient, RemoteFaultError
from rpi_link.network.correlator import ResponseCorrelator, ResponseTimeout
from rpi_link.network.pipeline import SendFailedError, SendPipeline
from rpi_link.network.session import (
    ConnectionSession,
    ConnectionSuperseded,
    SessionClosed,
    TransportNotReady,
)
from rpi_link.network.session_state import SessionState, SessionTracker
from rpi_link.network.transport.base import SocketConnection, SocketNotOpen, SocketProvider
from rpi_link.network.transport.loopback import LoopbackProvider
from rpi_link.network.transport.websocket import WebSocketProvider

__all__ = [
    "MessageBus",
    "DeviceClient",
    "RemoteFaultError",
    "ResponseCorrelator",
    "ResponseTimeout",
    "SendFailedError",
    "SendPipeline",
    "ConnectionSession",
    "ConnectionSuperseded",
    "SessionClosed",
    "TransportNotReady",
    "SessionState",
    "SessionTracker",
    "SocketConnection",
    "SocketNotOpen",
    "SocketProvider",
    "LoopbackProvider",
    "WebSocketProvider",
]
