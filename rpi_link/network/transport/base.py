"""Socket provider abstractions consumed by the connection session."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Callable, Dict, List

LOGGER = logging.getLogger(__name__)

EVENT_OPEN = "open"
EVENT_MESSAGE = "message"
EVENT_CLOSE = "close"
EVENTS = (EVENT_OPEN, EVENT_MESSAGE, EVENT_CLOSE)

EventHandler = Callable[..., Any]


class SocketNotOpen(RuntimeError):
    """Raised when writing to a connection that is not open."""


class SocketConnection(ABC):
    """Duplex, named-event connection to the device."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        self._listeners: Dict[str, List[EventHandler]] = defaultdict(list)

    def on(self, event: str, handler: EventHandler) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown socket event {event!r}")
        self._listeners[event].append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(handlers) for handlers in self._listeners.values())

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            try:
                handler(*args)
            except Exception:  # noqa: BLE001
                LOGGER.exception("Socket %s handler failed: %s", event, handler)

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def send(self, data: str) -> None:
        """Write one text frame; raises when the connection cannot accept it."""

    @abstractmethod
    def reconnect(self) -> None:
        """(Re)open the underlying socket; progress is reported through events."""

    @abstractmethod
    def close(self) -> None:
        ...


class SocketProvider(ABC):
    """Factory handing out connections for a URI."""

    @abstractmethod
    def socket_for(self, uri: str) -> SocketConnection:
        ...
