"""In-memory socket provider for offline runs and tests."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .base import (
    EVENT_CLOSE,
    EVENT_MESSAGE,
    EVENT_OPEN,
    SocketConnection,
    SocketNotOpen,
    SocketProvider,
)

LOGGER = logging.getLogger(__name__)


class LoopbackConnection(SocketConnection):
    """Connection whose peer is driven by the caller.

    Nothing happens on its own: ``open()``, ``feed()`` and ``drop()`` fire the
    corresponding events, and every written frame is recorded in ``sent``.
    """

    def __init__(self, uri: str, *, auto_open: bool = False) -> None:
        super().__init__(uri)
        self.sent: List[str] = []
        self.reconnect_calls = 0
        self.closed = False
        self.fail_sends = 0
        self._open = False
        self._auto_open = auto_open
        self.responder: Optional[Callable[[str], Optional[str]]] = None

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, data: str) -> None:
        if not self._open:
            raise SocketNotOpen(f"Loopback connection to {self.uri} is not open")
        if self.fail_sends:
            self.fail_sends -= 1
            raise SocketNotOpen(f"Loopback connection to {self.uri} rejected the write")
        LOGGER.debug("Loopback send(): %s", data)
        self.sent.append(data)
        if self.responder is not None:
            reply = self.responder(data)
            if reply is not None:
                self.feed(reply)

    def reconnect(self) -> None:
        LOGGER.debug("Loopback reconnect() to %s", self.uri)
        self.reconnect_calls += 1
        self.closed = False
        if self._auto_open:
            self.open()

    def close(self) -> None:
        LOGGER.debug("Loopback close()")
        self.closed = True
        self._open = False

    def open(self) -> None:
        self._open = True
        self.emit(EVENT_OPEN)

    def feed(self, raw: str | bytes) -> None:
        self.emit(EVENT_MESSAGE, raw)

    def drop(self) -> None:
        self._open = False
        self.emit(EVENT_CLOSE)


class LoopbackProvider(SocketProvider):
    """Hands out loopback connections and remembers all of them."""

    def __init__(
        self,
        *,
        auto_open: bool = False,
        responder: Optional[Callable[[str], Optional[str]]] = None,
    ) -> None:
        self.connections: List[LoopbackConnection] = []
        self.fail_next = 0
        self._auto_open = auto_open
        self._responder = responder

    def socket_for(self, uri: str) -> LoopbackConnection:
        if self.fail_next:
            self.fail_next -= 1
            raise ConnectionRefusedError(f"Loopback provider refused {uri}")
        connection = LoopbackConnection(uri, auto_open=self._auto_open)
        connection.responder = self._responder
        self.connections.append(connection)
        return connection

    @property
    def current(self) -> Optional[LoopbackConnection]:
        return self.connections[-1] if self.connections else None
