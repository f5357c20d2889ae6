"""WebSocket socket provider built on the ``websockets`` library."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Dict, Optional

import websockets

from .base import (
    EVENT_CLOSE,
    EVENT_MESSAGE,
    EVENT_OPEN,
    SocketConnection,
    SocketNotOpen,
    SocketProvider,
)

LOGGER = logging.getLogger(__name__)


class WebSocketConnection(SocketConnection):
    """Event-emitting wrapper around one client WebSocket.

    ``reconnect()`` starts a background task that dials the endpoint, emits
    ``open``, emits ``message`` for every inbound frame and emits ``close``
    once the socket ends or fails to connect. Writes are accepted
    synchronously and flushed by a writer task; a failed write marks the
    connection not open so later writes raise ``SocketNotOpen``.
    """

    def __init__(self, uri: str, *, open_timeout: float = 10.0) -> None:
        super().__init__(uri)
        self._open_timeout = open_timeout
        self._task: Optional[asyncio.Task[None]] = None
        self._ws: Any = None
        self._outbox: Optional[asyncio.Queue[str]] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, data: str) -> None:
        if not self._open or self._outbox is None:
            raise SocketNotOpen(f"WebSocket to {self.uri} is not open")
        self._outbox.put_nowait(data)

    def reconnect(self) -> None:
        loop = asyncio.get_running_loop()
        self._cancel_task()
        LOGGER.info("Connecting to device WebSocket at %s", self.uri)
        self._task = loop.create_task(self._run(), name=f"websocket-{self.uri}")

    def close(self) -> None:
        LOGGER.info("Closing WebSocket to %s", self.uri)
        self._cancel_task()
        self._open = False
        self._outbox = None

    def _cancel_task(self) -> None:
        task = self._task
        self._task = None
        if task and not task.done():
            task.cancel()

    async def _run(self) -> None:
        try:
            await self._serve()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("WebSocket to %s failed: %s", self.uri, exc)
        self.emit(EVENT_CLOSE)

    async def _serve(self) -> None:
        async with websockets.connect(self.uri, open_timeout=self._open_timeout) as ws:
            outbox: asyncio.Queue[str] = asyncio.Queue()
            writer = asyncio.create_task(self._write_loop(ws, outbox), name="websocket-writer")
            self._ws = ws
            self._outbox = outbox
            self._open = True
            try:
                self.emit(EVENT_OPEN)
                async for raw in ws:
                    LOGGER.debug("WebSocket receive: %s", raw)
                    self.emit(EVENT_MESSAGE, raw)
            finally:
                if self._ws is ws:
                    self._ws = None
                    self._outbox = None
                    self._open = False
                writer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await writer

    async def _write_loop(self, ws: Any, outbox: asyncio.Queue[str]) -> None:
        while True:
            data = await outbox.get()
            LOGGER.debug("WebSocket send: %s", data)
            try:
                await ws.send(data)
            except websockets.ConnectionClosed as exc:
                LOGGER.warning(
                    "WebSocket write failed, connection closed: %s (dropped %s queued frame(s))",
                    exc,
                    outbox.qsize() + 1,
                )
                if self._ws is ws:
                    self._open = False
                    self._outbox = None
                # ends the reader loop, which emits close
                await ws.close()
                return


class WebSocketProvider(SocketProvider):
    """Returns one cached connection per URI, like a browser socket service."""

    def __init__(self, *, open_timeout: float = 10.0) -> None:
        self._open_timeout = open_timeout
        self._sockets: Dict[str, WebSocketConnection] = {}

    def socket_for(self, uri: str) -> WebSocketConnection:
        connection = self._sockets.get(uri)
        if connection is None:
            connection = WebSocketConnection(uri, open_timeout=self._open_timeout)
            self._sockets[uri] = connection
        return connection

    def close_all(self) -> None:
        for connection in self._sockets.values():
            connection.close()
        self._sockets.clear()
