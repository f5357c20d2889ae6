"""Connection session for the device link.

This layer is responsible for:
- Connection lifecycle (open/close/reconnect, listener rebinding)
- Readiness signalling per connection generation
- Inbound frame parsing and fan-out to the message bus
- Routing device faults and connection drops to the fault notifier

It never retries individual sends; that is the send pipeline's job.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from rpi_link.config import RpiLinkSettings
from rpi_link.network.bus import MessageBus
from rpi_link.network.session_state import SessionState, SessionTracker
from rpi_link.network.transport.base import (
    EVENT_CLOSE,
    EVENT_MESSAGE,
    EVENT_OPEN,
    SocketConnection,
    SocketProvider,
)
from rpi_link.notify import FaultCategory, FaultNotifier
from rpi_link.protocol import parse_frame

LOGGER = logging.getLogger(__name__)

ESTABLISH_FAILED_MESSAGE = "There was a problem establishing communication with the device"
CONNECTION_CLOSED_MESSAGE = "There seems to be a problem connecting to the instrument (connection keeps closing)"


class TransportNotReady(RuntimeError):
    """Raised when writing while the session holds no connection."""


class ConnectionSuperseded(RuntimeError):
    """Raised to readiness waiters whose connection was replaced before it opened."""


class SessionClosed(RuntimeError):
    """Raised to readiness waiters when the session is stopped."""


def _consume_outcome(future: asyncio.Future[None]) -> None:
    # superseded signals nobody awaited must not log "exception never retrieved"
    if not future.cancelled():
        future.exception()


@dataclass
class ConnectionSession:
    """Owns the single current connection to the device."""

    settings: RpiLinkSettings
    provider: SocketProvider
    bus: MessageBus
    notifier: FaultNotifier
    uri: Optional[str] = None
    tracker: SessionTracker = field(default_factory=SessionTracker)

    _connection: Optional[SocketConnection] = field(default=None, init=False, repr=False)
    _ready: Optional[asyncio.Future[None]] = field(default=None, init=False, repr=False)
    _settle_handle: Optional[asyncio.TimerHandle] = field(default=None, init=False, repr=False)
    _reconnect_handle: Optional[asyncio.TimerHandle] = field(default=None, init=False, repr=False)
    _stopped: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.uri is None:
            self.uri = self.settings.device_ws_url

    @property
    def state(self) -> SessionState:
        return self.tracker.state

    @property
    def generation(self) -> int:
        return self.tracker.generation

    @property
    def connection(self) -> Optional[SocketConnection]:
        return self._connection

    @property
    def readiness(self) -> asyncio.Future[None]:
        return self._ensure_ready()

    @property
    def is_ready(self) -> bool:
        ready = self._ready
        return ready is not None and ready.done() and not ready.cancelled() and ready.exception() is None

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    async def start(self) -> None:
        """Open the first connection."""

        self._stopped = False
        self.reconnect()

    async def stop(self) -> None:
        """Detach from and close the current connection; no further reconnects."""

        self._stopped = True
        self._cancel_settle()
        self._cancel_reconnect()
        connection = self._connection
        self._connection = None
        if connection is not None:
            self._detach(connection)
            try:
                connection.close()
            except Exception:  # noqa: BLE001
                LOGGER.debug("Suppress connection close error", exc_info=True)
        ready = self._ready
        if ready is not None and not ready.done():
            ready.set_exception(SessionClosed("Device session stopped"))
        self._try_transition(SessionState.DISCONNECTED)

    def reconnect(self) -> None:
        """Replace the current connection with a fresh one from the provider."""

        if self._stopped:
            LOGGER.debug("Ignoring reconnect on a stopped session")
            return
        LOGGER.info("Attempting to (re)connect to %s", self.uri)
        self._cancel_reconnect()
        self._cancel_settle()
        previous = self._connection
        if previous is not None:
            self._detach(previous)
        self._connection = None

        connection: Optional[SocketConnection] = None
        try:
            connection = self.provider.socket_for(self.uri)
            LOGGER.debug("Returned from socket_for(%s)", self.uri)
            self._attach(connection)
            self._renew_readiness()
            self._connection = connection
            generation = self.tracker.next_generation()
            self._try_transition(SessionState.CONNECTING)
            connection.reconnect()
            LOGGER.debug("Issued connect for generation %s", generation)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Failed to establish device connection: %s", exc)
            if connection is not None:
                self._detach(connection)
            self._connection = None
            self._try_transition(SessionState.DISCONNECTED)
            self.notifier.notify_error(ESTABLISH_FAILED_MESSAGE)

        if previous is not None and previous is not self._connection and previous is not connection:
            try:
                previous.close()
            except Exception:  # noqa: BLE001
                LOGGER.debug("Suppress superseded connection close error", exc_info=True)

    async def wait_ready(self, timeout: Optional[float] = None) -> None:
        """Wait until the current connection is writable.

        Follows superseding generations, so a reconnect while waiting does
        not surface as an error.
        """

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            ready = self._ensure_ready()
            remaining = None if deadline is None else max(0.0, deadline - loop.time())
            try:
                await asyncio.wait_for(asyncio.shield(ready), remaining)
                return
            except ConnectionSuperseded:
                LOGGER.debug("Readiness superseded; waiting for generation %s", self.generation)

    def write(self, data: str) -> None:
        connection = self._connection
        if connection is None:
            raise TransportNotReady("No device connection available")
        connection.send(data)

    def backoff_delay(self) -> float:
        attempt = max(1, self.tracker.consecutive_closes)
        base = float(self.settings.reconnect_base_delay_seconds)
        delay = min(
            float(self.settings.reconnect_max_delay_seconds),
            base * (self.settings.reconnect_multiplier ** (attempt - 1)),
        )
        jitter = float(self.settings.reconnect_jitter)
        if jitter:
            delay *= random.uniform(1 - jitter, 1 + jitter)
        return max(0.0, delay)

    def _on_open(self) -> None:
        ready = self._ensure_ready()
        generation = self.generation
        LOGGER.debug("Socket open (generation %s)", generation)
        self._cancel_settle()
        loop = asyncio.get_running_loop()
        self._settle_handle = loop.call_later(
            self.settings.settle_delay_seconds,
            self._mark_ready,
            ready,
            generation,
        )

    def _mark_ready(self, ready: asyncio.Future[None], generation: int) -> None:
        self._settle_handle = None
        if ready is not self._ready or ready.done():
            LOGGER.debug("Dropping stale readiness for generation %s", generation)
            return
        ready.set_result(None)
        self.tracker.consecutive_closes = 0
        self._try_transition(SessionState.OPEN)
        LOGGER.info("Device connection ready (generation %s)", generation)

    def _on_message(self, raw: str | bytes) -> None:
        message = parse_frame(raw)
        if message is None:
            return
        LOGGER.debug("Received %s frame", message.name)
        self.bus.dispatch(message)
        if message.is_device_error:
            LOGGER.warning("Got error message from device: %s", message.model_dump(by_alias=True))
            detail = message.error_detail()
            text = "Received error notification from device"
            text = f"{text}: {detail}" if detail else f"{text}."
            self.notifier.notify(FaultCategory.REMOTE_ERROR, text)

    def _on_close(self) -> None:
        LOGGER.info("Device connection closed (generation %s)", self.generation)
        self._cancel_settle()
        self.tracker.consecutive_closes += 1
        self._try_transition(SessionState.DISCONNECTED)
        self.notifier.notify(FaultCategory.CONNECTION_CLOSED, CONNECTION_CLOSED_MESSAGE)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._stopped or self._reconnect_handle is not None:
            return
        delay = self.backoff_delay()
        LOGGER.info("Reconnecting in %.2fs", delay)
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(delay, self._run_scheduled_reconnect)

    def _run_scheduled_reconnect(self) -> None:
        self._reconnect_handle = None
        self.reconnect()

    def _attach(self, connection: SocketConnection) -> None:
        connection.on(EVENT_OPEN, self._on_open)
        connection.on(EVENT_MESSAGE, self._on_message)
        connection.on(EVENT_CLOSE, self._on_close)

    def _detach(self, connection: SocketConnection) -> None:
        connection.off(EVENT_CLOSE, self._on_close)
        connection.off(EVENT_MESSAGE, self._on_message)
        connection.off(EVENT_OPEN, self._on_open)

    def _ensure_ready(self) -> asyncio.Future[None]:
        if self._ready is None:
            self._ready = asyncio.get_running_loop().create_future()
            self._ready.add_done_callback(_consume_outcome)
        return self._ready

    def _renew_readiness(self) -> None:
        previous = self._ready
        self._ready = asyncio.get_running_loop().create_future()
        self._ready.add_done_callback(_consume_outcome)
        if previous is not None and not previous.done():
            previous.set_exception(ConnectionSuperseded("Device connection replaced before it opened"))

    def _cancel_settle(self) -> None:
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _try_transition(self, state: SessionState) -> None:
        if self.tracker.state is state and state is not SessionState.CONNECTING:
            return
        previous = self.tracker.state
        entered_at = self.tracker.last_transition_at
        try:
            self.tracker.transition(state)
        except ValueError:
            LOGGER.debug(
                "Ignoring invalid session transition %s -> %s",
                self.tracker.state.value,
                state.value,
            )
            return
        LOGGER.debug(
            "Session %s -> %s after %.3fs",
            previous.value,
            state.value,
            (self.tracker.last_transition_at - entered_at).total_seconds(),
        )
