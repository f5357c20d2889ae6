"""Turns "wait for the reply named X" into a single awaitable."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from rpi_link.models import DeviceMessage
from rpi_link.network.bus import MessageBus

LOGGER = logging.getLogger(__name__)


class ResponseTimeout(asyncio.TimeoutError):
    """Raised when no reply with the expected name arrived before the deadline."""

    def __init__(self, name: str, timeout: float) -> None:
        super().__init__(f"No {name!r} reply within {timeout:.2f}s")
        self.name = name
        self.timeout = timeout


@dataclass
class ResponseCorrelator:
    bus: MessageBus
    default_timeout: Optional[float] = None

    def wait_for_response(self, name: str, timeout: Optional[float] = None) -> asyncio.Future[DeviceMessage]:
        """Register for the next message named ``name`` and return its future.

        Registration happens before this returns, so call it before sending
        the request that triggers the reply. Without a timeout the future
        waits indefinitely; cancelling it withdraws the registration.
        """

        loop = asyncio.get_running_loop()
        future: asyncio.Future[DeviceMessage] = loop.create_future()
        if timeout is None:
            timeout = self.default_timeout
        timer: Optional[asyncio.TimerHandle] = None

        def _resolve(message: DeviceMessage) -> None:
            LOGGER.debug("Reply %s matched a pending request", name)
            if timer is not None:
                timer.cancel()
            if not future.done():
                future.set_result(message)

        def _expire() -> None:
            if self.bus.unregister(name, _resolve) and not future.done():
                LOGGER.warning("Timed out waiting for %s reply after %.2fs", name, timeout)
                future.set_exception(ResponseTimeout(name, timeout))

        def _withdraw(fut: asyncio.Future[DeviceMessage]) -> None:
            if fut.cancelled():
                if timer is not None:
                    timer.cancel()
                self.bus.unregister(name, _resolve)

        self.bus.register(name, _resolve)
        if timeout is not None:
            timer = loop.call_later(timeout, _expire)
        future.add_done_callback(_withdraw)
        return future
