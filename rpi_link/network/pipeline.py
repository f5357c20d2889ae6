"""Outbound send path: serialize, wait for readiness, write, retry."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from rpi_link.network.session import ConnectionSession
from rpi_link.notify import FaultNotifier
from rpi_link.protocol import Payload, encode_frame

LOGGER = logging.getLogger(__name__)


class SendFailedError(RuntimeError):
    """Raised once every write attempt for a message has failed."""

    def __init__(self, message: str, payload: str, attempts: int) -> None:
        super().__init__(message)
        self.payload = payload
        self.attempts = attempts


@dataclass
class SendPipeline:
    session: ConnectionSession
    notifier: FaultNotifier
    max_retries: int = 10
    retry_delay: float = 1.0

    async def send(self, message: Payload) -> None:
        """Deliver one message or raise ``SendFailedError`` after ``max_retries + 1`` attempts.

        Every failed write restarts the connection before the next attempt.
        """

        data = encode_frame(message)
        attempt = 0
        while True:
            attempt += 1
            await self.session.wait_ready()
            try:
                self.session.write(data)
                LOGGER.debug("Sent frame (attempt %s): %s", attempt, data)
                return
            except Exception as exc:  # noqa: BLE001
                LOGGER.debug("Caught exception while trying to send: %s", data, exc_info=exc)
                self.session.reconnect()
                if attempt > self.max_retries:
                    warning = f"Reached maximum # of retries when attempting to send message to the device: {data}"
                    LOGGER.warning(warning)
                    self.notifier.notify_error("Could not send a command to the device")
                    raise SendFailedError(warning, data, attempt) from exc
            await asyncio.sleep(self.retry_delay)
