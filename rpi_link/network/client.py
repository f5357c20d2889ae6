"""Client facade for the device (session + correlation + sends)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from rpi_link.config import RpiLinkSettings
from rpi_link.models import DeviceMessage, GetFileCommand, GetFileReply
from rpi_link.network.bus import MessageBus
from rpi_link.network.correlator import ResponseCorrelator
from rpi_link.network.pipeline import SendPipeline
from rpi_link.network.session import ConnectionSession
from rpi_link.network.transport.base import SocketProvider
from rpi_link.notify import (
    FaultCategory,
    FaultNotifier,
    FileSink,
    NotificationCenter,
    NotificationSink,
)
from rpi_link.protocol import Payload

LOGGER = logging.getLogger(__name__)


class RemoteFaultError(RuntimeError):
    """Raised when the device answers a request with an error."""

    def __init__(self, message: str, *, detail: Any = None, reply: Optional[DeviceMessage] = None) -> None:
        super().__init__(message)
        self.detail = detail
        self.reply = reply


def _command_name(command: Payload) -> Optional[str]:
    if isinstance(command, dict):
        return command.get("command")
    return getattr(command, "command", None)


@dataclass
class DeviceClient:
    """Wires the connection session, message bus, correlator and send pipeline."""

    settings: RpiLinkSettings
    provider: SocketProvider
    notification_sink: NotificationSink
    file_sink: Optional[FileSink] = None
    notifier: Optional[FaultNotifier] = None

    bus: MessageBus = field(default_factory=MessageBus, init=False)
    center: NotificationCenter = field(init=False)
    session: ConnectionSession = field(init=False)
    correlator: ResponseCorrelator = field(init=False)
    pipeline: SendPipeline = field(init=False)

    def __post_init__(self) -> None:
        self.center = NotificationCenter(
            self.notification_sink,
            default_duration=self.settings.toast_duration_seconds,
        )
        if self.notifier is None:
            self.notifier = FaultNotifier(
                self.center,
                cooldowns={
                    FaultCategory.REMOTE_ERROR: self.settings.remote_error_cooldown_seconds,
                    FaultCategory.CONNECTION_CLOSED: self.settings.connection_closed_cooldown_seconds,
                },
                durations={
                    FaultCategory.CONNECTION_CLOSED: self.settings.connection_closed_toast_seconds,
                },
            )
        self.session = ConnectionSession(
            settings=self.settings,
            provider=self.provider,
            bus=self.bus,
            notifier=self.notifier,
        )
        self.correlator = ResponseCorrelator(self.bus, default_timeout=self.settings.response_timeout_seconds)
        self.pipeline = SendPipeline(
            session=self.session,
            notifier=self.notifier,
            max_retries=self.settings.send_max_retries,
            retry_delay=self.settings.send_retry_delay_seconds,
        )

    async def __aenter__(self) -> DeviceClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        LOGGER.info("Starting device client for %s", self.session.uri)
        await self.session.start()

    async def stop(self) -> None:
        await self.session.stop()

    async def send(self, message: Payload) -> None:
        await self.pipeline.send(message)

    def wait_for_response(self, name: str, timeout: Optional[float] = None):
        return self.correlator.wait_for_response(name, timeout)

    async def request(
        self,
        command: Payload,
        *,
        reply_name: Optional[str] = None,
        timeout: Optional[float] = None,
        failure_notice: Optional[str] = None,
    ) -> DeviceMessage:
        """Send ``command`` and return the reply named ``reply_name``.

        The reply name defaults to the command name. A reply carrying an
        ``error``/``errorMessage`` field is reported to the user and raised
        as ``RemoteFaultError`` with the device's detail attached.
        """

        name = reply_name or _command_name(command)
        if not name:
            raise ValueError("reply_name is required when the command has no 'command' field")
        pending = self.correlator.wait_for_response(name, timeout)
        try:
            await self.pipeline.send(command)
        except BaseException:
            pending.cancel()
            raise
        LOGGER.debug("%s request sent", name)
        reply = await pending
        detail = reply.error_detail()
        if detail:
            LOGGER.warning("%s request failed on the device: %s", name, detail)
            self.notifier.notify(FaultCategory.REMOTE_ERROR, failure_notice or f"Device rejected {name} request")
            raise RemoteFaultError(f"{name} failed", detail=detail, reply=reply)
        return reply

    async def get_file(self, path: str, *, timeout: Optional[float] = None) -> str:
        """Fetch a file from the device and return its base64 contents."""

        LOGGER.debug("get_file called: %s", path)
        reply = await self.request(
            GetFileCommand(path=path),
            reply_name="getFile",
            timeout=timeout,
            failure_notice=f"Error retrieving file: {path}",
        )
        result = GetFileReply.model_validate(reply.model_dump(by_alias=True))
        LOGGER.debug("get_file got %s base64 characters", len(result.base64 or ""))
        return result.base64 or ""

    def trigger_download(self, name: str, base64_contents: str, media_type: str = "text/plain") -> Any:
        """Hand a downloaded payload to the file sink and announce it."""

        if self.file_sink is None:
            raise RuntimeError("No file sink configured for downloads")
        saved = self.file_sink.save(name, base64_contents, media_type)
        self.center.success(f"Downloading file: {name}", duration=self.settings.download_toast_seconds)
        return saved

    async def download_file(
        self,
        path: str,
        filename: Optional[str] = None,
        *,
        media_type: str = "text/plain",
        timeout: Optional[float] = None,
    ) -> Any:
        contents = await self.get_file(path, timeout=timeout)
        return self.trigger_download(filename or path.rsplit("/", 1)[-1] or "download", contents, media_type)
