"""Client bootstrap: build the socket provider, sinks and client from settings."""

from __future__ import annotations

import logging
from typing import Optional, Type

from rpi_link.config import RpiLinkSettings, get_settings
from rpi_link.network.client import DeviceClient
from rpi_link.network.transport.base import SocketProvider
from rpi_link.network.transport.loopback import LoopbackProvider
from rpi_link.network.transport.websocket import WebSocketProvider
from rpi_link.notify import DirectoryFileSink, LoggingNotificationSink, NotificationSink

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings: RpiLinkSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # frame-level chatter from the websocket library is only useful when debugging
    if settings.log_level != "DEBUG":
        logging.getLogger("websockets").setLevel(logging.WARNING)


def build_provider(settings: RpiLinkSettings) -> SocketProvider:
    resolved_cls: Type[SocketProvider]
    resolved_cls = WebSocketProvider if settings.transport == "websocket" else LoopbackProvider
    LOGGER.debug("Initialising device connection via %s", resolved_cls.__name__)
    return resolved_cls()


def build_client(
    settings: Optional[RpiLinkSettings] = None,
    *,
    provider: Optional[SocketProvider] = None,
    notification_sink: Optional[NotificationSink] = None,
) -> DeviceClient:
    """Construct (but do not start) a device client."""

    settings = settings or get_settings()
    return DeviceClient(
        settings=settings,
        provider=provider or build_provider(settings),
        notification_sink=notification_sink or LoggingNotificationSink(),
        file_sink=DirectoryFileSink(settings.download_dir),
    )
