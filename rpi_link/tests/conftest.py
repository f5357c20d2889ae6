from typing import Any, List, Tuple

import pytest

from rpi_link.config import RpiLinkSettings
from rpi_link.notify import NotificationOptions


class RecordingSink:
    """Notification sink that remembers what was shown and cancelled."""

    def __init__(self) -> None:
        self.shown: List[Tuple[int, str, NotificationOptions]] = []
        self.cancelled: List[int] = []
        self._next = 0

    def show(self, content: str, options: NotificationOptions) -> int:
        self._next += 1
        self.shown.append((self._next, content, options))
        return self._next

    def cancel(self, token: Any) -> None:
        self.cancelled.append(token)

    @property
    def messages(self) -> List[str]:
        return [content for _, content, _ in self.shown]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def fast_settings(tmp_path) -> RpiLinkSettings:
    return RpiLinkSettings(
        device_host="device.local",
        transport="loopback",
        settle_delay_seconds=0.0,
        reconnect_base_delay_seconds=0.02,
        reconnect_max_delay_seconds=0.02,
        send_retry_delay_seconds=0.0,
        download_dir=tmp_path / "downloads",
    )
