"""User-facing notifications: a single-slot display and a throttled fault channel."""

from __future__ import annotations

import enum
import logging
import time
from typing import Any, Callable, Dict, Optional

from .sinks import STYLE_ERROR, STYLE_SUCCESS, NotificationOptions, NotificationSink

LOGGER = logging.getLogger(__name__)


class FaultCategory(str, enum.Enum):
    REMOTE_ERROR = "remote-error"
    CONNECTION_CLOSED = "connection-closed"


class NotificationCenter:
    """Keeps at most one notification visible; showing a new one replaces the old."""

    def __init__(self, sink: NotificationSink, *, default_duration: float = 3.0) -> None:
        self._sink = sink
        self._default_duration = default_duration
        self._active: Any = None

    @property
    def active(self) -> Any:
        return self._active

    def show(self, message: str, *, duration: Optional[float] = None, style: Optional[str] = None) -> Any:
        if self._active is not None:
            self._sink.cancel(self._active)
            self._active = None
        options = NotificationOptions(
            duration=self._default_duration if duration is None else duration,
            style=style,
        )
        self._active = self._sink.show(message, options)
        return self._active

    def error(self, message: str, *, duration: Optional[float] = None) -> Any:
        return self.show(message, duration=duration, style=STYLE_ERROR)

    def success(self, message: str, *, duration: Optional[float] = None) -> Any:
        return self.show(message, duration=duration, style=STYLE_SUCCESS)

    def dismiss(self) -> None:
        if self._active is not None:
            self._sink.cancel(self._active)
            self._active = None


class FaultNotifier:
    """Rate-limits error notifications per fault category.

    A category emits only once its cooldown has fully elapsed since its own
    last emission. Suppressed faults are dropped, not queued or counted.
    ``notify_error`` is the unthrottled channel for one-off faults.
    """

    def __init__(
        self,
        center: NotificationCenter,
        *,
        cooldowns: Optional[Dict[FaultCategory, float]] = None,
        durations: Optional[Dict[FaultCategory, float]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._center = center
        self._cooldowns: Dict[FaultCategory, float] = {
            FaultCategory.REMOTE_ERROR: 5.0,
            FaultCategory.CONNECTION_CLOSED: 10.0,
        }
        if cooldowns:
            self._cooldowns.update(cooldowns)
        self._durations: Dict[FaultCategory, float] = dict(durations or {})
        self._clock = clock
        self._last_notified: Dict[FaultCategory, float] = {}

    def notify(self, category: FaultCategory, message: str, *, duration: Optional[float] = None) -> bool:
        now = self._clock()
        last = self._last_notified.get(category)
        if last is not None and now - last <= self._cooldowns[category]:
            LOGGER.debug("Suppressing %s notification: %s", category.value, message)
            return False
        if duration is None:
            duration = self._durations.get(category)
        self._center.error(message, duration=duration)
        self._last_notified[category] = now
        return True

    def notify_error(self, message: str, *, duration: Optional[float] = None) -> None:
        self._center.error(message, duration=duration)
