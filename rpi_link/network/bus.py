"""In-process fan-out of inbound device messages to one-shot listeners."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Dict, List, Optional

from rpi_link.models import DeviceMessage

LOGGER = logging.getLogger(__name__)

Listener = Callable[[DeviceMessage], None]


class MessageBus:
    """Maps a message name to an ordered list of one-shot listeners."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def register(self, name: str, listener: Listener) -> None:
        LOGGER.debug("Registering listener for %s: %s", name, listener)
        self._listeners[name].append(listener)

    def unregister(self, name: str, listener: Listener) -> bool:
        listeners = self._listeners.get(name)
        if not listeners or listener not in listeners:
            return False
        listeners.remove(listener)
        if not listeners:
            del self._listeners[name]
        return True

    def pending(self, name: Optional[str] = None) -> int:
        if name is not None:
            return len(self._listeners.get(name, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    def dispatch(self, message: DeviceMessage) -> int:
        """Fire and remove every listener registered for ``message.name``.

        Listeners added while dispatching wait for the next matching message.
        Returns the number of listeners fired.
        """

        listeners = self._listeners.pop(message.name, None)
        if not listeners:
            LOGGER.debug("No listener registered for %s", message.name)
            return 0
        for listener in listeners:
            try:
                listener(message)
            except Exception:  # noqa: BLE001
                LOGGER.exception("Listener for %s failed", message.name)
        return len(listeners)
