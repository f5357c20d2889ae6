"""Notification and file sinks the client reports to."""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from itertools import count
from pathlib import Path
from typing import Any, Iterator, Protocol

LOGGER = logging.getLogger(__name__)

STYLE_ERROR = "error-toast"
STYLE_SUCCESS = "success-toast"


@dataclass(frozen=True)
class NotificationOptions:
    duration: float = 3.0
    style: str | None = None


class NotificationSink(Protocol):
    def show(self, content: str, options: NotificationOptions) -> Any:
        ...

    def cancel(self, token: Any) -> None:
        ...


class FileSink(Protocol):
    def save(self, filename: str, base64_contents: str, media_type: str = "text/plain") -> Any:
        ...


class LoggingNotificationSink:
    """Writes notifications to the log instead of a screen."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER
        self._tokens: Iterator[int] = count(1)
        self.active: dict[int, str] = {}

    def show(self, content: str, options: NotificationOptions) -> int:
        token = next(self._tokens)
        level = logging.ERROR if options.style == STYLE_ERROR else logging.INFO
        self._logger.log(level, "%s (shown for %.1fs)", content, options.duration)
        self.active[token] = content
        return token

    def cancel(self, token: int) -> None:
        self.active.pop(token, None)


class DirectoryFileSink:
    """Decodes downloads and writes them into a directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def save(self, filename: str, base64_contents: str, media_type: str = "text/plain") -> Path:
        try:
            data = base64.b64decode(base64_contents, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Download {filename!r} is not valid base64") from exc
        # only the final path component is honoured
        target = self.directory / Path(filename).name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        LOGGER.info("Saved %s (%s, %s bytes) to %s", filename, media_type, len(data), target)
        return target
