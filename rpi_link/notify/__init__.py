from .notifier import FaultCategory, FaultNotifier, NotificationCenter
from .sinks import (
    STYLE_ERROR,
    STYLE_SUCCESS,
    DirectoryFileSink,
    FileSink,
    LoggingNotificationSink,
    NotificationOptions,
    NotificationSink,
)

__all__ = [
    "FaultCategory",
    "FaultNotifier",
    "NotificationCenter",
    "STYLE_ERROR",
    "STYLE_SUCCESS",
    "DirectoryFileSink",
    "FileSink",
    "LoggingNotificationSink",
    "NotificationOptions",
    "NotificationSink",
]
