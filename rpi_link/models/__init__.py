from .message import (
    ERROR_MESSAGE_NAME,
    DeviceCommand,
    DeviceMessage,
    GetFileCommand,
    GetFileReply,
)

__all__ = [
    "ERROR_MESSAGE_NAME",
    "DeviceCommand",
    "DeviceMessage",
    "GetFileCommand",
    "GetFileReply",
]
