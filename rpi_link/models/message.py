"""Wire models for device frames.

Every inbound frame is a flat JSON object carrying a ``name`` discriminator.
Replies echo the name of the command they answer and add payload fields or
an ``error``/``errorMessage`` field. ``name == "error"`` marks an unsolicited
device fault that is not tied to any request.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ERROR_MESSAGE_NAME = "error"


class DeviceMessage(BaseModel):
    """Inbound frame; unknown fields are kept as extras."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    error: Optional[Any] = None
    error_message: Optional[Any] = Field(default=None, alias="errorMessage")

    @property
    def is_device_error(self) -> bool:
        return self.name == ERROR_MESSAGE_NAME

    def error_detail(self) -> Optional[Any]:
        """Return the server-supplied error detail, preferring ``errorMessage``."""

        return self.error_message or self.error

    def field(self, key: str, default: Any = None) -> Any:
        extra = self.model_extra or {}
        if key in extra:
            return extra[key]
        return getattr(self, key, default)


class DeviceCommand(BaseModel):
    """Outbound request frame."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    command: str


class GetFileCommand(DeviceCommand):
    command: Literal["getFile"] = "getFile"
    path: str


class GetFileReply(DeviceMessage):
    name: Literal["getFile"] = "getFile"
    base64: Optional[str] = None
