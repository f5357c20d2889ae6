"""Helpers for encoding outbound frames and parsing inbound ones."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from rpi_link.models import DeviceMessage

LOGGER = logging.getLogger(__name__)

Payload = str | Dict[str, Any] | BaseModel


def encode_frame(message: Payload) -> str:
    """Serialize a message to its wire form; strings are assumed to be serialized already."""

    if isinstance(message, str):
        return message
    if isinstance(message, BaseModel):
        return message.model_dump_json(by_alias=True, exclude_none=True)
    return json.dumps(message)


def parse_frame(raw: str | bytes) -> Optional[DeviceMessage]:
    """Parse a raw text frame, returning ``None`` when it is not a named JSON object."""

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            LOGGER.debug("Dropping undecodable frame: %s", exc)
            return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        LOGGER.debug("Caught exception while trying to parse frame as JSON: %s (%r)", exc, raw)
        return None
    if not isinstance(data, dict):
        LOGGER.debug("Dropping frame that is not a JSON object: %r", raw)
        return None
    try:
        return DeviceMessage.model_validate(data)
    except ValidationError as exc:
        LOGGER.debug("Dropping frame without a valid name: %s", exc)
        return None
