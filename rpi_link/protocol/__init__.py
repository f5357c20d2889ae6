"""Frame codec shared by the session and the send pipeline."""

from .frames import Payload, encode_frame, parse_frame

__all__ = ["Payload", "encode_frame", "parse_frame"]
