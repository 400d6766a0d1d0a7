from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Failure kinds surfaced by the codec, the transfer primitive and sessions."""

    CONNECT_FAILED = 1001
    SEND_FAILED = 1002
    RECEIVE_FAILED = 1003
    TIMEOUT = 1004
    MALFORMED_HEADER = 1005
    UNEXPECTED_ACK = 1006
    ALLOCATION_FAILED = 1007


class ProtocolError(Exception):
    """Structured protocol exception carrying code + message."""

    default_code = ErrorCode.UNEXPECTED_ACK

    def __init__(self, code: Optional[ErrorCode] = None, message: str = "") -> None:
        self.code = code if code is not None else self.default_code
        self.message = message
        super().__init__(f"{self.code.name} ({int(self.code)}): {message}")

    def to_payload(self) -> dict:
        """Map error into a dict consumable by reporting layers."""
        return {
            "error": type(self).__name__,
            "error_code": int(self.code),
            "error_message": self.message,
        }


class FramingError(ProtocolError):
    """Short or malformed 8-byte header. The stream position can no longer be trusted."""

    default_code = ErrorCode.MALFORMED_HEADER


class NetworkError(ProtocolError):
    """Connect/bind, send/receive or deadline failure on a connection."""

    default_code = ErrorCode.RECEIVE_FAILED


class AllocationError(ProtocolError):
    """Payload buffer could not be provided for a declared length."""

    default_code = ErrorCode.ALLOCATION_FAILED


__all__ = ["ErrorCode", "ProtocolError", "FramingError", "NetworkError", "AllocationError"]
