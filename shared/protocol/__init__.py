"""
Shared protocol package that centralizes control tokens, constants, error types
and the 8-byte header framing helpers for both client and server.
"""

from .commands import ControlToken, is_acknowledgement, is_control_token, normalize_token
from .constants import DEFAULT_MAX_PAYLOAD_SIZE, DEFAULT_PORT, ENCODING, HEADER_SIZE
from .errors import AllocationError, ErrorCode, FramingError, NetworkError, ProtocolError
from .framing import (
    allocate_payload,
    decode_header,
    encode_header,
    make_payload,
    read_header,
    read_into,
    read_payload,
    with_deadline,
    write_frame,
)

__all__ = [
    "ControlToken",
    "is_acknowledgement",
    "is_control_token",
    "normalize_token",
    "DEFAULT_MAX_PAYLOAD_SIZE",
    "DEFAULT_PORT",
    "ENCODING",
    "HEADER_SIZE",
    "AllocationError",
    "ErrorCode",
    "FramingError",
    "NetworkError",
    "ProtocolError",
    "allocate_payload",
    "decode_header",
    "encode_header",
    "make_payload",
    "read_header",
    "read_into",
    "read_payload",
    "with_deadline",
    "write_frame",
]
