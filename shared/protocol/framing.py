from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Optional, TypeVar, Union

from .commands import ControlToken, is_control_token, normalize_token
from .constants import ENCODING, FILL_BYTE, HEADER_PADDING, HEADER_SIZE, MAX_HEADER_VALUE
from .errors import AllocationError, ErrorCode, FramingError, NetworkError

T = TypeVar("T")

HeaderValue = Union[int, ControlToken]


def encode_header(value: Union[int, str, ControlToken]) -> bytes:
    """Encode a payload length or control token into exactly 8 ASCII bytes (space padded)."""
    if isinstance(value, int) and not isinstance(value, bool):
        if not (0 <= value <= MAX_HEADER_VALUE):
            raise FramingError(message=f"Length {value} does not fit into a {HEADER_SIZE}-digit header")
        text = str(value)
    else:
        text = normalize_token(value)
        if not is_control_token(text):
            raise FramingError(message=f"Unknown control token {text!r}")
    return text.encode(ENCODING).ljust(HEADER_SIZE, b" ")


def decode_header(raw: bytes) -> HeaderValue:
    """Decode an 8-byte header into a control token or a non-negative length."""
    if len(raw) != HEADER_SIZE:
        raise FramingError(message=f"Header must be {HEADER_SIZE} bytes, got {len(raw)}")
    try:
        text = bytes(raw).strip(HEADER_PADDING).decode(ENCODING)
    except UnicodeDecodeError as exc:
        raise FramingError(message=f"Header is not ASCII: {bytes(raw)!r}") from exc
    if is_control_token(text):
        return ControlToken(text)
    if not text.isdigit():
        raise FramingError(message=f"Malformed header {bytes(raw)!r}")
    return int(text)


def make_payload(size: int) -> bytes:
    """Deterministic payload of `size` bytes, good for throughput and nothing else."""
    return FILL_BYTE * size


def allocate_payload(size: int, limit: Optional[int] = None) -> bytearray:
    """Reserve the receive buffer for a declared length, enforcing the size policy."""
    if limit is not None and size > limit:
        raise AllocationError(message=f"Declared length {size} exceeds limit {limit}")
    try:
        return bytearray(size)
    except MemoryError as exc:
        raise AllocationError(message=f"Cannot allocate {size} bytes") from exc


async def with_deadline(awaitable: Awaitable[T], timeout: Optional[float], what: str) -> T:
    """Await `awaitable`, converting an expired deadline into NetworkError(TIMEOUT)."""
    if not timeout:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except TimeoutError as exc:
        raise NetworkError(ErrorCode.TIMEOUT, f"Timed out after {timeout}s waiting for {what}") from exc


async def read_header(reader: asyncio.StreamReader, timeout: Optional[float] = None) -> Optional[HeaderValue]:
    """
    Read and decode exactly one header.
    Returns None when the peer closed the stream before sending any header byte.
    """
    try:
        raw = await with_deadline(reader.readexactly(HEADER_SIZE), timeout, "header")
    except asyncio.IncompleteReadError as exc:
        if not exc.partial:
            return None
        raise FramingError(message=f"Incomplete header: {len(exc.partial)}/{HEADER_SIZE} bytes") from exc
    except (ConnectionError, OSError) as exc:
        raise NetworkError(ErrorCode.RECEIVE_FAILED, f"Header receive failed: {exc}") from exc
    return decode_header(raw)


async def read_into(reader: asyncio.StreamReader, buf: bytearray, timeout: Optional[float] = None) -> bytearray:
    """Fill `buf` completely from the stream, looping on partial reads."""
    size = len(buf)
    received = 0
    with memoryview(buf) as view:
        while received < size:
            try:
                chunk = await with_deadline(reader.read(size - received), timeout, "payload")
            except (ConnectionError, OSError) as exc:
                raise NetworkError(ErrorCode.RECEIVE_FAILED, f"Payload receive failed: {exc}") from exc
            if not chunk:
                raise NetworkError(
                    ErrorCode.RECEIVE_FAILED,
                    f"Connection closed after {received}/{size} payload bytes",
                )
            view[received : received + len(chunk)] = chunk
            received += len(chunk)
    return buf


async def read_payload(
    reader: asyncio.StreamReader,
    size: int,
    timeout: Optional[float] = None,
    limit: Optional[int] = None,
) -> bytearray:
    """Allocate a buffer for `size` bytes and fill it from the stream."""
    return await read_into(reader, allocate_payload(size, limit), timeout)


async def write_frame(writer: asyncio.StreamWriter, data: bytes, timeout: Optional[float] = None) -> None:
    """Write header or payload bytes and wait until the transport accepted them."""
    try:
        writer.write(data)
        await with_deadline(writer.drain(), timeout, "send")
    except (ConnectionError, OSError) as exc:
        raise NetworkError(ErrorCode.SEND_FAILED, f"Send failed: {exc}") from exc


__all__ = [
    "HeaderValue",
    "encode_header",
    "decode_header",
    "make_payload",
    "allocate_payload",
    "with_deadline",
    "read_header",
    "read_into",
    "read_payload",
    "write_frame",
]
