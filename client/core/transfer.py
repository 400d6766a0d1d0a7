from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from shared.protocol import (
    ControlToken,
    ErrorCode,
    NetworkError,
    ProtocolError,
    encode_header,
    make_payload,
    read_header,
    read_payload,
    write_frame,
)
from shared.utils import now_us


@dataclass(frozen=True, slots=True)
class TransferSample:
    size: int
    send_us: int
    recv_us: int

    @property
    def average_us(self) -> int:
        """Mean of both directions, the per-transfer value fed into the statistics."""
        return (self.send_us + self.recv_us) // 2


async def transfer(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    size: int,
    timeout: Optional[float] = None,
) -> TransferSample:
    """
    One timed exchange: header -> OK -> payload out -> payload back.

    send_us covers handing the payload to the transport, recv_us covers reading the
    echo back in full. Nothing is retried here; any failure leaves the stream in an
    unknown position and is raised to the caller.
    """
    payload = make_payload(size)
    await write_frame(writer, encode_header(size), timeout)

    ack = await read_header(reader, timeout)
    if ack is None:
        raise NetworkError(ErrorCode.RECEIVE_FAILED, "Connection closed before acknowledgement")
    if ack is not ControlToken.OK:
        shown = ack.value if isinstance(ack, ControlToken) else ack
        raise ProtocolError(ErrorCode.UNEXPECTED_ACK, f"Expected OK for {size} bytes, got {shown!r}")

    t0 = now_us()
    await write_frame(writer, payload, timeout)
    t1 = now_us()
    await read_payload(reader, size, timeout)
    t2 = now_us()
    return TransferSample(size=size, send_us=t1 - t0, recv_us=t2 - t1)


__all__ = ["TransferSample", "transfer"]
