from __future__ import annotations

import logging
from typing import Optional

from shared.protocol import (
    AllocationError,
    ControlToken,
    ErrorCode,
    NetworkError,
    ProtocolError,
    allocate_payload,
    encode_header,
    is_acknowledgement,
    read_header,
    read_into,
    write_frame,
)

from .connection import ConnectionContext, SessionState
from .connection_manager import ServerMetrics

logger = logging.getLogger(__name__)

OK_FRAME = encode_header(ControlToken.OK)
ERR_FRAME = encode_header(ControlToken.ERR)


class EchoSession:
    """
    Request/acknowledge/echo loop for one accepted connection.

    AWAIT_HEADER -> AWAIT_PAYLOAD -> ECHO_PAYLOAD -> AWAIT_HEADER, until the peer
    sends CLOSE or disconnects. `run` returns on a graceful end and raises the
    ProtocolError subclass that ended the session otherwise; the state is CLOSED
    in both cases.
    """

    def __init__(
        self,
        ctx: ConnectionContext,
        metrics: ServerMetrics,
        max_payload_size: Optional[int] = None,
        io_timeout: Optional[float] = None,
    ) -> None:
        self.ctx = ctx
        self.metrics = metrics
        self.max_payload_size = max_payload_size
        self.io_timeout = io_timeout or None

    async def run(self) -> None:
        try:
            while True:
                size = await self._await_header()
                if size is None:
                    break
                buf = await self._accept_request(size)
                await self._await_payload(buf)
                await self._echo_payload(buf)
        finally:
            self.ctx.state = SessionState.CLOSED

    async def _await_header(self) -> Optional[int]:
        self.ctx.state = SessionState.AWAIT_HEADER
        value = await read_header(self.ctx.reader, self.io_timeout)
        if value is None:
            logger.debug("Peer %s closed the connection", self.ctx.peername)
            return None
        if value is ControlToken.CLOSE:
            logger.debug("Peer %s sent CLOSE", self.ctx.peername)
            return None
        if is_acknowledgement(value):
            raise ProtocolError(ErrorCode.UNEXPECTED_ACK, f"Acknowledgement {value.value} is not a request")
        return value

    async def _accept_request(self, size: int) -> bytearray:
        try:
            buf = allocate_payload(size, self.max_payload_size)
        except AllocationError:
            self.metrics.record_rejection()
            try:
                await write_frame(self.ctx.writer, ERR_FRAME, self.io_timeout)
            except NetworkError as exc:
                logger.debug("Could not deliver ERR to %s: %s", self.ctx.peername, exc)
            raise
        await write_frame(self.ctx.writer, OK_FRAME, self.io_timeout)
        self.ctx.state = SessionState.AWAIT_PAYLOAD
        return buf

    async def _await_payload(self, buf: bytearray) -> None:
        await read_into(self.ctx.reader, buf, self.io_timeout)
        self.ctx.state = SessionState.ECHO_PAYLOAD

    async def _echo_payload(self, buf: bytearray) -> None:
        await write_frame(self.ctx.writer, buf, self.io_timeout)
        size = len(buf)
        self.ctx.transfers += 1
        self.ctx.bytes_echoed += size
        self.ctx.touch()
        self.metrics.record_transfer(size)
