from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Dict, Optional

from client.config import CLIENT_CONFIG
from shared.protocol import ControlToken, ErrorCode, NetworkError, encode_header, with_deadline, write_frame
from shared.utils import INVALID_SAMPLE, now_us

from .transfer import TransferSample, transfer

logger = logging.getLogger(__name__)


class NetworkClient:
    """TCP client that owns the single benchmark connection."""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        self.config = config or CLIENT_CONFIG
        self.host: str = host or self.config["server_host"]
        self.port: int = int(port if port is not None else self.config["server_port"])
        self.io_timeout: Optional[float] = float(self.config["io_timeout"]) or None
        self.connect_timeout: Optional[float] = float(self.config["connect_timeout"]) or None
        self.tcp_nodelay: bool = bool(self.config["tcp_nodelay"])
        self.backoff: float = float(self.config["reconnect_backoff"])
        self.max_backoff: float = float(self.config["max_reconnect_backoff"])
        self.max_retries: int = int(self.config["max_reconnect_retries"])

        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.connected: bool = False
        self.connect_us: int = INVALID_SAMPLE

    async def __aenter__(self) -> "NetworkClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def connect(self) -> int:
        """Open the connection, retrying with backoff. Returns the connect latency in µs."""
        if self.connected:
            return self.connect_us

        retries = 0
        delay = self.backoff
        while True:
            started = now_us()
            try:
                self.reader, self.writer = await with_deadline(
                    asyncio.open_connection(self.host, self.port), self.connect_timeout, "connect"
                )
            except (OSError, NetworkError) as exc:
                retries += 1
                if retries > self.max_retries:
                    raise NetworkError(
                        ErrorCode.CONNECT_FAILED, f"Connect to {self.host}:{self.port} failed: {exc}"
                    ) from exc
                logger.warning("Connect attempt %s failed: %s", retries, exc)
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.max_backoff)
                continue
            self.connect_us = now_us() - started
            self.connected = True
            self._configure_socket()
            logger.info("Connected to %s:%s in %d µs", self.host, self.port, self.connect_us)
            return self.connect_us

    def _configure_socket(self) -> None:
        sock = self.writer.get_extra_info("socket") if self.writer else None
        if not self.tcp_nodelay or sock is None:
            return
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as exc:
            logger.warning("Failed to set TCP_NODELAY: %s", exc)

    async def transfer(self, size: int) -> TransferSample:
        if not self.connected or self.reader is None or self.writer is None:
            raise NetworkError(ErrorCode.SEND_FAILED, "Not connected")
        return await transfer(self.reader, self.writer, size, self.io_timeout)

    async def close(self, send_close: bool = True) -> None:
        """Send CLOSE (unless the stream is out of sync) and close the connection."""
        writer = self.writer
        self.reader = None
        self.writer = None
        self.connected = False
        if writer is None:
            return
        try:
            if send_close and not writer.is_closing():
                await write_frame(writer, encode_header(ControlToken.CLOSE), self.io_timeout)
        except NetworkError as exc:
            logger.warning("Could not send CLOSE: %s", exc)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError) as exc:
                logger.debug("Error during writer cleanup: %s", exc)
        logger.info("Network client closed")


__all__ = ["NetworkClient"]
