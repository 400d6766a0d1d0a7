from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Dict, Optional, Set

from shared.protocol import DEFAULT_MAX_PAYLOAD_SIZE, ErrorCode, NetworkError, ProtocolError
from shared.utils import format_bytes

from .connection import ConnectionContext, SessionState
from .connection_manager import ConnectionManager, ServerStats
from .control import ControlCommand, ControlRequest, ServerControl
from .session import EchoSession

logger = logging.getLogger(__name__)


class BandwidthServer:
    """
    Accepts connections and runs one EchoSession per connection.

    Session tasks are kept in a supervised set: `stop` closes the listener, lets
    running sessions drain for the grace period and cancels whatever is left.
    With `max_connections > 0` sessions beyond the limit are accepted but wait
    for a free slot before they are served.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connection_manager: Optional[ConnectionManager] = None,
        max_connections: int = 0,
        max_payload_size: Optional[int] = DEFAULT_MAX_PAYLOAD_SIZE,
        io_timeout: float = 0.0,
        tcp_nodelay: bool = True,
        shutdown_grace: float = 5.0,
    ) -> None:
        self.host = host
        self.port = port
        self.connection_manager = connection_manager or ConnectionManager()
        self.max_connections = max_connections
        self.max_payload_size = max_payload_size
        self.io_timeout = io_timeout
        self.tcp_nodelay = tcp_nodelay
        self.shutdown_grace = shutdown_grace
        self.control = ServerControl()
        self._server: Optional[asyncio.AbstractServer] = None
        self._sessions: Set[asyncio.Task] = set()
        self._slots = asyncio.Semaphore(max_connections) if max_connections > 0 else None
        self._closing = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "BandwidthServer":
        return cls(
            config["host"],
            config["port"],
            max_connections=config["max_connections"],
            max_payload_size=config["max_payload_size"],
            io_timeout=config["io_timeout"],
            tcp_nodelay=config["tcp_nodelay"],
            shutdown_grace=config["shutdown_grace"],
        )

    async def __aenter__(self) -> "BandwidthServer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    async def start(self) -> None:
        try:
            self._server = await asyncio.start_server(self._handle_client, self.host, self.port)
        except OSError as exc:
            raise NetworkError(ErrorCode.CONNECT_FAILED, f"Cannot listen on {self.host}:{self.port}: {exc}") from exc
        self._closing = False
        self.port = self._server.sockets[0].getsockname()[1]
        logger.info("Server listening on %s:%s", self.host, self.port)

    async def serve_forever(self) -> ServerStats:
        """Serve control commands until SHUTDOWN; accepting runs in the background meanwhile."""
        if self._server is None:
            await self.start()
        while True:
            request = await self.control.next()
            if request.command is ControlCommand.SHUTDOWN:
                await self.stop()
                stats = self.stats()
                request.resolve(stats)
                return stats
            self._answer(request)

    def _answer(self, request: ControlRequest) -> None:
        stats = self.stats()
        logger.info(
            "tcp:%s - %s echoed in %d transfers, %d active / %d total sessions",
            self.port,
            format_bytes(stats.bytes_echoed),
            stats.transfers,
            stats.active_sessions,
            stats.total_sessions,
        )
        request.resolve(stats)

    def stats(self) -> ServerStats:
        return self.connection_manager.stats()

    async def stop(self, grace: Optional[float] = None) -> None:
        if self._server is None:
            return
        self._closing = True
        self._server.close()
        grace = self.shutdown_grace if grace is None else grace
        pending = set(self._sessions)
        if pending:
            logger.info("Waiting up to %.1fs for %d sessions to drain", grace, len(pending))
            _, pending = await asyncio.wait(pending, timeout=grace)
        if pending:
            for ctx in self.connection_manager.active():
                if not ctx.is_closed():
                    logger.debug("Cancelling %s in state %s", ctx.peername, ctx.state.value)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        await self._server.wait_closed()
        self._server = None
        logger.info("Server on port %s stopped; %s echoed", self.port, format_bytes(self.stats().bytes_echoed))

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._sessions.add(task)
        ctx = ConnectionContext(reader=reader, writer=writer, peername=str(writer.get_extra_info("peername")))
        self.connection_manager.register(writer, ctx)
        try:
            if self._closing:
                logger.debug("Refusing %s, server is shutting down", ctx.peername)
                return
            self._configure_socket(writer)
            logger.info("Client %s connected", ctx.peername)
            session = EchoSession(ctx, self.connection_manager.metrics, self.max_payload_size, self.io_timeout)
            if self._slots is None:
                await session.run()
            else:
                async with self._slots:
                    await session.run()
            logger.info(
                "Client %s disconnected after %d transfers in %.1fs",
                ctx.peername,
                ctx.transfers,
                ctx.last_seen - ctx.opened_at,
            )
        except ProtocolError as exc:
            self.connection_manager.metrics.session_failed()
            logger.warning("Session %s failed: %s", ctx.peername, exc)
        except asyncio.CancelledError:
            logger.info("Session %s cancelled", ctx.peername)
            raise
        except Exception as exc:
            self.connection_manager.metrics.session_failed()
            logger.exception("Unhandled error in session %s: %s", ctx.peername, exc)
        finally:
            ctx.state = SessionState.CLOSED
            try:
                writer.close()
                await writer.wait_closed()
            except Exception as e:
                logger.debug("Error during writer cleanup: %s", e)
            finally:
                self.connection_manager.unregister(writer)
                if task is not None:
                    self._sessions.discard(task)

    def _configure_socket(self, writer: asyncio.StreamWriter) -> None:
        sock = writer.get_extra_info("socket")
        if not self.tcp_nodelay or sock is None:
            return
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as exc:
            logger.warning("Failed to set TCP_NODELAY: %s", exc)


__all__ = ["BandwidthServer"]
