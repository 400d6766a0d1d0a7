from __future__ import annotations

import asyncio
import threading
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .connection import ConnectionContext


class ServerStats(BaseModel):
    """Point-in-time view of the server counters."""

    active_sessions: int = Field(0, description="Sessions currently open")
    total_sessions: int = Field(0, description="Sessions accepted since start")
    failed_sessions: int = Field(0, description="Sessions that ended with an error")
    transfers: int = Field(0, description="Payloads echoed")
    bytes_echoed: int = Field(0, description="Payload bytes received and sent back")
    rejected_requests: int = Field(0, description="Requests answered with ERR")


class ServerMetrics:
    """Counters shared by every session. All mutation happens under one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_sessions = 0
        self._failed_sessions = 0
        self._transfers = 0
        self._bytes_echoed = 0
        self._rejected = 0

    def session_opened(self) -> None:
        with self._lock:
            self._total_sessions += 1

    def session_failed(self) -> None:
        with self._lock:
            self._failed_sessions += 1

    def record_transfer(self, size: int) -> None:
        with self._lock:
            self._transfers += 1
            self._bytes_echoed += size

    def record_rejection(self) -> None:
        with self._lock:
            self._rejected += 1

    def snapshot(self, active_sessions: int = 0) -> ServerStats:
        with self._lock:
            return ServerStats(
                active_sessions=active_sessions,
                total_sessions=self._total_sessions,
                failed_sessions=self._failed_sessions,
                transfers=self._transfers,
                bytes_echoed=self._bytes_echoed,
                rejected_requests=self._rejected,
            )


class ConnectionManager:
    """Tracks active connections and owns the metrics every session reports into."""

    def __init__(self, metrics: Optional[ServerMetrics] = None) -> None:
        self.metrics = metrics or ServerMetrics()
        self._by_writer: Dict[asyncio.StreamWriter, ConnectionContext] = {}

    def register(self, writer: asyncio.StreamWriter, ctx: ConnectionContext) -> None:
        self._by_writer[writer] = ctx
        self.metrics.session_opened()

    def unregister(self, writer: asyncio.StreamWriter) -> Optional[ConnectionContext]:
        return self._by_writer.pop(writer, None)

    def active(self) -> List[ConnectionContext]:
        return list(self._by_writer.values())

    def __len__(self) -> int:
        return len(self._by_writer)

    def stats(self) -> ServerStats:
        return self.metrics.snapshot(active_sessions=len(self._by_writer))
