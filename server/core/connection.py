from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum


class SessionState(Enum):
    AWAIT_HEADER = "await_header"
    AWAIT_PAYLOAD = "await_payload"
    ECHO_PAYLOAD = "echo_payload"
    CLOSED = "closed"


@dataclass
class ConnectionContext:
    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    peername: str
    state: SessionState = SessionState.AWAIT_HEADER
    transfers: int = 0
    bytes_echoed: int = 0
    opened_at: float = field(default_factory=time.time)
    last_seen: float = field(default_factory=time.time)

    def touch(self) -> None:
        self.last_seen = time.time()

    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED
