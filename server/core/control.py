from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional


class ControlCommand(StrEnum):
    STATS = "stats"
    SHUTDOWN = "shutdown"


@dataclass
class ControlRequest:
    command: ControlCommand
    reply: Optional[asyncio.Future] = None

    def resolve(self, result: Any) -> None:
        if self.reply is not None and not self.reply.done():
            self.reply.set_result(result)


class ServerControl:
    """
    Command/query channel the server serves alongside accept.
    Signal handlers and tests post commands here instead of touching server state.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ControlRequest] = asyncio.Queue()

    def post(self, command: ControlCommand) -> None:
        """Fire-and-forget; safe to call from a loop signal handler."""
        self._queue.put_nowait(ControlRequest(ControlCommand(command)))

    async def request(self, command: ControlCommand) -> Any:
        """Post a command and wait for the server's answer."""
        reply = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(ControlRequest(ControlCommand(command), reply))
        return await reply

    async def next(self) -> ControlRequest:
        return await self._queue.get()


__all__ = ["ControlCommand", "ControlRequest", "ServerControl"]
