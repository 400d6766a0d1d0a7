from .connection import ConnectionContext, SessionState
from .connection_manager import ConnectionManager, ServerMetrics, ServerStats
from .control import ControlCommand, ServerControl
from .server import BandwidthServer
from .session import EchoSession

__all__ = [
    "ConnectionContext",
    "SessionState",
    "ConnectionManager",
    "ServerMetrics",
    "ServerStats",
    "ControlCommand",
    "ServerControl",
    "BandwidthServer",
    "EchoSession",
]
