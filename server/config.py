from __future__ import annotations

import os
from typing import Any, Dict

from shared.protocol.constants import DEFAULT_MAX_PAYLOAD_SIZE, DEFAULT_PORT
from shared.settings import ConfigError, normalize_log_level

DEFAULT_SERVER_CONFIG: Dict[str, Any] = {
    "host": "0.0.0.0",
    "port": DEFAULT_PORT,
    "max_connections": 0,  # 0 = one session per connection without admission control
    "max_payload_size": DEFAULT_MAX_PAYLOAD_SIZE,
    "io_timeout": 0.0,  # seconds, 0 = no deadline
    "tcp_nodelay": True,
    "shutdown_grace": 5.0,
    "log_level": "INFO",
}

SERVER_CONFIG = DEFAULT_SERVER_CONFIG.copy()


def load_server_config() -> Dict[str, Any]:
    try:
        SERVER_CONFIG["host"] = os.getenv("SERVER_HOST", SERVER_CONFIG["host"])
        SERVER_CONFIG["port"] = int(os.getenv("SERVER_PORT", SERVER_CONFIG["port"]))
        SERVER_CONFIG["max_connections"] = int(os.getenv("SERVER_MAX_CONNECTIONS", SERVER_CONFIG["max_connections"]))
        SERVER_CONFIG["max_payload_size"] = int(
            os.getenv("SERVER_MAX_PAYLOAD_SIZE", SERVER_CONFIG["max_payload_size"])
        )
        SERVER_CONFIG["io_timeout"] = float(os.getenv("SERVER_IO_TIMEOUT", SERVER_CONFIG["io_timeout"]))
        SERVER_CONFIG["tcp_nodelay"] = str(os.getenv("SERVER_TCP_NODELAY", SERVER_CONFIG["tcp_nodelay"])).lower() in (
            "1",
            "true",
            "yes",
            "on",
        )
        SERVER_CONFIG["shutdown_grace"] = float(os.getenv("SERVER_SHUTDOWN_GRACE", SERVER_CONFIG["shutdown_grace"]))
        SERVER_CONFIG["log_level"] = os.getenv("SERVER_LOG_LEVEL", SERVER_CONFIG["log_level"])
    except ValueError as exc:
        raise ConfigError(f"Invalid server configuration: {exc}") from exc
    validate_server_config(SERVER_CONFIG)
    return SERVER_CONFIG


def validate_server_config(config: Dict[str, Any]) -> None:
    if not (0 <= int(config["port"]) <= 65535):
        raise ConfigError("port must be between 0 and 65535")
    if config["max_connections"] < 0:
        raise ConfigError("max_connections must not be negative")
    if config["max_payload_size"] < 0:
        raise ConfigError("max_payload_size must not be negative")
    if config["io_timeout"] < 0:
        raise ConfigError("io_timeout must not be negative")
    if config["shutdown_grace"] < 0:
        raise ConfigError("shutdown_grace must not be negative")
    config["log_level"] = normalize_log_level(config["log_level"])


__all__ = ["DEFAULT_SERVER_CONFIG", "SERVER_CONFIG", "load_server_config", "validate_server_config"]
