from __future__ import annotations

import logging
import os
from typing import Any, Dict, Tuple

from dotenv import load_dotenv

from shared.protocol.constants import (
    DEFAULT_PORT,
    DEFAULT_SERIES,
    DEFAULT_SIZE_LADDER,
    DEFAULT_WARMUP_SIZE,
    MAX_HEADER_VALUE,
)
from shared.settings import ConfigError, normalize_log_level

DEFAULT_CONFIG: Dict[str, Any] = {
    "server_host": "127.0.0.1",
    "server_port": DEFAULT_PORT,
    "warmup_seconds": 0.0,
    "warmup_size": DEFAULT_WARMUP_SIZE,
    "series": DEFAULT_SERIES,
    "size_ladder": DEFAULT_SIZE_LADDER,
    "io_timeout": 0.0,
    "connect_timeout": 10.0,
    "tcp_nodelay": True,
    "reconnect_backoff": 1,
    "max_reconnect_backoff": 30,
    "max_reconnect_retries": 0,
    "log_level": "INFO",
}

CLIENT_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load client configuration from env file/environment variables."""
    if os.path.exists(env_path):
        load_dotenv(env_path)

    for key, default_value in DEFAULT_CONFIG.items():
        env_key = f"CLIENT_{key.upper()}"
        value = os.getenv(env_key, CLIENT_CONFIG.get(key, default_value))
        CLIENT_CONFIG[key] = _coerce_type(value, type(default_value))

    validate_config(CLIENT_CONFIG)
    logging.getLogger().setLevel(CLIENT_CONFIG["log_level"])
    return CLIENT_CONFIG


def parse_ladder(value: Any) -> Tuple[int, ...]:
    """Accept a tuple/list of sizes or a comma separated string such as '128,256,1024'."""
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    else:
        items = list(value)
    try:
        return tuple(int(item) for item in items)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot parse size ladder {value!r}") from exc


def _coerce_type(value: Any, target_type: type) -> Any:
    if target_type is tuple:
        return parse_ladder(value)
    if isinstance(value, target_type):
        return value
    try:
        if target_type is bool:
            return str(value).lower() in ("1", "true", "yes", "on")
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type}") from exc


def validate_ladder(sizes: Tuple[int, ...]) -> None:
    if not sizes:
        raise ConfigError("size_ladder must contain at least one size")
    if any(size < 0 for size in sizes):
        raise ConfigError("size_ladder entries must not be negative")
    if any(size > MAX_HEADER_VALUE for size in sizes):
        raise ConfigError(f"size_ladder entries must not exceed {MAX_HEADER_VALUE}")
    if any(b <= a for a, b in zip(sizes, sizes[1:])):
        raise ConfigError("size_ladder must be strictly increasing")


def validate_config(config: Dict[str, Any]) -> None:
    if not (1 <= int(config["server_port"]) <= 65535):
        raise ConfigError("server_port must be between 1 and 65535")
    if config["series"] <= 0:
        raise ConfigError("series must be positive")
    if config["warmup_seconds"] < 0:
        raise ConfigError("warmup_seconds must not be negative")
    if config["warmup_size"] < 0:
        raise ConfigError("warmup_size must not be negative")
    if config["io_timeout"] < 0 or config["connect_timeout"] < 0:
        raise ConfigError("timeouts must not be negative")
    if config["max_reconnect_retries"] < 0:
        raise ConfigError("max_reconnect_retries must not be negative")
    validate_ladder(config["size_ladder"])
    config["log_level"] = normalize_log_level(config["log_level"])


__all__ = [
    "CLIENT_CONFIG",
    "DEFAULT_CONFIG",
    "ConfigError",
    "load_config",
    "parse_ladder",
    "validate_config",
    "validate_ladder",
]
