from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from shared.protocol.constants import DEFAULT_PORT


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


@dataclass
class Settings:
    """Shared baseline settings (both client/server build on top)."""

    default_port: int = DEFAULT_PORT
    log_level: str = "INFO"
    log_format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


SETTINGS = Settings()


def normalize_log_level(level: str) -> str:
    """Return the upper-case name of a known logging level."""
    name = str(level).upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ConfigError(f"Unknown log level {level!r}")
    return name


def load_settings(env_path: str = ".env") -> Settings:
    """Load shared settings from env/.env and configure logging."""
    if Path(env_path).exists():
        load_dotenv(env_path)
    try:
        SETTINGS.default_port = int(os.getenv("BW_PORT", SETTINGS.default_port))
    except ValueError as exc:
        raise ConfigError(f"Invalid BW_PORT: {exc}") from exc
    SETTINGS.log_level = normalize_log_level(os.getenv("BW_LOG_LEVEL", SETTINGS.log_level))
    SETTINGS.log_format = os.getenv("BW_LOG_FORMAT", SETTINGS.log_format)
    logging.basicConfig(level=SETTINGS.log_level, format=SETTINGS.log_format)
    return SETTINGS


__all__ = ["ConfigError", "Settings", "SETTINGS", "load_settings", "normalize_log_level"]
