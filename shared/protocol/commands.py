from __future__ import annotations

from enum import StrEnum
from typing import Union


class ControlToken(StrEnum):
    """
    Control words that may appear in a header slot instead of a payload length.
    CLOSE travels client -> server, OK/ERR travel server -> client as acknowledgements.
    """

    CLOSE = "CLOSE"
    OK = "OK"
    ERR = "ERR"


ACK_TOKENS = frozenset({ControlToken.OK, ControlToken.ERR})


def normalize_token(token: Union[str, ControlToken]) -> str:
    """Convert enum/string into canonical token text."""
    return token.value if isinstance(token, ControlToken) else str(token)


def is_control_token(value: str) -> bool:
    """Check if `value` is a known control token."""
    try:
        ControlToken(value)
        return True
    except ValueError:
        return False


def is_acknowledgement(value: Union[str, ControlToken]) -> bool:
    """Check if `value` is an OK/ERR acknowledgement token."""
    return normalize_token(value) in ACK_TOKENS


__all__ = [
    "ControlToken",
    "ACK_TOKENS",
    "normalize_token",
    "is_control_token",
    "is_acknowledgement",
]
