from __future__ import annotations

import time
from typing import Tuple

KIB = 1024.0
MIB = 1024.0 * 1024.0
GIB = 1024.0 * 1024.0 * 1024.0

# (threshold in bytes/s, divisor, byte unit, bit unit), checked in order
_RATE_UNITS = (
    (2e9, GIB, "GiB/s", "GBit/sec"),
    (2e6, MIB, "MiB/s", "MBit/sec"),
    (2e3, KIB, "KiB/s", "kBit/sec"),
)


def now_us() -> int:
    """Monotonic clock in whole microseconds."""
    return time.perf_counter_ns() // 1000


def scale_rate(bytes_per_s: float) -> Tuple[float, str, float, str]:
    """Pick a binary unit for a byte rate. Returns (value, unit, bit value, bit unit)."""
    for threshold, divisor, unit, bit_unit in _RATE_UNITS:
        if bytes_per_s > threshold:
            value = bytes_per_s / divisor
            return value, unit, value * 8.0, bit_unit
    return bytes_per_s, "B/s", bytes_per_s * 8.0, "Bit/sec"


def format_rate(bytes_per_s: float) -> str:
    value, unit, bits, bit_unit = scale_rate(bytes_per_s)
    return f"{value:5.2f} {unit} ({bits:5.2f} {bit_unit})"


def format_bytes(count: int) -> str:
    if count >= GIB:
        return f"{count / GIB:.2f} GiB"
    if count >= MIB:
        return f"{count / MIB:.2f} MiB"
    if count >= KIB:
        return f"{count / KIB:.2f} KiB"
    return f"{count} B"


__all__ = ["now_us", "scale_rate", "format_rate", "format_bytes"]
