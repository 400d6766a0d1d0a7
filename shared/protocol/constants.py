"""Protocol-wide constants shared by client and server."""

ENCODING = "ascii"
HEADER_SIZE = 8  # every header and acknowledgement is exactly this long
HEADER_PADDING = b" \x00"  # peers pad with spaces or NUL bytes
MAX_HEADER_VALUE = 10**HEADER_SIZE - 1
FILL_BYTE = b"a"

DEFAULT_PORT = 12998
DEFAULT_MAX_PAYLOAD_SIZE = 64 * 1024 * 1024  # server-side cap before allocating
DEFAULT_SERIES = 10  # transfers per size
DEFAULT_WARMUP_SIZE = 10240
DEFAULT_SIZE_LADDER = (
    128,
    256,
    512,
    1024,
    2048,
    4096,
    10240,
    40960,
    81920,
    122880,
    163840,
    204800,
    327680,
    409600,
    819200,
    1228800,
    1638400,
    3276800,
    4915200,
    6553600,
    65536000,
)

__all__ = [
    "ENCODING",
    "HEADER_SIZE",
    "HEADER_PADDING",
    "MAX_HEADER_VALUE",
    "FILL_BYTE",
    "DEFAULT_PORT",
    "DEFAULT_MAX_PAYLOAD_SIZE",
    "DEFAULT_SERIES",
    "DEFAULT_WARMUP_SIZE",
    "DEFAULT_SIZE_LADDER",
]
