from .common import format_bytes, format_rate, now_us, scale_rate
from .stats import EMPTY_SUMMARY, INVALID_SAMPLE, Summary, summarize, valid_samples

__all__ = [
    "format_bytes",
    "format_rate",
    "now_us",
    "scale_rate",
    "EMPTY_SUMMARY",
    "INVALID_SAMPLE",
    "Summary",
    "summarize",
    "valid_samples",
]
