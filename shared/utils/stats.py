from __future__ import annotations

from typing import Iterable, NamedTuple

INVALID_SAMPLE = -1  # marks a failed measurement; never aggregated


class Summary(NamedTuple):
    average: int
    minimum: int
    maximum: int
    count: int

    @property
    def empty(self) -> bool:
        return self.count == 0


EMPTY_SUMMARY = Summary(0, 0, 0, 0)


def valid_samples(samples: Iterable[int]) -> list[int]:
    """Drop sentinel/negative entries."""
    return [s for s in samples if s >= 0]


def summarize(samples: Iterable[int]) -> Summary:
    """
    Reduce a series of microsecond samples to (average, minimum, maximum).
    The average is floor division of the sum, matching the integer samples it is
    computed from. Empty or all-invalid input yields EMPTY_SUMMARY.
    """
    values = valid_samples(samples)
    if not values:
        return EMPTY_SUMMARY
    return Summary(
        average=sum(values) // len(values),
        minimum=min(values),
        maximum=max(values),
        count=len(values),
    )


__all__ = ["INVALID_SAMPLE", "Summary", "EMPTY_SUMMARY", "valid_samples", "summarize"]
