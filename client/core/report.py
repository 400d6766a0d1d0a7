from __future__ import annotations

from typing import Iterable, List

from pydantic import BaseModel, Field

from shared.utils import summarize


class SizeResult(BaseModel):
    """Summary of one series of same-size transfers."""

    size: int = Field(..., ge=0, description="Payload size in bytes")
    samples: List[int] = Field(default_factory=list, description="(send_us + recv_us) // 2 per transfer")
    average_us: int = Field(0, description="Floor of the mean of valid samples")
    min_us: int = Field(0, description="Fastest valid sample")
    max_us: int = Field(0, description="Slowest valid sample")

    @classmethod
    def from_samples(cls, size: int, samples: Iterable[int]) -> "SizeResult":
        samples = list(samples)
        summary = summarize(samples)
        return cls(
            size=size,
            samples=samples,
            average_us=summary.average,
            min_us=summary.minimum,
            max_us=summary.maximum,
        )

    @property
    def throughput(self) -> float:
        """Best-case bytes/s for this size; 0.0 when the fastest sample rounds to 0 µs."""
        if self.min_us <= 0:
            return 0.0
        return self.size * 1e6 / self.min_us


class BenchmarkReport(BaseModel):
    host: str
    port: int
    connect_us: int = Field(..., description="TCP connect latency in µs")
    series: int = Field(..., ge=1, description="Transfers per size")
    warmup_transfers: int = Field(0, description="Discarded warmup transfers")
    results: List[SizeResult] = Field(default_factory=list)
    peak_throughput: float = Field(0.0, description="Highest size / min_us over all sizes, bytes/s")

    @staticmethod
    def peak_of(results: Iterable[SizeResult]) -> float:
        return max((result.throughput for result in results), default=0.0)


__all__ = ["SizeResult", "BenchmarkReport"]
