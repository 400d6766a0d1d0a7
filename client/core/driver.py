from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any, Dict, Optional

from client.config import validate_ladder
from shared.protocol.constants import DEFAULT_SERIES, DEFAULT_SIZE_LADDER, DEFAULT_WARMUP_SIZE
from shared.settings import ConfigError

from .network import NetworkClient
from .report import BenchmarkReport, SizeResult

logger = logging.getLogger(__name__)

ResultCallback = Callable[[SizeResult], None]


class BenchmarkDriver:
    """Runs warmup plus one series per ladder size over a single connection."""

    def __init__(
        self,
        network: NetworkClient,
        sizes: Sequence[int] = DEFAULT_SIZE_LADDER,
        series: int = DEFAULT_SERIES,
        warmup_seconds: float = 0.0,
        warmup_size: int = DEFAULT_WARMUP_SIZE,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self.sizes = tuple(sizes)
        validate_ladder(self.sizes)
        if series <= 0:
            raise ConfigError("series must be positive")
        self.network = network
        self.series = series
        self.warmup_seconds = warmup_seconds
        self.warmup_size = warmup_size
        self.on_result = on_result

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        network: Optional[NetworkClient] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> "BenchmarkDriver":
        return cls(
            network or NetworkClient(config),
            sizes=config["size_ladder"],
            series=config["series"],
            warmup_seconds=config["warmup_seconds"],
            warmup_size=config["warmup_size"],
            on_result=on_result,
        )

    async def run(self) -> BenchmarkReport:
        """
        Connect, warm up, run every series and close.
        The first failed transfer aborts the run; the connection is then closed
        without CLOSE since the stream position is unknown.
        """
        connect_us = await self.network.connect()
        completed = False
        try:
            warmups = await self.warmup()
            logger.info("Running %d tests with %d iterations each", len(self.sizes), self.series)
            results = []
            for size in self.sizes:
                result = await self.run_series(size)
                results.append(result)
                if self.on_result:
                    self.on_result(result)
            completed = True
        finally:
            await self.network.close(send_close=completed)

        return BenchmarkReport(
            host=self.network.host,
            port=self.network.port,
            connect_us=connect_us,
            series=self.series,
            warmup_transfers=warmups,
            results=results,
            peak_throughput=BenchmarkReport.peak_of(results),
        )

    async def warmup(self) -> int:
        """Transfer warmup_size payloads until the budget is exceeded. Returns the count."""
        if self.warmup_seconds <= 0:
            return 0
        logger.info("Warmup %.1f seconds ...", self.warmup_seconds)
        started = time.monotonic()
        count = 0
        while time.monotonic() - started <= self.warmup_seconds:
            await self.network.transfer(self.warmup_size)
            count += 1
        logger.debug("Warmup done after %d transfers", count)
        return count

    async def run_series(self, size: int) -> SizeResult:
        samples = []
        for _ in range(self.series):
            sample = await self.network.transfer(size)
            samples.append(sample.average_us)
        result = SizeResult.from_samples(size, samples)
        logger.debug("size=%d avg=%d min=%d max=%d", size, result.average_us, result.min_us, result.max_us)
        return result


__all__ = ["BenchmarkDriver"]
