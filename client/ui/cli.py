from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO

from client.core import BenchmarkDriver, BenchmarkReport, SizeResult
from shared.protocol.errors import ProtocolError
from shared.utils import format_rate

logger = logging.getLogger(__name__)

TABLE_HEADER = f"{'Size':>10}\t{'Avg':>5}\t{'Min':>5}\t{'Max':>5} [µs]"


def format_row(result: SizeResult) -> str:
    return f"{result.size:10d}\t{result.average_us:5d}\t{result.min_us:5d}\t{result.max_us:5d}"


def format_peak(report: BenchmarkReport) -> str:
    return f"Maximum throughput: {format_rate(report.peak_throughput)}"


class BenchCLI:
    """Runs one benchmark and prints the table (or the JSON report)."""

    def __init__(self, config: Dict[str, Any], json_output: bool = False, out: Optional[TextIO] = None) -> None:
        self.config = config
        self.json_output = json_output
        self.out = out or sys.stdout

    def _print(self, line: str = "") -> None:
        print(line, file=self.out)

    def _on_result(self, result: SizeResult) -> None:
        if not self.json_output:
            self._print(format_row(result))

    async def run(self) -> int:
        driver = BenchmarkDriver.from_config(self.config, on_result=self._on_result)
        if not self.json_output:
            self._print(f"{driver.network.host}:{driver.network.port}")
            self._print(f"Running {len(driver.sizes)} tests with {driver.series} iterations each")
            self._print()
            self._print(TABLE_HEADER)
        try:
            report = await driver.run()
        except ProtocolError as exc:
            logger.error("Benchmark aborted: %s", exc)
            if self.json_output:
                self._print(json.dumps(exc.to_payload(), indent=2))
            return 1

        if self.json_output:
            self._print(json.dumps(report.model_dump(), indent=2))
        else:
            self._print(format_peak(report))
        return 0


__all__ = ["BenchCLI", "TABLE_HEADER", "format_row", "format_peak"]
