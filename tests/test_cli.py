import asyncio
import io
import json

from client.config import DEFAULT_CONFIG
from client.core import BenchmarkReport, SizeResult
from client.main import build_parser
from client.ui import BenchCLI
from client.ui.cli import TABLE_HEADER, format_peak, format_row
from server.core import BandwidthServer
from server.main import build_parser as build_server_parser


def _config(port: int, **overrides):
    config = {**DEFAULT_CONFIG, "server_host": "127.0.0.1", "server_port": port, "size_ladder": (128, 1024), "series": 2}
    config.update(overrides)
    return config


def test_format_row_is_tab_separated():
    result = SizeResult(size=128, samples=[10, 12], average_us=11, min_us=10, max_us=12)
    assert format_row(result) == "       128\t   11\t   10\t   12"
    assert TABLE_HEADER.endswith("[µs]")


def test_format_peak():
    report = BenchmarkReport(host="h", port=1, connect_us=5, series=1, peak_throughput=100.0)
    assert format_peak(report) == "Maximum throughput: 100.00 B/s (800.00 Bit/sec)"


def test_table_output():
    out = io.StringIO()

    async def scenario():
        async with BandwidthServer("127.0.0.1", 0, shutdown_grace=1.0) as server:
            return await BenchCLI(_config(server.port), out=out).run()

    assert asyncio.run(scenario()) == 0
    lines = out.getvalue().splitlines()
    assert lines[1] == "Running 2 tests with 2 iterations each"
    assert lines[3] == TABLE_HEADER
    assert lines[4].split("\t")[0].strip() == "128"
    assert lines[5].split("\t")[0].strip() == "1024"
    assert lines[-1].startswith("Maximum throughput:")


def test_json_output():
    out = io.StringIO()

    async def scenario():
        async with BandwidthServer("127.0.0.1", 0, shutdown_grace=1.0) as server:
            return await BenchCLI(_config(server.port), json_output=True, out=out).run(), server.port

    code, port = asyncio.run(scenario())
    assert code == 0
    report = json.loads(out.getvalue())
    assert report["port"] == port
    assert [result["size"] for result in report["results"]] == [128, 1024]
    assert all(len(result["samples"]) == 2 for result in report["results"])


def test_json_output_on_failure():
    out = io.StringIO()

    async def scenario():
        async with BandwidthServer("127.0.0.1", 0, max_payload_size=512, shutdown_grace=1.0) as server:
            return await BenchCLI(_config(server.port), json_output=True, out=out).run()

    assert asyncio.run(scenario()) == 1
    payload = json.loads(out.getvalue())
    assert payload["error"] == "ProtocolError"
    assert payload["error_code"] == 1006


def test_client_arguments():
    args = build_parser().parse_args(["10.0.0.1", "9000", "--warmup", "2", "--json"])
    assert (args.remote, args.port, args.warmup, args.json) == ("10.0.0.1", 9000, 2.0, True)
    assert build_parser().parse_args([]).remote is None


def test_server_arguments():
    args = build_server_parser().parse_args(["9000", "--max-connections", "8"])
    assert (args.port, args.max_connections) == (9000, 8)
