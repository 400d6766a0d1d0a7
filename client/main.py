from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from client.config import CLIENT_CONFIG, load_config, parse_ladder, validate_config
from client.ui import BenchCLI
from shared.settings import ConfigError, load_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bw-client", description="Simple network bandwidth test program.")
    parser.add_argument("remote", nargs="?", default=None, help="server address")
    parser.add_argument("port", nargs="?", type=int, default=None)
    parser.add_argument("--warmup", type=float, default=None, metavar="SECONDS", help="warm up before measuring")
    parser.add_argument("--series", type=int, default=None, help="transfers per size")
    parser.add_argument("--sizes", default=None, help="comma separated size ladder in bytes")
    parser.add_argument("--io-timeout", type=float, default=None, help="per read/write deadline in seconds")
    parser.add_argument("--json", action="store_true", help="print the report as JSON")
    return parser


def apply_args(args: argparse.Namespace) -> None:
    overrides = {
        "server_host": args.remote,
        "server_port": args.port,
        "warmup_seconds": args.warmup,
        "series": args.series,
        "size_ladder": parse_ladder(args.sizes) if args.sizes else None,
        "io_timeout": args.io_timeout,
    }
    CLIENT_CONFIG.update({key: value for key, value in overrides.items() if value is not None})
    validate_config(CLIENT_CONFIG)


async def run_client(argv: Optional[list[str]] = None) -> int:
    settings = load_settings()
    CLIENT_CONFIG["server_port"] = settings.default_port
    load_config()
    args = build_parser().parse_args(argv)
    apply_args(args)
    return await BenchCLI(CLIENT_CONFIG, json_output=args.json).run()


def main(argv: Optional[list[str]] = None) -> int:
    try:
        return asyncio.run(run_client(argv))
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
