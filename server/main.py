from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
from typing import Optional

from server.config import SERVER_CONFIG, load_server_config, validate_server_config
from server.core import BandwidthServer, ControlCommand, ServerStats
from shared.protocol.errors import NetworkError
from shared.settings import ConfigError, load_settings

logger = logging.getLogger(__name__)

# SIGINT/SIGTERM stop the server, SIGUSR1 logs the byte counters
SIGNAL_COMMANDS = {
    "SIGINT": ControlCommand.SHUTDOWN,
    "SIGTERM": ControlCommand.SHUTDOWN,
    "SIGUSR1": ControlCommand.STATS,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bw-server", description="Echo server for the bandwidth benchmark.")
    parser.add_argument("port", nargs="?", type=int, default=None)
    parser.add_argument("--host", default=None)
    parser.add_argument("--max-connections", type=int, default=None, help="bound concurrent sessions (0 = unbounded)")
    parser.add_argument("--max-payload-size", type=int, default=None, help="largest accepted payload in bytes")
    parser.add_argument("--io-timeout", type=float, default=None, help="per read/write deadline in seconds")
    return parser


def apply_args(args: argparse.Namespace) -> None:
    overrides = {
        "port": args.port,
        "host": args.host,
        "max_connections": args.max_connections,
        "max_payload_size": args.max_payload_size,
        "io_timeout": args.io_timeout,
    }
    SERVER_CONFIG.update({key: value for key, value in overrides.items() if value is not None})
    validate_server_config(SERVER_CONFIG)


def install_signal_handlers(server: BandwidthServer) -> None:
    loop = asyncio.get_running_loop()
    for name, command in SIGNAL_COMMANDS.items():
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, server.control.post, command)


async def run_server(argv: Optional[list[str]] = None) -> ServerStats:
    settings = load_settings()
    SERVER_CONFIG["port"] = settings.default_port
    load_server_config()
    apply_args(build_parser().parse_args(argv))
    logging.getLogger().setLevel(SERVER_CONFIG["log_level"])

    server = BandwidthServer.from_config(SERVER_CONFIG)
    await server.start()
    install_signal_handlers(server)
    return await server.serve_forever()


def main(argv: Optional[list[str]] = None) -> int:
    try:
        stats = asyncio.run(run_server(argv))
    except (ConfigError, NetworkError) as exc:
        logger.error("%s", exc)
        return 1
    logger.info("Final counters: %s", stats.model_dump())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
