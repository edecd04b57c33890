"""Command line entry point.

``decode`` turns a captured log stream into NDJSON messages; ``relay`` runs
a relay server that re-broadcasts every inbound message to all consumers.
"""

import argparse
import asyncio
import contextlib
import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from debugbridge.adapters.relay.server import RelayServer
from debugbridge.core.config import RelayConfig
from debugbridge.core.decoder import LogLineDecoder
from debugbridge.core.encoding.ndjson import encode_ndjson
from debugbridge.core.models import StructuredMessage

logger = logging.getLogger(__name__)


def decode_stream(source: TextIO, out: TextIO) -> int:
    """Decode every framed message in ``source`` and write NDJSON to ``out``.

    Returns:
        Number of messages written.
    """
    decoder = LogLineDecoder()
    count = 0
    for line in source:
        message = decoder.feed(line)
        if message is None:
            continue
        out.write(encode_ndjson([message]))
        out.flush()
        count += 1
    return count


async def run_relay(config: RelayConfig) -> None:
    """Run a relay server until cancelled."""
    relay = RelayServer(config)

    def on_connection(connection_id: str, connected: bool) -> None:
        state = "connected" if connected else "disconnected"
        logger.info("%s %s (%d open)", connection_id, state, relay.connection_count)

    async def on_message(connection_id: str, message: StructuredMessage) -> None:
        await relay.broadcast(message)

    relay.on_connection(on_connection)
    relay.on_message(on_message)
    await relay.start()
    try:
        await asyncio.Future()
    finally:
        await relay.stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="debugbridge")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level for debugbridge diagnostics",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    decode = sub.add_parser("decode", help="decode SDKMSG frames from a log stream")
    decode.add_argument(
        "file",
        nargs="?",
        type=argparse.FileType("r", encoding="utf-8", errors="replace"),
        default=sys.stdin,
        help="log file to read (default: stdin)",
    )

    relay = sub.add_parser("relay", help="run the WebSocket relay server")
    relay.add_argument("--host", default=None, help="interface to bind")
    relay.add_argument("--port", type=int, default=None, help="port to listen on")
    relay.add_argument(
        "--ping-interval", type=float, default=None, help="heartbeat period in seconds"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "decode":
        with args.file:
            count = decode_stream(args.file, sys.stdout)
        logger.info("Decoded %d messages", count)
        return 0

    env = RelayConfig.from_env()
    config = RelayConfig(
        host=args.host if args.host is not None else env.host,
        port=args.port if args.port is not None else env.port,
        ping_interval=(
            args.ping_interval if args.ping_interval is not None else env.ping_interval
        ),
    )
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_relay(config))
    return 0
