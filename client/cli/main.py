"""
Command-line entry point.

Responsibilities:
- Load .env, then environment configuration, then apply flags
- Configure the logger
- Run one receiver session and map the outcome to an exit code
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from dotenv import load_dotenv

from config import ClientConfig, ConfigError
from constants import EXIT_CONNECT_FAILED, EXIT_OK
from observability import logger
from observability.logger import log_event, now_ms
from session.receiver_session import ReceiverSession
from transport.connection import ConnectError


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="openwebrx-client",
        description="Open an OpenWebRX receiver session and log status until interrupted.",
    )
    ap.add_argument("--addr", default=None, help="openwebrx service address (host:port, default localhost:8073)")
    ap.add_argument("--sq", type=int, default=None, help="squelch level (default -120)")
    ap.add_argument("--offset", type=int, default=None, help="frequency offset in Hz (default 0)")
    ap.add_argument("--plain-logs", action="store_true", help="Write key=value lines instead of JSONL.")
    return ap


def load_config(args: argparse.Namespace) -> ClientConfig:
    """Environment first, then flags. Raises ConfigError."""
    return ClientConfig.load_from_env().with_overrides(
        addr=args.addr,
        squelch_level=args.sq,
        frequency_offset=args.offset,
        enable_json_logs=False if args.plain_logs else None,
    )


async def run_client(config: ClientConfig) -> int:
    session = ReceiverSession(config=config)

    try:
        await session.run()
    except ConnectError as e:
        log_event({
            "ts_ms": now_ms(),
            "event_type": "CONNECT_FAILED",
            "session_id": session.session_id,
            "addr": config.addr,
            "error": str(e),
        })
        return EXIT_CONNECT_FAILED

    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()

    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        config = load_config(args)
    except ConfigError as e:
        ap.error(str(e))

    logger.configure(json_lines=config.enable_json_logs)

    return asyncio.run(run_client(config))


if __name__ == "__main__":
    raise SystemExit(main())
