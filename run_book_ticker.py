"""
Book Ticker Launcher
====================

Streams the Binance diff-depth feed and prints the top of the book.

Usage:
    python run_book_ticker.py
    python run_book_ticker.py --url wss://stream.binance.com:9443/ws/ethusdt@depth --symbol ETHUSDT
    python run_book_ticker.py --duration 7200 --log-file bookticker.log
"""

import argparse
import asyncio
import sys

from pydantic import ValidationError

from bookticker.live_trading.live_engine import BookTickerEngine
from bookticker.utils.config import ConnectionConfig, FeedConfig, ReportConfig, load_config
from bookticker.utils.logger import setup_logging_mode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Local Binance order book from the diff-depth stream",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Settings default to BOOKTICKER_* environment variables (a .env file is read).
        """
    )
    parser.add_argument("--url", help="Depth stream WebSocket URL")
    parser.add_argument("--symbol", help="Symbol shown in the report title")
    parser.add_argument("--levels", type=int, help="Price levels per side (default: 5)")
    parser.add_argument("--reconnect-delay", type=float, help="Seconds between reconnect attempts (default: 5)")
    parser.add_argument("--heartbeat-interval", type=float, help="Seconds between keep-alive pings (default: 20)")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds (default: run forever)")
    parser.add_argument("--verbose", action="store_true", help="Per-frame debug logging")
    parser.add_argument("--log-file", help="Also log to this rotating file")
    return parser


def apply_overrides(args: argparse.Namespace):
    """Environment config with command line values layered on top"""
    cfg = load_config()

    feed = cfg.feed.model_dump()
    if args.url:
        feed["ws_url"] = args.url
    if args.symbol:
        feed["symbol"] = args.symbol
    cfg.feed = FeedConfig(**feed)

    connection = cfg.connection.model_dump()
    if args.reconnect_delay is not None:
        connection["reconnect_delay"] = args.reconnect_delay
    if args.heartbeat_interval is not None:
        connection["heartbeat_interval"] = args.heartbeat_interval
    cfg.connection = ConnectionConfig(**connection)

    if args.levels is not None:
        cfg.report = ReportConfig(**{**cfg.report.model_dump(), "levels": args.levels})

    if args.verbose:
        cfg.logging.mode = "development"
    if args.log_file:
        cfg.logging.file = args.log_file

    return cfg


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = apply_overrides(args)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 2

    setup_logging_mode(cfg.logging.mode, cfg.logging.file)

    engine = BookTickerEngine(cfg)
    try:
        asyncio.run(engine.run(duration=args.duration))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
