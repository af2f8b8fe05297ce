"""CLI entry point for the watchlist tracker.

Usage:
    python -m tracker
    python -m tracker --symbols AAPL:180,GOOGL,TSLA:200,BTC:45000
    python -m tracker --ticks 60 --report AAPL --seed 7
    python -m tracker --ticks 30 --export state.json
    python -m tracker --import state.json --ticks 1
"""

import argparse
import asyncio
import logging
import signal
import sys
from decimal import Decimal, InvalidOperation

from core.errors import InsufficientData, MalformedData, UnknownInstrument
from tracker.config import get_settings
from tracker.render import ReportFormatter
from tracker.services.persistence import load_from_file, save_to_file
from tracker.services.price_source import SyntheticPriceSource
from tracker.services.watchlist_tracker import WatchlistTracker
from tracker.watchlist_config import load_watchlist_config

logger = logging.getLogger(__name__)


def parse_symbols(value: str) -> list[tuple[str, Decimal | None]]:
    """Parse 'AAPL:180,GOOGL' into [('AAPL', Decimal('180')), ('GOOGL', None)]."""
    entries: list[tuple[str, Decimal | None]] = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        symbol, _, alert = part.partition(":")
        alert_price = None
        if alert:
            try:
                alert_price = Decimal(alert)
            except InvalidOperation:
                raise argparse.ArgumentTypeError(f"Invalid alert price: {alert}")
            if alert_price <= 0:
                raise argparse.ArgumentTypeError(f"Alert price must be positive: {alert}")
        if not symbol.strip():
            raise argparse.ArgumentTypeError(f"Empty symbol in: {part}")
        entries.append((symbol.strip().upper(), alert_price))
    return entries


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Track prices, technical indicators and alerts for a watchlist",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tracker --symbols AAPL:180,GOOGL,TSLA:200
  python -m tracker --ticks 60 --report AAPL
  python -m tracker --ticks 30 --export state.json
        """,
    )
    parser.add_argument(
        "--symbols",
        type=parse_symbols,
        default=None,
        help="Comma-separated SYMBOL[:ALERT_PRICE] list (overrides watchlist file)",
    )
    parser.add_argument(
        "--watchlist",
        type=str,
        default=None,
        help="Watchlist YAML file (default: settings.watchlist_file)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Run this many ticks immediately and exit (default: run until Ctrl-C)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between ticks when running continuously",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the synthetic price source",
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Print a performance report for SYMBOL when done",
    )
    parser.add_argument(
        "--days",
        type=float,
        default=None,
        help="Report window in days (default: settings.report_days)",
    )
    parser.add_argument(
        "--import",
        dest="import_path",
        type=str,
        default=None,
        help="Load state from a JSON export before running",
    )
    parser.add_argument(
        "--export",
        dest="export_path",
        type=str,
        default=None,
        help="Write state to a JSON file when done",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(argv)


def build_tracker(args: argparse.Namespace) -> WatchlistTracker:
    settings = get_settings()
    seed = args.seed if args.seed is not None else settings.price_seed
    tracker = WatchlistTracker.from_settings(
        settings, price_source=SyntheticPriceSource(seed=seed)
    )

    if args.import_path:
        load_from_file(tracker, args.import_path)
    elif args.symbols:
        for symbol, alert_price in args.symbols:
            tracker.add(symbol, alert_price)
    else:
        config = load_watchlist_config(args.watchlist, settings.symbols)
        if config.update_interval is not None:
            tracker.update_interval = config.update_interval
        for item in config.enabled_items:
            tracker.add(item.symbol, item.alert_price)

    if args.interval is not None:
        if args.interval <= 0:
            raise ValueError(f"--interval must be positive, got {args.interval}")
        tracker.update_interval = args.interval
    return tracker


async def run_forever(tracker: WatchlistTracker) -> None:
    """Tick until SIGINT/SIGTERM, printing the portfolio after each tick."""
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt
            pass

    tracker.on_tick(lambda t: print(ReportFormatter.format_portfolio(t), flush=True))
    tracker.start()
    try:
        await stop_event.wait()
    finally:
        tracker.stop()
        await tracker.wait_stopped()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        tracker = build_tracker(args)
    except MalformedData as e:
        logger.error("Import failed: %s", e)
        return 1
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    if args.ticks is not None:
        for _ in range(max(args.ticks, 0)):
            tracker.update_prices()
        print(ReportFormatter.format_portfolio(tracker))
    else:
        try:
            asyncio.run(run_forever(tracker))
        except KeyboardInterrupt:
            logger.info("Interrupted")

    if args.report:
        days = args.days if args.days is not None else settings.report_days
        try:
            report = tracker.performance_report(args.report, days=days)
            print()
            print(ReportFormatter.format_report(report, days))
        except (UnknownInstrument, InsufficientData) as e:
            logger.warning("No report for %s: %s", args.report.upper(), e)

    if args.export_path:
        path = save_to_file(tracker, args.export_path)
        logger.info("State exported to %s", path)

    return 0


if __name__ == "__main__":
    sys.exit(main())
