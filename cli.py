"""
Stockwatch CLI - technical indicators from the command line.

Usage:
    python -m cli indicators SYMBOL [--source demo|yahoo] [--days N] [--format markdown|json]
    python -m cli watchlist [list | add SYMBOL [--name NAME] | remove SYMBOL]
    python -m cli settings [show | set KEY=VALUE ...]
"""

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from adapters import DemoHistoryAdapter, YahooHistoryAdapter
from config import ConfigError, StockwatchConfig, get_config, load_config
from domain import prices_of, sort_chronologically
from ports import EngineError, PriceHistorySource
from presentation.report import ReportData, generate_markdown_report, report_to_dict
from services import IndicatorDispatcher, PreferencesStore

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s: %(message)s",
    )


def _history_source(name: str, config: StockwatchConfig) -> PriceHistorySource:
    if name == "yahoo":
        return YahooHistoryAdapter(sma_period=config.indicators.sma_period)
    return DemoHistoryAdapter(seed=config.demo.seed, volatility=config.demo.volatility)


def _preferences(config: StockwatchConfig) -> PreferencesStore:
    store = PreferencesStore(config.preferences.path)
    store.load()
    return store


async def build_report(
    symbol: str,
    source: PriceHistorySource,
    dispatcher: IndicatorDispatcher,
    config: StockwatchConfig,
    days: int,
) -> ReportData:
    """Fetch history and quote for ``symbol`` and compute its indicator summary."""
    points = sort_chronologically(source.get_history(symbol, days=days))
    prices = prices_of(points)
    thresholds = config.indicators.to_thresholds()

    current_price = prices[-1] if prices else 0.0
    sma_value = points[-1].sma if points else None

    summary = await dispatcher.calculate_all(
        prices,
        current_price=current_price,
        sma_value=sma_value,
        thresholds=thresholds,
    )
    return ReportData(
        symbol=symbol.upper(),
        summary=summary,
        points=points,
        source=source.source_name,
        quote=source.get_quote(symbol),
        thresholds=thresholds,
    )


def cmd_indicators(args: argparse.Namespace, config: StockwatchConfig) -> int:
    """Show technical indicators for one or more symbols."""
    source = _history_source(args.source, config)
    store = _preferences(config)
    days = args.days or config.demo.days

    symbols = args.symbols or store.symbols or config.default_watchlist
    overrides = {"mode": "inline"} if args.inline else {}

    async def run() -> list[ReportData]:
        async with IndicatorDispatcher.from_config(config.dispatcher, **overrides) as dispatcher:
            return list(await asyncio.gather(*(
                build_report(symbol, source, dispatcher, config, days) for symbol in symbols
            )))

    try:
        reports = asyncio.run(run())
    except EngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for report in reports:
        report.currency = store.settings.currency
        report.show_volume = store.settings.show_volume
        report.show_market_cap = store.settings.show_market_cap

    if args.format == "json":
        print(json.dumps([report_to_dict(r) for r in reports], indent=2))
    else:
        print("\n---\n\n".join(generate_markdown_report(r) for r in reports))

    return 0


def cmd_watchlist(args: argparse.Namespace, config: StockwatchConfig) -> int:
    """List or edit the watchlist."""
    store = _preferences(config)

    try:
        if args.action == "add":
            if store.add_to_watchlist(args.symbol, args.name or ""):
                print(f"Added {args.symbol.upper()}")
            else:
                print(f"{args.symbol.upper()} is already on the watchlist")
            return 0
        if args.action == "remove":
            if store.remove_from_watchlist(args.symbol):
                print(f"Removed {args.symbol.upper()}")
                return 0
            print(f"{args.symbol.upper()} is not on the watchlist", file=sys.stderr)
            return 1
    except EngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not store.watchlist:
        print("Watchlist is empty")
    for item in store.watchlist:
        print(f"  {item.symbol:<8} {item.name}  (added {item.added_at:%Y-%m-%d})")
    return 0


def _parse_assignments(pairs: list[str]) -> dict[str, str]:
    changes = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected KEY=VALUE, got '{pair}'")
        changes[key.strip()] = value.strip()
    return changes


def cmd_settings(args: argparse.Namespace, config: StockwatchConfig) -> int:
    """Show or update display settings."""
    store = _preferences(config)

    if args.action == "set":
        try:
            store.update_settings(**_parse_assignments(args.assignments))
        except (ValueError, ValidationError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    for key, value in store.settings.model_dump(mode="json").items():
        print(f"  {key}: {value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="stockwatch",
        description="Stock watching and technical indicators",
    )
    parser.add_argument("-c", "--config", help="Path to a TOML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Indicators command
    indicators_parser = subparsers.add_parser("indicators", help="Show technical indicators")
    indicators_parser.add_argument("symbols", nargs="*", help="Symbols (default: watchlist)")
    indicators_parser.add_argument(
        "-s", "--source",
        choices=["demo", "yahoo"],
        default="demo",
        help="Price history source",
    )
    indicators_parser.add_argument("-d", "--days", type=int, help="Days of history")
    indicators_parser.add_argument(
        "-f", "--format",
        choices=["markdown", "json"],
        default="markdown",
        help="Output format",
    )
    indicators_parser.add_argument(
        "--inline", action="store_true", help="Compute on the main thread",
    )
    indicators_parser.set_defaults(func=cmd_indicators)

    # Watchlist command
    watchlist_parser = subparsers.add_parser("watchlist", help="Manage the watchlist")
    watchlist_sub = watchlist_parser.add_subparsers(dest="action")
    watchlist_sub.add_parser("list", help="Show tracked symbols")
    add_parser = watchlist_sub.add_parser("add", help="Track a symbol")
    add_parser.add_argument("symbol")
    add_parser.add_argument("-n", "--name", help="Display name")
    remove_parser = watchlist_sub.add_parser("remove", help="Stop tracking a symbol")
    remove_parser.add_argument("symbol")
    watchlist_parser.set_defaults(func=cmd_watchlist, action="list")

    # Settings command
    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_sub = settings_parser.add_subparsers(dest="action")
    settings_sub.add_parser("show", help="Print current settings")
    set_parser = settings_sub.add_parser("set", help="Update settings")
    set_parser.add_argument("assignments", nargs="+", metavar="KEY=VALUE")
    settings_parser.set_defaults(func=cmd_settings, action="show")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else get_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    _configure_logging("DEBUG" if args.verbose else config.logging.level)
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
