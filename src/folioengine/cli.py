"""CLI entry point for folioengine.

Provides commands for the two engines:
  - position: Compute cost-basis positions from a transactions JSON file
  - backtest: Backtest portfolios against price series JSON files
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

from folioengine.config import load_config
from folioengine.errors import EngineError, ValidationError
from folioengine.models.transaction import normalize_symbol, to_decimal


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_json(path: str):
    try:
        return json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise ValidationError(f"Cannot read {path}: {exc}") from exc


def _parse_prices(values: list[str]) -> dict[str, Decimal]:
    prices: dict[str, Decimal] = {}
    for item in values:
        symbol, sep, price = item.partition("=")
        if not sep:
            raise ValidationError(f"Expected SYMBOL=PRICE, got {item!r}")
        prices[normalize_symbol(symbol)] = to_decimal(price, f"price for {symbol}")
    return prices


def cmd_position(args: argparse.Namespace) -> None:
    """Compute positions and totals from recorded transactions."""
    from folioengine.accounting import (
        CashTransaction,
        aggregate_positions,
        cash_balance,
        compute_positions,
        group_transactions_by_symbol,
    )
    from folioengine.backtesting.tearsheet import position_to_dict, totals_to_dict

    config = load_config()
    grouped = group_transactions_by_symbol(_load_json(args.transactions))
    snapshots = compute_positions(
        grouped, _parse_prices(args.price), oversell=config.oversell_policy
    )

    balance = Decimal("0")
    if args.cash:
        balance = cash_balance(CashTransaction.from_dict(c) for c in _load_json(args.cash))

    output = {
        "positions": {symbol: position_to_dict(s) for symbol, s in sorted(snapshots.items())},
        "totals": totals_to_dict(aggregate_positions(snapshots, balance)),
    }
    print(json.dumps(output, indent=2))


def _load_price_files(paths: list[str]) -> dict:
    from folioengine.data.chart_payload import parse_chart_payload
    from folioengine.models.prices import PriceSeries

    series = {}
    for path in paths:
        data = _load_json(path)
        for symbol, raw in data.items():
            symbol = normalize_symbol(symbol)
            if "chart" in raw or "timestamp" in raw:
                series[symbol] = parse_chart_payload(symbol, raw)
            else:
                series[symbol] = PriceSeries.from_dict(symbol, raw)
    return series


def cmd_backtest(args: argparse.Namespace) -> None:
    """Backtest portfolios and print the tearsheet."""
    from folioengine.backtesting import generate_tearsheet, run_backtest
    from folioengine.models.backtest import BacktestConfig

    engine_config = load_config()
    bt_config = BacktestConfig(
        start_date=args.start,
        end_date=args.end,
        initial_value=args.initial,
        reinvest_dividends=not args.no_reinvest,
    )
    result = run_backtest(
        _load_json(args.portfolios),
        _load_price_files(args.prices),
        bt_config,
        engine_config,
    )
    sheet = generate_tearsheet(result)
    if not args.series:
        for portfolio in sheet["portfolios"]:
            portfolio.pop("portfolioValue")
    print(json.dumps(sheet, indent=2))


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="folioengine",
        description="Cost-basis accounting and portfolio backtesting",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subs = parser.add_subparsers(dest="command", required=True)

    # position
    p_position = subs.add_parser("position", help="Compute positions from transactions")
    p_position.add_argument("transactions", help="JSON file with a list of transactions")
    p_position.add_argument("--price", action="append", default=[], metavar="SYMBOL=PRICE",
                            help="Current price for a symbol (repeatable)")
    p_position.add_argument("--cash", help="JSON file with cash ledger entries")

    # backtest
    p_backtest = subs.add_parser("backtest", help="Backtest portfolios against price history")
    p_backtest.add_argument("portfolios", help="JSON file with a list of portfolios")
    p_backtest.add_argument("prices", nargs="+", help="JSON files mapping symbol to price series")
    p_backtest.add_argument("--start", type=date.fromisoformat, default=None, help="Start date (YYYY-MM-DD)")
    p_backtest.add_argument("--end", type=date.fromisoformat, default=None, help="End date (YYYY-MM-DD)")
    p_backtest.add_argument("--initial", type=float, default=100_000.0, help="Initial portfolio value")
    p_backtest.add_argument("--no-reinvest", action="store_true", help="Take dividends as cash")
    p_backtest.add_argument("--series", action="store_true", help="Include the value time series")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    commands = {
        "position": cmd_position,
        "backtest": cmd_backtest,
    }
    try:
        commands[args.command](args)
    except EngineError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
