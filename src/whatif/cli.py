#!/usr/bin/env python3
"""Command-line interface for the what-if backtester."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from whatif.exceptions import ErrorKind, WhatIfError

# Exit codes by error category: caller input, data insufficiency, upstream
EXIT_CODES = {
    ErrorKind.CONFIG: 1,
    ErrorKind.VALIDATION: 2,
    ErrorKind.INVALID_DATE: 2,
    ErrorKind.NO_DATA: 3,
    ErrorKind.INSUFFICIENT_DATA_AFTER_SNAP: 3,
    ErrorKind.PROVIDER_UNAVAILABLE: 4,
}


def configure_logging(level: str) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def report_error(err: WhatIfError, verbose: bool = False) -> int:
    """Print a backtester error and return its exit code."""
    print(f"Error [{err.kind.value}]: {err}")
    if verbose and err.detail:
        print(f"   Detail: {err.detail}")
    return EXIT_CODES.get(err.kind, 1)


def cmd_backtest(args: argparse.Namespace) -> int:
    """Run a lump-sum backtest and print the result."""
    from pydantic import ValidationError

    from whatif.config import build_provider, load_settings
    from whatif.service import BacktestService
    from whatif.types import BacktestRequest

    try:
        settings = load_settings(args.config)
        configure_logging(args.log_level or settings.log_level)
        request = BacktestRequest(
            ticker=args.ticker,
            amount=args.amount,
            start_date=args.start,
            end_date=args.end,
            cadence=args.cadence,
            fee_bps=args.fee_bps,
        )
        service = BacktestService(build_provider(settings))
        result = asyncio.run(service.run(request))
    except ValidationError as e:
        print(f"Invalid request: {e}")
        return EXIT_CODES[ErrorKind.VALIDATION]
    except WhatIfError as e:
        return report_error(e, args.verbose)

    if args.json:
        print(json.dumps(result.to_payload(), indent=2))
        return 0

    assumptions = result.assumptions
    print("=" * 60)
    print("BACKTEST")
    print("=" * 60)
    print(f"Ticker:      {request.ticker}")
    print(f"Cadence:     {request.cadence.value}")
    print(f"Requested:   {request.start_date} to {request.end_date}")
    print(
        f"Effective:   {assumptions.effective_start_date} to "
        f"{assumptions.effective_end_date} ({assumptions.snap_policy})"
    )
    print(f"Amount:      ${request.amount:,.2f}")
    print(f"Fees:        {assumptions.fees_bps} bps")
    print(f"Source:      {assumptions.source}")

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"Shares:          {result.shares:,.6f}")
    print(f"Final Value:     ${result.final_value:,.2f}")
    print(f"Total Return:    {result.total_return_pct:+.2%}")
    print(f"CAGR:            {result.cagr:+.2%}")

    if args.show_series:
        print(f"\n📈 Portfolio value ({len(result.trajectory)} trading days):")
        for point in result.trajectory:
            print(f"   {point.date} | ${point.value:,.2f}")

    return 0


def cmd_series(args: argparse.Namespace) -> int:
    """Fetch and print the trading-day-aligned adjusted-close series."""
    from whatif.config import build_provider, load_settings

    try:
        settings = load_settings(args.config)
        configure_logging(args.log_level or settings.log_level)
        provider = build_provider(settings)
        series = asyncio.run(
            provider.get_adjusted_series(args.ticker.strip().upper(), args.start, args.end)
        )
    except WhatIfError as e:
        return report_error(e, args.verbose)

    print("=" * 60)
    print(f"SERIES: {series.ticker}")
    print("=" * 60)
    print(f"Requested:   {args.start} to {args.end}")
    print(f"Effective:   {series.effective_start} to {series.effective_end}")
    print(f"Points:      {len(series)}")
    print()
    for point in series.points:
        print(f"   {point.date} | {point.adj_close:,.4f}")

    return 0


def _add_common_arguments(parser: argparse.ArgumentParser, default: object = None) -> None:
    parser.add_argument("-c", "--config", default=default, help="Path to YAML configuration file")
    parser.add_argument("--log-level", default=default, help="Override the configured log level")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False if default is None else default,
        help="Show diagnostic error detail",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="What-if lump-sum backtester CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common_arguments(parser)

    # Same options after the subcommand; SUPPRESS keeps values given before it
    common = argparse.ArgumentParser(add_help=False)
    _add_common_arguments(common, default=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Backtest command
    backtest_parser = subparsers.add_parser(
        "backtest", parents=[common], help="Run a lump-sum backtest"
    )
    backtest_parser.add_argument("ticker", help="Stock symbol (e.g., TSLA)")
    backtest_parser.add_argument(
        "-a", "--amount", type=float, required=True, help="Amount invested"
    )
    backtest_parser.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    backtest_parser.add_argument("--end", required=True, help="End date (YYYY-MM-DD)")
    backtest_parser.add_argument(
        "--fee-bps", type=int, default=0, help="Purchase fee in basis points (default: 0)"
    )
    backtest_parser.add_argument(
        "--cadence",
        default="lump_sum",
        choices=["lump_sum"],
        help="Contribution cadence (default: lump_sum)",
    )
    backtest_parser.add_argument(
        "--json", action="store_true", help="Print the result as JSON"
    )
    backtest_parser.add_argument(
        "--show-series", action="store_true", help="Show the portfolio value per day"
    )

    # Series command
    series_parser = subparsers.add_parser(
        "series", parents=[common], help="Show the trading-day-aligned price series"
    )
    series_parser.add_argument("ticker", help="Stock symbol (e.g., TSLA)")
    series_parser.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    series_parser.add_argument("--end", required=True, help="End date (YYYY-MM-DD)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "backtest":
        return cmd_backtest(args)
    elif args.command == "series":
        return cmd_series(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
