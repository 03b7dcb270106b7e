"""Command-line interface for the liquidation bot."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import load_config
from .logging_setup import configure_logging
from .services import LiquidationBot


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="comet-liquidator",
        description="Liquidation and collateral arbitrage bot for lending markets",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Simulate transactions with eth_call instead of sending them",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("scan", help="Single scan cycle over every market")
    sub.add_parser("arbitrage", help="Only check for purchasable collateral")

    run_parser = sub.add_parser("run", help="Continuous scan loop")
    run_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Seconds between cycles (overrides config)",
    )

    return parser


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config, simulate=args.simulate)
    bot = LiquidationBot(config)

    if args.command == "scan":
        await bot.run_cycle()
    elif args.command == "arbitrage":
        await bot.run_cycle(arbitrage_only=True)
    elif args.command == "run":
        await bot.run_continuous(args.interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))
