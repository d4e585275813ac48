from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from cardindex.app import (
    build_catalog,
    build_universe,
    serve_edge,
    snapshot_prices,
    verify_catalog,
)
from cardindex.config import ConfigurationError, configure_logging
from cardindex.config.reconciliation import EngineConfig, VerifyConfig
from cardindex.domain.prices import DEFAULT_RETAIN_DAYS
from cardindex.edge import DEFAULT_CACHE_SECONDS

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_depth(value: str) -> int | None:
    text = value.strip().lower()
    if text in {"none", "unbounded"}:
        return None
    try:
        return int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid depth: {value}") from exc


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build and serve the card index")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("universe", help="Fetch the species universe from PokeAPI")

    build = subparsers.add_parser("build", help="Fetch, reconcile and persist all buckets")
    build.add_argument(
        "--concurrency",
        type=int,
        default=EngineConfig().broad_concurrency,
        help="Broad ranges fetched in parallel (default: %(default)s)",
    )
    build.add_argument(
        "--min-span",
        type=int,
        default=EngineConfig().min_span,
        help="Smallest range width that is still subdivided (default: %(default)s)",
    )
    build.add_argument(
        "--max-depth",
        type=_parse_depth,
        default=EngineConfig().max_depth,
        help="Maximum subdivision depth, or 'none' for no limit (default: %(default)s)",
    )

    verify = subparsers.add_parser("verify", help="Compare saved buckets with live counts")
    verify.add_argument(
        "--max-checks",
        type=int,
        default=VerifyConfig().max_checks,
        help="Maximum number of species to check (default: %(default)s)",
    )
    verify.add_argument(
        "--concurrency",
        type=int,
        default=VerifyConfig().concurrency,
        help="Species checked in parallel (default: %(default)s)",
    )

    prices = subparsers.add_parser("prices", help="Append today's price snapshot")
    prices.add_argument(
        "--date",
        type=str,
        help="Snapshot date as YYYY-MM-DD (defaults to today, UTC)",
    )
    prices.add_argument(
        "--retain-days",
        type=int,
        default=DEFAULT_RETAIN_DAYS,
        help="Days of history to keep (default: %(default)s)",
    )

    serve = subparsers.add_parser("serve", help="Serve the artifact tree over HTTP")
    serve.add_argument("--host", type=str, default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8787)
    serve.add_argument(
        "--cache-seconds",
        type=int,
        default=DEFAULT_CACHE_SECONDS,
        help="max-age sent with every artifact (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if args.command == "build":
        EngineConfig(
            broad_concurrency=args.concurrency,
            min_span=args.min_span,
            max_depth=args.max_depth,
        )
    elif args.command == "verify":
        VerifyConfig(max_checks=args.max_checks, concurrency=args.concurrency)
    elif args.command == "prices":
        if args.date:
            _parse_date(args.date)
        if args.retain_days < 1:
            raise ValueError("--retain-days must be positive")


def _run(args: argparse.Namespace) -> None:
    if args.command == "universe":
        build_universe()
    elif args.command == "build":
        result = build_catalog(
            engine_config=EngineConfig(
                broad_concurrency=args.concurrency,
                min_span=args.min_span,
                max_depth=args.max_depth,
            )
        )
        stats = result.reconciliation.stats
        log.info(
            "Build finished: ranges=%s, subdivided=%s, fallbacks=%s, backfilled=%s, failures=%s",
            stats.ranges_fetched,
            stats.subdivided,
            stats.fallback_ranges,
            stats.backfilled,
            len(stats.failures),
        )
    elif args.command == "verify":
        verify_catalog(
            verify_config=VerifyConfig(max_checks=args.max_checks, concurrency=args.concurrency)
        )
    elif args.command == "prices":
        snapshot_prices(
            today=_parse_date(args.date) if args.date else None,
            retain_days=args.retain_days,
        )
    elif args.command == "serve":
        serve_edge(host=args.host, port=args.port, cache_seconds=args.cache_seconds)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()
