"""Command line entry point: run one ingestion batch and exit.

Usage
-----
Set environment variables and run::

    export FIREBASE_DB_URL="https://<project>.firebasedatabase.app"
    export FIREBASE_AUTH_TOKEN="..."
    roadfeed --sources pbs,tdx_news

Exit status is 0 after a completed run (even when some sources failed) and
1 on a configuration or store failure.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from collections.abc import Sequence
from typing import Any

from roadfeed import __version__
from roadfeed.config import FeedConfig
from roadfeed.exceptions import FeedConfigError, FeedStoreError
from roadfeed.runner import run_from_config

_logger = logging.getLogger("roadfeed")

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="roadfeed",
        description="Fetch road events from upstream feeds, normalize them and sync the event store.",
    )
    parser.add_argument("--dry-run", action="store_true", default=None, help="Run the pipeline without store writes")
    parser.add_argument("--sources", help="Comma separated sources (pbs, tdx_news, tdx_event)")
    parser.add_argument("--ttl", type=float, help="Event time-to-live in seconds")
    parser.add_argument("--concurrency", type=int, help="Maximum in-flight upstream fetches")
    parser.add_argument("--events-path", help="Store path for normalized events")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.dry_run:
        overrides["dry_run"] = True
    if args.sources is not None:
        overrides["sources"] = args.sources
    if args.ttl is not None:
        overrides["ttl"] = args.ttl
    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    if args.events_path is not None:
        overrides["events_path"] = args.events_path
    return overrides


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else os.environ.get("FEED_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = FeedConfig.from_env(**_overrides(args)).validate()
    except FeedConfigError as exc:
        _logger.error("Configuration error: %s", exc)
        return EXIT_FAILURE

    try:
        asyncio.run(run_from_config(config))
    except FeedStoreError as exc:
        _logger.error("Store failure, run aborted: %s", exc, exc_info=exc)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
