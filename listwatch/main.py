"""listwatch: ranked-list change notifier.

Checks every configured list type once against its stored snapshot,
notifies about added, removed and moved entries, then exits. Meant to be
run on a schedule with at most one run active at a time.

Exit status is 0 once every list type has been processed, whatever the
delivery outcome, and 2 when required configuration is missing.
"""

import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional

from dotenv import load_dotenv

from listwatch.config import Settings, load_settings
from listwatch.db.json_store import JsonSnapshotStore
from listwatch.db.snapshot_store import BaseSnapshotStore
from listwatch.db.sqlite_store import SqliteSnapshotStore
from listwatch.errors import ConfigError
from listwatch.models.schemas import ListRunResult
from listwatch.notify.base_notifier import BaseNotifier
from listwatch.notify.discord import DiscordWebhookNotifier
from listwatch.notify.log_notifier import LogNotifier
from listwatch.runner import ListWatcher
from listwatch.scraper.strategy_factory import create_source

logger = logging.getLogger("listwatch")

EXIT_CONFIG_ERROR = 2


def create_store(settings: Settings) -> BaseSnapshotStore:
    if settings.store == "sqlite":
        return SqliteSnapshotStore(settings.db_path)
    return JsonSnapshotStore(settings.state_dir)


def create_notifier(settings: Settings) -> BaseNotifier:
    if settings.dry_run:
        return LogNotifier()
    return DiscordWebhookNotifier(
        settings.webhook_url,
        title_template=settings.embed_title,
        timeout=settings.request_timeout,
        retry_attempts=settings.retry_attempts,
    )


async def run_once(settings: Settings) -> Dict[str, ListRunResult]:
    source = create_source(
        settings.source,
        timeout=settings.request_timeout,
        retry_attempts=settings.retry_attempts,
        configs_dir=settings.configs_dir,
    )
    notifier = create_notifier(settings)
    watcher = ListWatcher(
        source,
        create_store(settings),
        notifier,
        reuse_cached_names=settings.reuse_cached_names,
        metadata_concurrency=settings.metadata_concurrency,
    )
    try:
        async with source:
            return await watcher.run(settings.list_types)
    finally:
        await notifier.aclose()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="listwatch",
        description="Report added, removed and moved entries of ranked lists.",
    )
    parser.add_argument(
        "--list-type", action="append", dest="list_types", metavar="NAME",
        help="List type to check (repeatable; overrides LISTWATCH_LIST_TYPES)",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Log notifications instead of sending them",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_dotenv()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        settings = load_settings(list_types=args.list_types, dry_run=args.dry_run)
        logger.info("Starting list check for: %s", settings.list_types)
        results = asyncio.run(run_once(settings))
    except ConfigError as e:
        logger.error("Configuration error: %s", e.message)
        return EXIT_CONFIG_ERROR

    logger.info("Done: %s", {name: r.status for name, r in results.items()})
    return 0


if __name__ == "__main__":
    sys.exit(main())
