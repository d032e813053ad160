"""Run orchestration: fetch → diff → format → notify → persist, per list type.

Each list type is processed independently; a failure on one never stops
the others. The current snapshot is saved even when notification fails,
so an undelivered change is not re-diffed into an ever-growing backlog.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

from listwatch.db.snapshot_store import BaseSnapshotStore
from listwatch.errors import DeliveryError, SnapshotCorruptError, SourceUnavailable, StoreError
from listwatch.models.schemas import ListRunResult, Snapshot
from listwatch.notify.base_notifier import BaseNotifier
from listwatch.pipeline.change_detector import build_change_summary, detect_changes
from listwatch.pipeline.formatter import format_changes
from listwatch.pipeline.snapshot_builder import build_snapshot
from listwatch.scraper.base_strategy import BaseListSource

logger = logging.getLogger(__name__)


class ListWatcher:
    """Checks configured lists against their stored snapshots.

    Holds no locks: only one run may use a given store at a time.
    """

    def __init__(
        self,
        source: BaseListSource,
        store: BaseSnapshotStore,
        notifier: BaseNotifier,
        reuse_cached_names: bool = False,
        metadata_concurrency: int = 1,
    ):
        self.source = source
        self.store = store
        self.notifier = notifier
        self.reuse_cached_names = reuse_cached_names
        self.metadata_concurrency = metadata_concurrency

    async def run(self, list_types: Iterable[str]) -> Dict[str, ListRunResult]:
        results = {}
        for list_type in list_types:
            logger.info("Checking %s list...", list_type)
            try:
                results[list_type] = await self.check_list(list_type)
            except Exception as e:
                logger.error("%s: failed: %s", list_type, e, exc_info=True)
                results[list_type] = ListRunResult(list_type=list_type, status="failed", error=str(e))
            else:
                logger.info("%s: %s", list_type, results[list_type].status)
        return results

    async def _load_previous(self, list_type: str) -> Tuple[Optional[Snapshot], Optional[str]]:
        """Load the stored snapshot; any failure degrades to "no previous"."""
        try:
            return await self.store.load(list_type), None
        except SnapshotCorruptError as e:
            logger.error(
                "%s: stored snapshot is corrupt, treating this run as a baseline "
                "(changes since the last good snapshot will not be reported): %s",
                list_type, e.message,
            )
            return None, e.message
        except StoreError as e:
            logger.warning("%s: couldn't load previous snapshot, treating as absent: %s", list_type, e.message)
            return None, e.message

    async def check_list(self, list_type: str) -> ListRunResult:
        previous, load_error = await self._load_previous(list_type)

        try:
            current = await build_snapshot(
                self.source,
                list_type,
                previous=previous,
                reuse_cached_names=self.reuse_cached_names,
                concurrency=self.metadata_concurrency,
            )
        except SourceUnavailable as e:
            logger.error("%s: source unavailable, skipping: %s", list_type, e.message)
            return ListRunResult(list_type=list_type, status="source_failed", error=e.message)

        if previous is None:
            logger.info("No previous snapshot for %s, saving baseline of %d entries.", list_type, len(current))
            result = ListRunResult(
                list_type=list_type, status="baseline", entity_count=len(current), error=load_error,
            )
            return await self._persist(list_type, current, result)

        changes = detect_changes(previous, current)
        summary = build_change_summary(changes, current)
        result = ListRunResult(
            list_type=list_type, status="unchanged", entity_count=len(current), summary=summary,
        )

        if not changes:
            logger.info("No changes for %s.", list_type)
        else:
            logger.info(
                "%s: %d added, %d removed, %d moved",
                list_type, summary.added_count, summary.removed_count, summary.moved_count,
            )
            text = "\n".join(format_changes(changes))
            try:
                await self.notifier.send(list_type, text)
            except DeliveryError as e:
                logger.error("%s: notification via %s failed: %s", list_type, self.notifier.channel_name, e.message)
                result.status = "delivery_failed"
                result.error = e.message
            except Exception as e:
                logger.error(
                    "%s: notifier %s raised unexpectedly: %s",
                    list_type, self.notifier.channel_name, e, exc_info=True,
                )
                result.status = "delivery_failed"
                result.error = str(e)
            else:
                result.notified = True
                result.status = "notified"

        return await self._persist(list_type, current, result)

    async def _persist(
        self,
        list_type: str,
        current: Snapshot,
        result: ListRunResult,
    ) -> ListRunResult:
        try:
            await self.store.save(list_type, current)
        except StoreError as e:
            if result.notified:
                logger.critical(
                    "%s: notification was sent but the snapshot could not be saved; "
                    "the next run will diff against the stale snapshot: %s",
                    list_type, e.message,
                )
            else:
                logger.error("%s: couldn't save snapshot: %s", list_type, e.message)
            result.status = "store_failed"
            result.error = e.message
        return result
