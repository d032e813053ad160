"""Builds a Snapshot from a list source.

Membership and rank come only from the ordered key list. Metadata is
fetched per key and may fail one key at a time: a failed key keeps its
place in the snapshot and shows its key as its name.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from listwatch.errors import MetadataUnavailable
from listwatch.models.schemas import Snapshot, utc_now
from listwatch.pipeline.normalizer import normalize_display_name
from listwatch.scraper.base_strategy import BaseListSource

logger = logging.getLogger(__name__)


async def fetch_display_name(source: BaseListSource, list_type: str, key: str) -> str:
    """Fetch one key's display name, degrading to the key on failure."""
    try:
        metadata = await source.get_entity_metadata(list_type, key)
    except MetadataUnavailable as e:
        logger.warning("Couldn't fetch %s/%s: %s", list_type, key, e.message)
        return key
    except Exception as e:
        logger.error("Unexpected error fetching %s/%s, using key as name: %s", list_type, key, e, exc_info=True)
        return key
    return normalize_display_name(metadata.display_name, key)


async def build_snapshot(
    source: BaseListSource,
    list_type: str,
    previous: Optional[Snapshot] = None,
    reuse_cached_names: bool = False,
    concurrency: int = 1,
) -> Snapshot:
    """Capture the current state of ``list_type``.

    Args:
        source: Where keys and metadata come from.
        list_type: Which list to capture.
        previous: Last stored snapshot, only consulted when reusing names.
        reuse_cached_names: Skip metadata requests for keys already named
            in ``previous``. Renames are not picked up while enabled.
        concurrency: Maximum metadata requests in flight at once.

    Raises:
        SourceUnavailable: The ordered key list could not be fetched.
    """
    captured_at = utc_now()
    keys = await source.get_ordered_keys(list_type)

    cached: Dict[str, str] = {}
    if reuse_cached_names and previous is not None:
        cached = {e.key: e.display_name for e in previous.entities}

    to_fetch = [k for k in keys if k not in cached]
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def bounded(key: str) -> str:
        async with semaphore:
            return await fetch_display_name(source, list_type, key)

    fetched: List[str] = await asyncio.gather(*(bounded(k) for k in to_fetch))

    names = dict(cached)
    names.update(zip(to_fetch, fetched))
    logger.info(
        "%s: built snapshot of %d entries (%d names fetched, %d reused)",
        list_type, len(keys), len(to_fetch), len(keys) - len(to_fetch),
    )
    return Snapshot.from_keys(list_type, keys, names, captured_at=captured_at)
