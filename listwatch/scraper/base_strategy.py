"""Abstract base for ranked-list sources.

Each hosting layout gets its own concrete source class implementing the
two calls a snapshot needs: the ordered key list (authoritative for
membership and rank) and per-key metadata (display attributes only).
"""

from abc import ABC, abstractmethod
from typing import Any, List

from listwatch.errors import SourceUnavailable
from listwatch.models.schemas import EntityMetadata

DEFAULT_NAME_FIELDS = ["game", "name"]


class BaseListSource(ABC):
    """Abstract base class for all list sources."""

    def __init__(self, config: dict):
        self.config = config
        self.source_name = config.get("source", "unknown")

    @abstractmethod
    async def get_ordered_keys(self, list_type: str) -> List[str]:
        """Return the list's keys in rank order.

        Raises SourceUnavailable on any fetch or parse failure.
        """
        ...

    @abstractmethod
    async def get_entity_metadata(self, list_type: str, key: str) -> EntityMetadata:
        """Return display metadata for one key.

        Raises MetadataUnavailable; never affects get_ordered_keys.
        """
        ...

    async def aclose(self):
        """Release any held connections."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    def get_name_fields(self) -> List[str]:
        """Metadata fields tried, in order, for the display name."""
        return self.config.get("name_fields", DEFAULT_NAME_FIELDS)

    def get_rate_limit(self) -> float:
        """Get the pause between metadata requests in seconds."""
        return self.config.get("rate_limit_seconds", 0.0)

    def get_headers(self) -> dict:
        """Get request headers from config."""
        return self.config.get("request_headers", {})


def parse_key_list(payload: Any, list_type: str) -> List[str]:
    """Validate a decoded ``_list.json`` payload into a list of unique keys."""
    if not isinstance(payload, list):
        raise SourceUnavailable(
            f"Expected a JSON array for {list_type} list, got {type(payload).__name__}",
            list_type,
        )

    keys = []
    seen = set()
    for position, item in enumerate(payload, start=1):
        if not isinstance(item, str) or not item:
            raise SourceUnavailable(
                f"Entry #{position} of {list_type} list is not a non-empty string: {item!r}",
                list_type,
            )
        if item in seen:
            raise SourceUnavailable(f"Duplicate key '{item}' in {list_type} list", list_type)
        seen.add(item)
        keys.append(item)
    return keys
