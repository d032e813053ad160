"""Local data-directory list source.

Same layout as the published site, read from a checkout of the list's
data repository instead of over HTTP.
"""

import json
import logging
from pathlib import Path
from typing import Any, List

from listwatch.errors import MetadataUnavailable, SourceUnavailable
from listwatch.models.schemas import EntityMetadata
from listwatch.pipeline.normalizer import pick_display_name
from listwatch.scraper.base_strategy import BaseListSource, parse_key_list

logger = logging.getLogger(__name__)


class DirectoryListSource(BaseListSource):
    """Concrete source for a ``data/`` directory on disk."""

    def __init__(self, config: dict):
        super().__init__(config)
        self.data_dir = Path(config.get("data_dir", "data")).resolve()

    def _read_json(self, path: Path) -> Any:
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    async def get_ordered_keys(self, list_type: str) -> List[str]:
        path = self.data_dir / list_type / "_list.json"
        logger.info("Reading %s list: %s", list_type, path)
        try:
            payload = self._read_json(path)
        except OSError as e:
            raise SourceUnavailable(f"Cannot read {path}: {e}", list_type) from e
        except ValueError as e:
            raise SourceUnavailable(f"Invalid JSON in {path}: {e}", list_type) from e
        return parse_key_list(payload, list_type)

    async def get_entity_metadata(self, list_type: str, key: str) -> EntityMetadata:
        list_dir = self.data_dir / list_type
        try:
            path = (list_dir / f"{key}.json").resolve()
        except (OSError, ValueError) as e:
            raise MetadataUnavailable(f"Cannot resolve a path for key {key!r}: {e}", list_type, key) from e
        if not path.is_relative_to(list_dir.resolve()):
            raise MetadataUnavailable(f"Key '{key}' escapes {list_dir}", list_type, key)

        try:
            document = self._read_json(path)
        except OSError as e:
            raise MetadataUnavailable(f"Cannot read {path}: {e}", list_type, key) from e
        except ValueError as e:
            raise MetadataUnavailable(f"Invalid JSON in {path}: {e}", list_type, key) from e

        return EntityMetadata(display_name=pick_display_name(document, self.get_name_fields()))
