"""File-backed snapshot store: one JSON file per list type.

Files are named ``.cache_<list_type>.json``. Older cache files holding a
bare array of ``{"path", "game"}`` records are still readable; the next
save rewrites them in the current format.
"""

import json
import os
import logging
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from listwatch.errors import SnapshotCorruptError, StoreError
from listwatch.models.schemas import Snapshot
from listwatch.db.snapshot_store import BaseSnapshotStore

logger = logging.getLogger(__name__)

CACHE_PREFIX = ".cache_"


class JsonSnapshotStore(BaseSnapshotStore):
    def __init__(self, state_dir: str = "."):
        self.state_dir = Path(state_dir)

    def path_for(self, list_type: str) -> Path:
        return self.state_dir / f"{CACHE_PREFIX}{list_type}.json"

    async def load(self, list_type: str) -> Optional[Snapshot]:
        path = self.path_for(list_type)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"Cannot read {path}: {e}", list_type) from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise SnapshotCorruptError(f"Invalid JSON in {path}: {e}", list_type) from e

        snapshot = self._parse(data, list_type, path)
        logger.debug("Loaded %s snapshot (%d entries) from %s", list_type, len(snapshot), path)
        return snapshot

    def _parse(self, data: Any, list_type: str, path: Path) -> Snapshot:
        try:
            if isinstance(data, list):
                return self._parse_legacy(data, list_type, path)
            snapshot = Snapshot.model_validate(data)
        except (ValidationError, ValueError, TypeError, KeyError) as e:
            raise SnapshotCorruptError(f"Malformed snapshot in {path}: {e}", list_type) from e

        if snapshot.list_type != list_type:
            raise SnapshotCorruptError(
                f"{path} holds a '{snapshot.list_type}' snapshot, expected '{list_type}'",
                list_type,
            )
        return snapshot

    def _parse_legacy(self, records: list, list_type: str, path: Path) -> Snapshot:
        keys = [r["path"] for r in records]
        names = {r["path"]: r.get("game") or r["path"] for r in records}
        captured_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        logger.info("Read legacy cache format from %s", path)
        return Snapshot.from_keys(list_type, keys, names, captured_at=captured_at)

    async def save(self, list_type: str, snapshot: Snapshot) -> None:
        path = self.path_for(list_type)
        tmp_name = None
        replaced = False
        try:
            payload = json.dumps(snapshot.model_dump(mode="json"), indent=2)
            self.state_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.state_dir,
                prefix=f"{path.name}.", suffix=".tmp", delete=False,
            ) as f:
                tmp_name = f.name
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            replaced = True
        except (OSError, ValueError) as e:
            raise StoreError(f"Cannot write {path}: {e}", list_type) from e
        finally:
            if tmp_name and not replaced and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info("Saved %s snapshot (%d entries) to %s", list_type, len(snapshot), path)
