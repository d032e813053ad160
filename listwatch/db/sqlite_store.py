"""SQLite-backed snapshot store.

A list's rows are replaced inside a single transaction, so an interrupted
save leaves the previous snapshot intact.
"""

import sqlite3
import logging
from typing import Optional

import aiosqlite
from pydantic import ValidationError

from listwatch.db.database import DB_PATH, get_db, init_db
from listwatch.db.snapshot_store import BaseSnapshotStore
from listwatch.errors import SnapshotCorruptError, StoreError
from listwatch.models.schemas import Entity, Snapshot

logger = logging.getLogger(__name__)


class SqliteSnapshotStore(BaseSnapshotStore):
    def __init__(self, path: str = DB_PATH):
        self.path = path
        self._initialized = False

    async def _connect(self, list_type: str) -> aiosqlite.Connection:
        try:
            if not self._initialized:
                await init_db(self.path)
                self._initialized = True
            return await get_db(self.path)
        except sqlite3.OperationalError as e:
            raise StoreError(f"Cannot open {self.path}: {e}", list_type) from e
        except sqlite3.DatabaseError as e:
            raise SnapshotCorruptError(f"Unreadable database {self.path}: {e}", list_type) from e

    async def load(self, list_type: str) -> Optional[Snapshot]:
        db = await self._connect(list_type)
        try:
            cursor = await db.execute(
                "SELECT captured_at FROM snapshots WHERE list_type = ?",
                (list_type,),
            )
            header = await cursor.fetchone()
            if not header:
                return None

            cursor = await db.execute(
                """SELECT rank, key, display_name FROM snapshot_entities
                   WHERE list_type = ? ORDER BY rank""",
                (list_type,),
            )
            rows = await cursor.fetchall()
        except sqlite3.OperationalError as e:
            raise StoreError(f"Cannot load {list_type} snapshot: {e}", list_type) from e
        except sqlite3.DatabaseError as e:
            raise SnapshotCorruptError(f"Unreadable {list_type} snapshot: {e}", list_type) from e
        finally:
            await db.close()

        try:
            return Snapshot(
                list_type=list_type,
                captured_at=header["captured_at"],
                entities=tuple(
                    Entity(key=r["key"], rank=r["rank"], display_name=r["display_name"])
                    for r in rows
                ),
            )
        except ValidationError as e:
            raise SnapshotCorruptError(f"Malformed {list_type} snapshot in {self.path}: {e}", list_type) from e

    async def save(self, list_type: str, snapshot: Snapshot) -> None:
        db = await self._connect(list_type)
        try:
            await db.execute("DELETE FROM snapshot_entities WHERE list_type = ?", (list_type,))
            await db.execute(
                "INSERT OR REPLACE INTO snapshots (list_type, captured_at) VALUES (?, ?)",
                (list_type, snapshot.captured_at.isoformat()),
            )
            await db.executemany(
                """INSERT INTO snapshot_entities (list_type, rank, key, display_name)
                   VALUES (?, ?, ?, ?)""",
                [(list_type, e.rank, e.key, e.display_name) for e in snapshot.entities],
            )
            await db.commit()
        except sqlite3.Error as e:
            await db.rollback()
            raise StoreError(f"Cannot save {list_type} snapshot: {e}", list_type) from e
        finally:
            await db.close()

        logger.info("Saved %s snapshot (%d entries) to %s", list_type, len(snapshot), self.path)
