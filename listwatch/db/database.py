"""SQLite database setup and table creation."""

import aiosqlite

DB_PATH = "listwatch.db"


async def get_db(path: str = DB_PATH) -> aiosqlite.Connection:
    db = await aiosqlite.connect(path)
    db.row_factory = aiosqlite.Row
    try:
        await db.execute("PRAGMA journal_mode=WAL")
    except Exception:
        await db.close()
        raise
    return db


async def init_db(path: str = DB_PATH):
    """Create tables if they don't exist."""
    db = await get_db(path)
    try:
        await db.executescript("""
            CREATE TABLE IF NOT EXISTS snapshots (
                list_type TEXT PRIMARY KEY,
                captured_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS snapshot_entities (
                list_type TEXT NOT NULL,
                rank INTEGER NOT NULL,
                key TEXT NOT NULL,
                display_name TEXT NOT NULL,
                PRIMARY KEY (list_type, rank),
                UNIQUE (list_type, key)
            );

            CREATE INDEX IF NOT EXISTS idx_entities_list ON snapshot_entities(list_type);
        """)
        await db.commit()
    finally:
        await db.close()
