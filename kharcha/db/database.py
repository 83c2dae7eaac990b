import json
import logging
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from kharcha.config import settings

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS collections (
    key TEXT PRIMARY KEY,
    payload TEXT NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
"""

_db: aiosqlite.Connection | None = None


async def get_db() -> aiosqlite.Connection:
    global _db
    if _db is None:
        _db = await aiosqlite.connect(settings.db_path)
        _db.row_factory = aiosqlite.Row
        await _db.execute("PRAGMA journal_mode=WAL")
    return _db


async def close_db():
    global _db
    if _db is not None:
        await _db.close()
        _db = None


async def init_db():
    db = await get_db()
    await db.executescript(SCHEMA)
    await db.commit()


async def load(key: str) -> Any | None:
    """Return the stored collection for key, or None when absent or unreadable."""
    db = await get_db()
    cursor = await db.execute("SELECT payload FROM collections WHERE key = ?", (key,))
    row = await cursor.fetchone()
    if not row:
        return None
    try:
        return json.loads(row["payload"])
    except (json.JSONDecodeError, TypeError):
        logger.warning("Malformed payload for %s, treating as empty", key)
        return None


async def save(key: str, collection: Any, commit: bool = True) -> None:
    db = await get_db()
    await db.execute(
        "INSERT OR REPLACE INTO collections (key, payload, updated_at) VALUES (?, ?, ?)",
        (key, json.dumps(collection, ensure_ascii=False), datetime.now(UTC).isoformat()),
    )
    if commit:
        await db.commit()
