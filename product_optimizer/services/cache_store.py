"""
Durable key-value tier for the task cache.

``CacheStore`` is the interface the task cache depends on. The shipped
implementation keeps entries in a single SQLite table; blocking sqlite3 calls
run in a worker thread so the event loop is never blocked.
"""

import asyncio
import json
import sqlite3
import threading
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from product_optimizer.config import get_service_logger, get_settings
from product_optimizer.core.exceptions import CacheStoreException
from product_optimizer.models import CacheEntry


logger = get_service_logger(__name__)
settings = get_settings()


SCHEMA = {
    "task_cache": """
        CREATE TABLE IF NOT EXISTS task_cache (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            stored_at REAL NOT NULL,
            source TEXT NOT NULL
        );
    """,
}

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_task_cache_stored_at ON task_cache(stored_at);",
]


@runtime_checkable
class CacheStore(Protocol):
    async def get(self, key: str) -> Optional[CacheEntry]: ...

    async def set(self, key: str, entry: CacheEntry) -> None: ...

    async def delete(self, key: str) -> None: ...


class SqliteCacheStore:
    """SQLite-backed durable cache tier."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path or settings.cache_db_path
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()
        logger.info("SQLite cache store ready", db_path=self.db_path)

    def _ensure_schema(self) -> None:
        with self._lock:
            for ddl in SCHEMA.values():
                self.conn.execute(ddl)
            for idx in INDEXES:
                self.conn.execute(idx)
            self.conn.commit()

    async def get(self, key: str) -> Optional[CacheEntry]:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, entry: CacheEntry) -> None:
        await asyncio.to_thread(self._set, key, entry)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    def _get(self, key: str) -> Optional[CacheEntry]:
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT value, stored_at, source FROM task_cache WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as e:
            raise CacheStoreException(f"Failed to read cache entry: {e}", key)
        if row is None:
            return None
        value, stored_at, source = row
        try:
            return CacheEntry(
                key=key, value=json.loads(value), stored_at=stored_at, source=source
            )
        except (TypeError, ValueError) as e:
            raise CacheStoreException(f"Corrupt cache entry: {e}", key)

    def _set(self, key: str, entry: CacheEntry) -> None:
        try:
            payload = json.dumps(entry.value, ensure_ascii=False)
            with self._lock:
                self.conn.execute(
                    """
                    INSERT INTO task_cache (key, value, stored_at, source)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        stored_at = excluded.stored_at,
                        source = excluded.source
                    """,
                    (key, payload, entry.stored_at, entry.source),
                )
                self.conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise CacheStoreException(f"Failed to write cache entry: {e}", key)

    def _delete(self, key: str) -> None:
        try:
            with self._lock:
                self.conn.execute("DELETE FROM task_cache WHERE key = ?", (key,))
                self.conn.commit()
        except sqlite3.Error as e:
            raise CacheStoreException(f"Failed to delete cache entry: {e}", key)

    def close(self) -> None:
        with self._lock:
            self.conn.close()
