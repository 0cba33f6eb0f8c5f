"""
Two-tier task result cache for the Product Page Optimizer.

Tier 1 is an in-process LRU guarded by a thread lock. Tier 2 is an optional
durable CacheStore. Reads fall through tier 1 to tier 2 and promote hits.
Expired entries are removed lazily on read. Durable writes run as background
tasks; their failures are logged and never reach the caller.
"""

import asyncio
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Set

from product_optimizer.config import get_service_logger, get_settings
from product_optimizer.models import CacheEntry
from .cache_store import CacheStore


logger = get_service_logger(__name__)
settings = get_settings()


class TaskCache:
    """
    Explicit cache object injected into the task runner.

    Concurrent writers to the same key are last-write-wins.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.max_size = max_size or settings.cache_memory_size
        self._clock = clock
        self._memory: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._memory_lock = threading.Lock()
        self._pending: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        with self._memory_lock:
            return len(self._memory)

    async def get(self, key: str, ttl_seconds: float) -> Optional[CacheEntry]:
        """
        Look a key up in both tiers.

        Args:
            key: Task fingerprint
            ttl_seconds: Maximum entry age for this task kind

        Returns:
            The live CacheEntry, or None on a miss.
        """
        now = self._clock()

        entry = self._memory_get(key)
        if entry is not None:
            if not entry.is_expired(ttl_seconds, now):
                return entry
            self._memory_delete(key)

        if self.store is None:
            return None

        try:
            entry = await self.store.get(key)
        except Exception as e:
            logger.warning("Durable cache read failed, treating as miss", key=key, error=str(e))
            return None

        if entry is None:
            return None

        if entry.is_expired(ttl_seconds, now):
            logger.debug("Evicting expired durable entry", key=key)
            try:
                await self.store.delete(key)
            except Exception as e:
                logger.warning("Durable cache delete failed", key=key, error=str(e))
            return None

        self._memory_put(entry)
        return entry

    def set(self, key: str, value: Any, source: str = "provider") -> CacheEntry:
        """
        Store a result in both tiers.

        The memory write happens before returning; the durable write is
        scheduled in the background.
        """
        entry = CacheEntry(key=key, value=value, stored_at=self._clock(), source=source)
        self._memory_put(entry)
        if self.store is not None:
            self._schedule_durable_write(entry)
        return entry

    async def flush(self) -> None:
        """Wait for every pending durable write."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def clear_memory(self) -> None:
        with self._memory_lock:
            self._memory.clear()

    def _schedule_durable_write(self, entry: CacheEntry) -> None:
        task = asyncio.create_task(self._durable_write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _durable_write(self, entry: CacheEntry) -> None:
        try:
            await self.store.set(entry.key, entry)
        except Exception as e:
            logger.warning("Durable cache write failed", key=entry.key, error=str(e))

    def _memory_get(self, key: str) -> Optional[CacheEntry]:
        with self._memory_lock:
            entry = self._memory.get(key)
            if entry is not None:
                self._memory.move_to_end(key, last=True)
            return entry

    def _memory_put(self, entry: CacheEntry) -> None:
        with self._memory_lock:
            self._memory[entry.key] = entry
            self._memory.move_to_end(entry.key, last=True)
            if len(self._memory) > self.max_size:
                self._memory.popitem(last=False)

    def _memory_delete(self, key: str) -> None:
        with self._memory_lock:
            self._memory.pop(key, None)
