"""In-process cache store.

Entries live in an OrderedDict kept in least-recently-used order. A
threading.Lock makes each operation atomic, so the store can be shared by
coroutines and worker threads alike. The lock is only held for dict
operations, never across an await.

Expired entries are dropped lazily on lookup and eagerly by ``sweep()``,
which ``start()`` runs periodically in a background task.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from blockcache.cache.store import MISS, CacheEntry, CacheLookup, CacheStore, check_ttl
from blockcache.core.request import RenderedValue

logger = logging.getLogger(__name__)

EvictionPolicy = Literal["none", "lru"]


@dataclass
class MemoryStoreStats:
    """Snapshot of memory store counters."""

    entries: int
    bytes: int
    evictions: int
    expirations: int


class MemoryCacheStore(CacheStore):
    """TTL cache with an optional LRU bound on entries or bytes.

    With ``eviction_policy="none"`` only TTL removes entries and the bounds
    are ignored.
    """

    backend_name = "memory"

    def __init__(
        self,
        *,
        max_entries: int | None = None,
        max_bytes: int | None = None,
        eviction_policy: EvictionPolicy = "none",
        sweep_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if eviction_policy not in ("none", "lru"):
            raise ValueError(f"Unsupported eviction policy: {eviction_policy}")

        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self.eviction_policy = eviction_policy
        self.sweep_interval = sweep_interval
        self._clock = clock

        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._bytes = 0
        self._lock = threading.Lock()
        self._evictions = 0
        self._expirations = 0

        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def bounded(self) -> bool:
        return self.eviction_policy == "lru" and (
            self.max_entries is not None or self.max_bytes is not None
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # -------------------------------------------------------------------------
    # CacheStore operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> CacheLookup:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISS

            if entry.is_expired(self._clock()):
                self._remove(key)
                self._expirations += 1
                return MISS

            self._entries.move_to_end(key)
            return CacheLookup(entry.value, True)

    async def put(self, key: str, value: RenderedValue, ttl: float) -> None:
        check_ttl(ttl)
        entry = CacheEntry(key=key, value=value, created_at=self._clock(), ttl=ttl)

        if self.bounded and self.max_bytes is not None and entry.size > self.max_bytes:
            logger.debug(f"Not caching {key}: {entry.size} bytes exceeds max_bytes")
            with self._lock:
                self._remove(key)
            return

        with self._lock:
            self._remove(key)
            self._entries[key] = entry
            self._bytes += entry.size
            if self.bounded:
                self._enforce_bounds()

    async def delete_by_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]

        deleted = 0
        for key in keys:
            # One atomic delete per key; a concurrent put may land in between
            with self._lock:
                if self._remove(key) is not None:
                    deleted += 1

        return deleted

    async def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._bytes = 0
        return count

    async def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                self._remove(key)
            self._expirations += len(expired)

        if expired:
            logger.debug(f"Swept {len(expired)} expired cache entries")
        return len(expired)

    # -------------------------------------------------------------------------
    # Background sweeper
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic sweep task if a sweep interval is configured."""
        if self._running or not self.sweep_interval:
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop(self.sweep_interval))
        logger.info(f"Started memory cache sweeper (every {self.sweep_interval}s)")

    async def close(self) -> None:
        """Stop the sweep task."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _sweep_loop(self, interval: float) -> None:
        while self._running:
            try:
                await asyncio.sleep(interval)
                await self.sweep()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in cache sweeper")

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def stats(self) -> MemoryStoreStats:
        with self._lock:
            return MemoryStoreStats(
                entries=len(self._entries),
                bytes=self._bytes,
                evictions=self._evictions,
                expirations=self._expirations,
            )

    # -------------------------------------------------------------------------
    # Internals, called with the lock held
    # -------------------------------------------------------------------------

    def _remove(self, key: str) -> CacheEntry | None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            self._bytes -= entry.size
        return entry

    def _over_bounds(self) -> bool:
        if self.max_entries is not None and len(self._entries) > self.max_entries:
            return True
        return self.max_bytes is not None and self._bytes > self.max_bytes

    def _enforce_bounds(self) -> None:
        if not self._over_bounds():
            return

        # Expired entries go first, then least recently used
        now = self._clock()
        for key in [k for k, e in self._entries.items() if e.is_expired(now)]:
            self._remove(key)
            self._expirations += 1

        while self._over_bounds():
            key, entry = self._entries.popitem(last=False)
            self._bytes -= entry.size
            self._evictions += 1
