"""Cache store interface.

A store maps cache keys to rendered values with a per-entry TTL. Stores
never return expired entries, whether or not a sweep has run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import NamedTuple

from blockcache.core.request import RenderedValue


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A stored render result. Replaced wholesale, never mutated."""

    key: str
    value: RenderedValue
    created_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        if isinstance(self.value, str):
            return len(self.value.encode("utf-8"))
        return len(self.value)


class CacheLookup(NamedTuple):
    """Result of ``CacheStore.get``."""

    value: RenderedValue | None
    found: bool


MISS = CacheLookup(None, False)


class CacheStore(ABC):
    """Abstract cache store.

    Implementations raise StoreUnavailableError when their backend cannot
    be reached.
    """

    backend_name = "abstract"

    @abstractmethod
    async def get(self, key: str) -> CacheLookup:
        """Look up a key. Expired entries are reported as absent."""

    @abstractmethod
    async def put(self, key: str, value: RenderedValue, ttl: float) -> None:
        """Insert or replace an entry; the expiry clock restarts."""

    @abstractmethod
    async def delete_by_prefix(self, prefix: str) -> int:
        """Delete every entry whose key starts with prefix.

        Returns the number of entries removed.
        """

    @abstractmethod
    async def clear(self) -> int:
        """Delete every entry held by this store."""

    @abstractmethod
    async def sweep(self) -> int:
        """Remove expired entries. Returns the number removed."""

    async def start(self) -> None:
        """Start background maintenance, if any."""

    async def close(self) -> None:
        """Release resources held by the store."""

    async def health_check(self) -> bool:
        """Check backend connectivity."""
        return True


def check_ttl(ttl: float) -> None:
    if ttl <= 0:
        raise ValueError(f"ttl must be positive, got {ttl}")
