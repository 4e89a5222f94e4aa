"""Redis cache store for blockcache.

Provides async Redis operations for caching rendered output.
Uses redis-py async client for connection pooling. Redis expires entries
natively (PX), so ``sweep()`` has nothing to do.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, cast

import redis.asyncio as redis
from redis.exceptions import RedisError

from blockcache.cache.keys import CacheKeys
from blockcache.cache.store import MISS, CacheLookup, CacheStore, check_ttl
from blockcache.core.errors import StoreUnavailableError
from blockcache.core.request import RenderedValue

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# One-byte type tags so str and bytes payloads survive the round trip
_STR_TAG = b"s"
_BYTES_TAG = b"b"


def create_redis_client(url: str) -> Redis:
    """Create a Redis client with its own connection pool."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=False,  # We're storing bytes
    )


def encode_value(value: RenderedValue) -> bytes:
    if isinstance(value, str):
        return _STR_TAG + value.encode("utf-8")
    return _BYTES_TAG + value


def decode_value(data: bytes) -> RenderedValue:
    tag, payload = data[:1], data[1:]
    if tag == _STR_TAG:
        return payload.decode("utf-8")
    if tag == _BYTES_TAG:
        return payload
    raise ValueError(f"Unknown cache value tag: {tag!r}")


class RedisCacheStore(CacheStore):
    """Cache store backed by Redis.

    Args:
        client: redis.asyncio client
        namespace: Optional prefix for physical keys, for sharing one Redis
            between deployments
        owns_client: Close the client when the store is closed
    """

    backend_name = "redis"

    def __init__(self, client: Redis, namespace: str = "", owns_client: bool = False):
        self.client = client
        self.namespace = namespace
        self.owns_client = owns_client

    @classmethod
    def from_url(cls, url: str, namespace: str = "") -> RedisCacheStore:
        return cls(create_redis_client(url), namespace=namespace, owns_client=True)

    def _physical(self, key: str) -> str:
        return f"{self.namespace}{key}"

    async def get(self, key: str) -> CacheLookup:
        try:
            data = cast(bytes | None, await self.client.get(self._physical(key)))
        except RedisError as e:
            raise StoreUnavailableError(self.backend_name, e) from e

        if data is None:
            return MISS
        try:
            return CacheLookup(decode_value(data), True)
        except ValueError as e:
            # Written by something else sharing the keyspace; treat as absent
            logger.warning(f"Discarding undecodable cache value at {key}: {e}")
            return MISS

    async def put(self, key: str, value: RenderedValue, ttl: float) -> None:
        check_ttl(ttl)
        px = max(1, int(ttl * 1000))
        try:
            await self.client.set(self._physical(key), encode_value(value), px=px)
        except RedisError as e:
            raise StoreUnavailableError(self.backend_name, e) from e

    async def delete_by_prefix(self, prefix: str) -> int:
        """Delete all keys under a prefix.

        Uses SCAN to avoid blocking on large keyspaces. Keys written while
        the scan runs may survive; invalidation is best-effort.
        """
        pattern = f"{_escape_glob(self._physical(prefix))}*"
        deleted = 0

        try:
            async for key in self.client.scan_iter(match=pattern):
                deleted += cast(int, await self.client.delete(key))
        except RedisError as e:
            raise StoreUnavailableError(self.backend_name, e) from e

        return deleted

    async def clear(self) -> int:
        return await self.delete_by_prefix(CacheKeys.all_entries())

    async def sweep(self) -> int:
        return 0

    async def close(self) -> None:
        if self.owns_client:
            await self.client.aclose()

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except RedisError:
            return False


def _escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters in a literal key prefix."""
    for char in ("\\", "*", "?", "[", "]"):
        value = value.replace(char, f"\\{char}")
    return value
