"""Render cache service.

Wraps an external renderer with the cache-aside pattern:
- Hits are served from the store without touching the renderer
- Concurrent misses on one key share a single renderer call
- Failed renders are never cached; every waiter sees the same error
- An unreachable store degrades to direct rendering

Example:
    store = MemoryCacheStore(sweep_interval=60)
    async with RenderCacheService(store, default_ttl=300) as cache:
        html = await cache.render_cached(
            RenderRequest("core/latest-posts", {"count": 5}),
            render_latest_posts,
        )
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass
from typing import Any, Union

from blockcache.cache.fingerprint import fingerprint
from blockcache.cache.keys import CacheKeys
from blockcache.cache.singleflight import SingleFlight
from blockcache.cache.store import CacheStore
from blockcache.core.errors import RenderFailedError, StoreUnavailableError
from blockcache.core.request import RenderedValue, RenderRequest
from blockcache.observability.logging import LogContext
from blockcache.observability.metrics import (
    record_cache_hit,
    record_cache_miss,
    record_coalesced,
    record_invalidation,
    record_render,
    record_store_fallback,
)

logger = logging.getLogger(__name__)

Renderer = Callable[[RenderRequest], Union[Awaitable[RenderedValue], RenderedValue]]


@dataclass
class CacheStats:
    """Counters for one service instance."""

    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    renders: int = 0
    render_failures: int = 0
    fallbacks: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["hit_rate"] = self.hit_rate
        return data


class RenderCacheService:
    """Memoizes renderer output keyed by request fingerprint.

    The service is explicitly constructed and owns its store's lifecycle:
    call ``start()`` at process start and ``close()`` at shutdown, or use
    it as an async context manager. It must be used from one event loop.
    """

    def __init__(self, store: CacheStore, default_ttl: float = 300.0):
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive, got {default_ttl}")
        self.store = store
        self.default_ttl = default_ttl
        self.stats = CacheStats()
        self._flights: SingleFlight[RenderedValue] = SingleFlight()
        self._started = False

    async def start(self) -> None:
        if self._started:
            return
        await self.store.start()
        self._started = True
        logger.info(f"Render cache started ({self.store.backend_name} store)")

    async def close(self) -> None:
        """Let in-flight renders settle, then close the store."""
        await self._flights.wait_all()
        await self.store.close()
        self._started = False
        logger.info("Render cache stopped")

    async def __aenter__(self) -> RenderCacheService:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    async def render_cached(
        self,
        request: RenderRequest,
        renderer: Renderer,
        *,
        ttl: float | None = None,
        timeout: float | None = None,
    ) -> RenderedValue:
        """Return the cached render of ``request``, rendering on a miss.

        Args:
            request: What to render
            renderer: Callable producing the value; sync or async
            ttl: Entry lifetime in seconds, defaults to ``default_ttl``
            timeout: Bound on the renderer call triggered by this miss

        Raises:
            InvalidInputError: The request cannot be fingerprinted
            RenderFailedError: The renderer raised or timed out
        """
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        key = fingerprint(request)

        with LogContext(cache_key=key):
            try:
                lookup = await self.store.get(key)
            except StoreUnavailableError as e:
                logger.warning(f"Cache lookup failed, rendering directly: {e}")
                self.stats.fallbacks += 1
                record_store_fallback(self.store.backend_name, "get")
                return await self._render(key, request, renderer, timeout)

            if lookup.found:
                self.stats.hits += 1
                record_cache_hit(request.block_type)
                return lookup.value  # type: ignore[return-value]

            self.stats.misses += 1
            record_cache_miss(request.block_type)

            value, shared = await self._flights.do(
                key,
                functools.partial(
                    self._fill,
                    key,
                    request,
                    renderer,
                    ttl if ttl is not None else self.default_ttl,
                    timeout,
                ),
            )
            if shared:
                self.stats.coalesced += 1
                record_coalesced(request.block_type)
            return value

    def cached(
        self,
        renderer: Renderer,
        *,
        ttl: float | None = None,
        timeout: float | None = None,
    ) -> Callable[[RenderRequest], Awaitable[RenderedValue]]:
        """Wrap a renderer so every call goes through the cache."""

        @functools.wraps(renderer)
        async def wrapper(request: RenderRequest) -> RenderedValue:
            return await self.render_cached(request, renderer, ttl=ttl, timeout=timeout)

        return wrapper

    async def _fill(
        self,
        key: str,
        request: RenderRequest,
        renderer: Renderer,
        ttl: float,
        timeout: float | None,
    ) -> RenderedValue:
        """Single-flight leader: render and store the result."""
        # A previous leader may have stored the value after our lookup missed
        try:
            lookup = await self.store.get(key)
        except StoreUnavailableError:
            lookup = None
        if lookup is not None and lookup.found:
            return lookup.value  # type: ignore[return-value]

        value = await self._render(key, request, renderer, timeout)

        try:
            await self.store.put(key, value, ttl)
        except StoreUnavailableError as e:
            logger.warning(f"Cache write failed, returning uncached value: {e}")
            self.stats.fallbacks += 1
            record_store_fallback(self.store.backend_name, "put")

        return value

    async def _render(
        self,
        key: str,
        request: RenderRequest,
        renderer: Renderer,
        timeout: float | None,
    ) -> RenderedValue:
        """Invoke the renderer, mapping any failure to RenderFailedError."""
        self.stats.renders += 1
        start = time.perf_counter()
        try:
            value = await asyncio.wait_for(_invoke(renderer, request), timeout)
            if not isinstance(value, str | bytes):
                raise TypeError(
                    f"renderer returned {type(value).__name__}, expected str or bytes"
                )
        except Exception as e:
            self.stats.render_failures += 1
            record_render(request.block_type, time.perf_counter() - start, failed=True)
            logger.warning(f"Render failed for {request.block_type}: {e!r}")
            raise RenderFailedError(key, e) from e

        record_render(request.block_type, time.perf_counter() - start)
        return value

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def invalidate_prefix(self, prefix: str, reason: str = "manual") -> int:
        """Remove every entry under a prefix group."""
        deleted = await self.store.delete_by_prefix(prefix)
        record_invalidation(reason, deleted)
        logger.debug(f"Invalidated {deleted} entries under {prefix}")
        return deleted

    async def invalidate_block_type(self, block_type: str, reason: str = "manual") -> int:
        """Remove every cached render of a block type."""
        return await self.invalidate_prefix(CacheKeys.prefix_group(block_type), reason)

    async def invalidate_all(self, reason: str = "manual") -> int:
        """Remove every cached render (nuclear option)."""
        deleted = await self.store.clear()
        record_invalidation(reason, deleted)
        logger.info(f"Invalidated all {deleted} cached renders")
        return deleted


async def _invoke(renderer: Renderer, request: RenderRequest) -> RenderedValue:
    if inspect.iscoroutinefunction(renderer) or inspect.iscoroutinefunction(
        getattr(renderer, "__call__", None)
    ):
        return await renderer(request)  # type: ignore[no-any-return]

    # Sync renderers may block on I/O; keep them off the event loop
    result = await asyncio.to_thread(renderer, request)
    if inspect.isawaitable(result):
        return await result
    return result
