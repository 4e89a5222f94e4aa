"""Runtime wiring for blockcache.

Builds the store, service, event bus and invalidation listener from
Settings. The host process owns the resulting RenderCacheRuntime: start it
during startup, stop it during shutdown.

Example:
    runtime = RenderCacheRuntime.from_settings(Settings())
    await runtime.start()
    html = await runtime.service.render_cached(request, renderer)
    await runtime.stop()
"""

from __future__ import annotations

import logging

from blockcache.cache.invalidation import InvalidationListener
from blockcache.cache.memory import MemoryCacheStore
from blockcache.cache.redis import RedisCacheStore, create_redis_client
from blockcache.cache.service import RenderCacheService
from blockcache.cache.store import CacheStore
from blockcache.config import Settings
from blockcache.events.bus import EventBus, InMemoryEventBus
from blockcache.events.redis_bus import RedisPubSubEventBus
from blockcache.observability.metrics import configure_metrics

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> CacheStore:
    """Create a cache store based on configuration."""
    if settings.store_backend == "memory":
        return MemoryCacheStore(
            max_entries=settings.max_entries,
            max_bytes=settings.max_bytes,
            eviction_policy=settings.eviction_policy,
            sweep_interval=settings.sweep_interval,
        )

    if settings.store_backend == "redis":
        return RedisCacheStore.from_url(settings.redis_url, namespace=settings.redis_namespace)

    raise ValueError("Unsupported store_backend. Supported values: memory, redis.")


def create_event_bus(settings: Settings) -> EventBus:
    """Create a publication event bus based on configuration."""
    if settings.event_bus_backend == "memory":
        return InMemoryEventBus(max_size=settings.event_queue_size)

    if settings.event_bus_backend == "redis":
        return RedisPubSubEventBus(
            create_redis_client(settings.redis_url),
            channel=settings.invalidation_channel,
            owns_client=True,
        )

    raise ValueError("Unsupported event_bus_backend. Supported values: memory, redis.")


class RenderCacheRuntime:
    """Store, service, bus and listener with one lifecycle."""

    def __init__(self, service: RenderCacheService, bus: EventBus) -> None:
        self.service = service
        self.bus = bus
        self.listener = InvalidationListener(service.store)
        self._running = False

    @classmethod
    def from_settings(cls, settings: Settings) -> RenderCacheRuntime:
        configure_metrics(settings.enable_metrics)
        service = RenderCacheService(create_store(settings), default_ttl=settings.default_ttl)
        return cls(service, create_event_bus(settings))

    @property
    def store(self) -> CacheStore:
        return self.service.store

    async def start(self) -> None:
        if self._running:
            return
        await self.service.start()
        await self.listener.attach(self.bus)
        await self.bus.start()
        self._running = True
        logger.info(
            f"Render cache runtime started ({type(self.store).__name__}, "
            f"{type(self.bus).__name__})"
        )

    async def stop(self) -> None:
        if not self._running:
            return
        await self.bus.stop()
        await self.service.close()
        self._running = False
        logger.info("Render cache runtime stopped")
