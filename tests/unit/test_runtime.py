"""Tests for runtime wiring."""

from __future__ import annotations

from blockcache.cache.fingerprint import fingerprint
from blockcache.cache.memory import MemoryCacheStore
from blockcache.cache.redis import RedisCacheStore
from blockcache.config import Settings
from blockcache.core.request import RenderRequest
from blockcache.events.bus import InMemoryEventBus
from blockcache.events.redis_bus import RedisPubSubEventBus
from blockcache.events.schemas import PublicationEventType, PublicationStateChange
from blockcache.runtime import RenderCacheRuntime, create_event_bus, create_store


class TestFactories:
    """Test backend selection."""

    def test_memory_store(self) -> None:
        store = create_store(
            Settings(max_entries=10, eviction_policy="lru", sweep_interval=5)
        )
        assert isinstance(store, MemoryCacheStore)
        assert store.max_entries == 10
        assert store.bounded

    async def test_redis_store(self) -> None:
        store = create_store(Settings(store_backend="redis", redis_namespace="t1:"))
        assert isinstance(store, RedisCacheStore)
        assert store.namespace == "t1:"
        await store.close()

    def test_event_buses(self) -> None:
        assert isinstance(create_event_bus(Settings()), InMemoryEventBus)
        bus = create_event_bus(
            Settings(event_bus_backend="redis", invalidation_channel="site:publication")
        )
        assert isinstance(bus, RedisPubSubEventBus)
        assert bus.channel == "site:publication"


class TestRenderCacheRuntime:
    """Test the assembled runtime end to end."""

    async def test_publish_invalidates_cached_render(self) -> None:
        """A publication event purges renders of the affected block type."""
        runtime = RenderCacheRuntime.from_settings(Settings(sweep_interval=None))
        await runtime.start()

        calls = 0

        async def render(request: RenderRequest) -> str:
            nonlocal calls
            calls += 1
            return f"<ul>{calls}</ul>"

        request = RenderRequest("core/latest-posts", {"count": 3})
        first = await runtime.service.render_cached(request, render)
        assert await runtime.service.render_cached(request, render) == first

        assert isinstance(runtime.bus, InMemoryEventBus)
        await runtime.bus.publish(
            PublicationStateChange(
                event_type=PublicationEventType.PUBLISHED,
                content_id="post-1",
                affected_block_types=frozenset({"core/latest-posts"}),
            )
        )
        await runtime.bus.drain()

        assert not (await runtime.store.get(fingerprint(request))).found
        assert await runtime.service.render_cached(request, render) == "<ul>2</ul>"

        await runtime.stop()
        await runtime.stop()
