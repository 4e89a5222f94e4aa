"""Prometheus metrics for blockcache.

Provides metrics collection and exposure:
- Cache lookups (hits, misses, coalesced waits)
- Renderer invocations (latency, failures)
- Store fallbacks when the backend is unreachable
- Invalidated entries

Usage:
    from blockcache.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cache_hits_total.labels(block_type="core/paragraph").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    # Lookup metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_coalesced_total: Any = None

    # Renderer metrics
    render_duration_seconds: Any = None
    render_failures_total: Any = None

    # Store metrics
    store_fallbacks_total: Any = None
    invalidated_entries_total: Any = None

    # Internal state
    enabled: bool = True
    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not self.enabled:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = registry or REGISTRY

        self.cache_hits_total = Counter(
            "blockcache_hits_total",
            "Render cache hits",
            ["block_type"],
            registry=self._registry,
        )

        self.cache_misses_total = Counter(
            "blockcache_misses_total",
            "Render cache misses",
            ["block_type"],
            registry=self._registry,
        )

        self.cache_coalesced_total = Counter(
            "blockcache_coalesced_total",
            "Misses served by another caller's in-flight render",
            ["block_type"],
            registry=self._registry,
        )

        self.render_duration_seconds = Histogram(
            "blockcache_render_duration_seconds",
            "Renderer latency in seconds",
            ["block_type"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self._registry,
        )

        self.render_failures_total = Counter(
            "blockcache_render_failures_total",
            "Renderer failures",
            ["block_type"],
            registry=self._registry,
        )

        self.store_fallbacks_total = Counter(
            "blockcache_store_fallbacks_total",
            "Store operations that failed and fell back to direct rendering",
            ["backend", "operation"],
            registry=self._registry,
        )

        self.invalidated_entries_total = Counter(
            "blockcache_invalidated_entries_total",
            "Entries removed by invalidation",
            ["reason"],
            registry=self._registry,
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not self.enabled or self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def configure_metrics(enabled: bool) -> MetricsRegistry:
    """Enable or disable metrics before first use."""
    if not metrics_registry._initialized:
        metrics_registry.enabled = enabled
    return get_metrics()


def record_cache_hit(block_type: str) -> None:
    """Record cache hit."""
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(block_type=block_type).inc()


def record_cache_miss(block_type: str) -> None:
    """Record cache miss."""
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(block_type=block_type).inc()


def record_coalesced(block_type: str) -> None:
    """Record a miss that joined an in-flight render."""
    metrics = get_metrics()
    if metrics.cache_coalesced_total:
        metrics.cache_coalesced_total.labels(block_type=block_type).inc()


def record_render(block_type: str, duration: float, failed: bool = False) -> None:
    """Record a renderer invocation.

    Args:
        block_type: Block type rendered
        duration: Renderer duration in seconds
        failed: Whether the renderer raised
    """
    metrics = get_metrics()
    if metrics.render_duration_seconds:
        metrics.render_duration_seconds.labels(block_type=block_type).observe(duration)
    if failed and metrics.render_failures_total:
        metrics.render_failures_total.labels(block_type=block_type).inc()


def record_store_fallback(backend: str, operation: str) -> None:
    """Record a store failure that was absorbed by the service."""
    metrics = get_metrics()
    if metrics.store_fallbacks_total:
        metrics.store_fallbacks_total.labels(backend=backend, operation=operation).inc()


def record_invalidation(reason: str, count: int) -> None:
    """Record entries removed by invalidation.

    Args:
        reason: What triggered the invalidation (published, unpublished, manual)
        count: Entries removed
    """
    metrics = get_metrics()
    if metrics.invalidated_entries_total and count:
        metrics.invalidated_entries_total.labels(reason=reason).inc(count)
