"""Global pytest configuration and fixtures."""

from __future__ import annotations

from prometheus_client import CollectorRegistry

from blockcache.observability.metrics import metrics_registry


def pytest_configure(config):
    """Keep test metrics out of the process-wide Prometheus registry."""
    metrics_registry.initialize(registry=CollectorRegistry())
