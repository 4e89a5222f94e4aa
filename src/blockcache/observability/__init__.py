"""Observability module for blockcache.

Provides metrics and structured logging:
- Prometheus metrics for cache and renderer behavior
- JSON structured logging with correlation context
"""

from blockcache.observability.logging import (
    LogContext,
    cache_key_var,
    configure_logging,
    request_id_var,
)
from blockcache.observability.metrics import (
    configure_metrics,
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "request_id_var",
    "cache_key_var",
    # Metrics
    "metrics_registry",
    "get_metrics",
    "configure_metrics",
]
