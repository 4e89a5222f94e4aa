"""blockcache: fingerprinted render cache for content blocks."""

from blockcache.cache import (
    CacheKeys,
    InvalidationListener,
    MemoryCacheStore,
    RedisCacheStore,
    RenderCacheService,
    fingerprint,
)
from blockcache.config import Settings
from blockcache.core import (
    InvalidInputError,
    RenderFailedError,
    RenderRequest,
    StoreUnavailableError,
)
from blockcache.events import PublicationEventType, PublicationStateChange
from blockcache.runtime import RenderCacheRuntime

__version__ = "0.1.0"

__all__ = [
    "CacheKeys",
    "InvalidationListener",
    "MemoryCacheStore",
    "RedisCacheStore",
    "RenderCacheService",
    "RenderCacheRuntime",
    "RenderRequest",
    "Settings",
    "PublicationEventType",
    "PublicationStateChange",
    "InvalidInputError",
    "RenderFailedError",
    "StoreUnavailableError",
    "fingerprint",
]
