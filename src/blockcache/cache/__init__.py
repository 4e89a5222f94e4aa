"""Cache layer for blockcache.

Provides fingerprinted caching of rendered blocks:
- Fingerprints make identical requests share one entry
- Memory and Redis stores with per-entry TTL
- Single-flight rendering prevents cache stampedes
- Publication events invalidate affected block types
"""

from blockcache.cache.fingerprint import canonical_bytes, fingerprint
from blockcache.cache.invalidation import InvalidationListener
from blockcache.cache.keys import CacheKeys
from blockcache.cache.memory import MemoryCacheStore
from blockcache.cache.redis import RedisCacheStore, create_redis_client
from blockcache.cache.service import CacheStats, RenderCacheService, Renderer
from blockcache.cache.singleflight import SingleFlight
from blockcache.cache.store import CacheEntry, CacheLookup, CacheStore

__all__ = [
    # Keys
    "CacheKeys",
    "canonical_bytes",
    "fingerprint",
    # Stores
    "CacheStore",
    "CacheEntry",
    "CacheLookup",
    "MemoryCacheStore",
    "RedisCacheStore",
    "create_redis_client",
    # Service
    "RenderCacheService",
    "Renderer",
    "CacheStats",
    "SingleFlight",
    # Invalidation
    "InvalidationListener",
]
