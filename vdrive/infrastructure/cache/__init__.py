"""Cache: in-memory and Redis stores plus cache key utilities.

Used by the storage facade for read-through listings, stats, searches
and existence checks. create_cache_store() picks the backend from
vdrive.core.config; key format is in keys.py (DRY).
"""

from vdrive.core.config import Settings, get_settings
from vdrive.infrastructure.cache.cache_protocol import CacheProtocol
from vdrive.infrastructure.cache.keys import (
    listing_key,
    path_pattern,
    search_key,
    search_pattern,
    stat_key,
    stats_key,
)
from vdrive.infrastructure.cache.memory_cache import MemoryCacheStore


def create_cache_store(settings: Settings | None = None) -> CacheProtocol:
    """Build the configured cache backend (Redis still needs connect())."""
    settings = settings or get_settings()
    if settings.cache_backend == "redis":
        from vdrive.infrastructure.cache.redis_cache import RedisCacheStore

        return RedisCacheStore(settings=settings)
    return MemoryCacheStore(default_ttl=settings.cache_ttl_default)


__all__ = [
    "CacheProtocol",
    "MemoryCacheStore",
    "create_cache_store",
    "listing_key",
    "path_pattern",
    "search_key",
    "search_pattern",
    "stat_key",
    "stats_key",
]
