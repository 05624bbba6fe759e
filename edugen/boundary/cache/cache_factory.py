"""
Cache store factory.

Dependencies: edugen.boundary.cache, edugen.configs
System role: Cache backend selection
"""

import logging

from edugen.boundary.cache.cache_store import CacheStore, InMemoryCacheStore
from edugen.boundary.cache.redis_cache_store import RedisCacheStore
from edugen.configs.cache import CacheSettings

logger = logging.getLogger(__name__)


def get_cache_store(settings: CacheSettings) -> CacheStore:
    """
    Build the cache store named by CACHE_BACKEND.

    Args:
        settings: Cache settings

    Returns:
        CacheStore: In-memory or Redis backend

    Raises:
        ValueError: If the backend is not supported
    """
    backend = settings.backend.lower()

    if backend == "memory":
        logger.info(f"{__name__}:get_cache_store - Using in-memory cache ({settings.max_entries} entries)")
        return InMemoryCacheStore(max_entries=settings.max_entries)

    if backend == "redis":
        logger.info(f"{__name__}:get_cache_store - Using Redis cache")
        return RedisCacheStore.from_url(
            settings.redis_url,
            key_prefix=settings.key_prefix,
            operation_timeout_seconds=settings.operation_timeout_seconds,
        )

    raise ValueError(f"Invalid CACHE_BACKEND: {backend}. Must be 'memory' or 'redis'.")
