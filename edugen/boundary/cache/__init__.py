"""
Cache boundary.

Exports:
  - CacheStore: Async contract
  - InMemoryCacheStore, RedisCacheStore: Backends
  - get_cache_store: Factory selecting the backend from settings
"""

from edugen.boundary.cache.cache_factory import get_cache_store
from edugen.boundary.cache.cache_store import CacheStore, InMemoryCacheStore
from edugen.boundary.cache.redis_cache_store import RedisCacheStore

__all__ = ["CacheStore", "InMemoryCacheStore", "RedisCacheStore", "get_cache_store"]
