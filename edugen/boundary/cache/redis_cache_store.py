"""
Redis cache store.

Production cache backend over redis.asyncio. Every call is bounded by
the configured operation timeout; backend failures surface as
CacheStoreError (or CallTimeoutError) so the RAG engine can degrade to
a cache miss.

Dependencies: redis
System role: Shared RAG result cache across worker processes
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from edugen.core.exceptions import CacheStoreError, CallTimeoutError

logger = logging.getLogger(__name__)


class RedisCacheStore:
    """Redis-backed cache store scoped to a key prefix."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "edugen:rag:",
        operation_timeout_seconds: float = 2.0,
    ) -> None:
        """
        Initialize Redis cache store.

        Args:
            client: redis.asyncio client (decode_responses=True)
            key_prefix: Namespace flushed by flush()
            operation_timeout_seconds: Bound on each cache call
        """
        self._client = client
        self._key_prefix = key_prefix
        self._timeout = operation_timeout_seconds

    @classmethod
    def from_url(
        cls,
        url: str,
        key_prefix: str = "edugen:rag:",
        operation_timeout_seconds: float = 2.0,
    ) -> "RedisCacheStore":
        """Build a store with a pooled client for the given URL."""
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=operation_timeout_seconds,
            socket_connect_timeout=operation_timeout_seconds,
        )
        return cls(client, key_prefix, operation_timeout_seconds)

    async def _bounded(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise CallTimeoutError(
                f"Cache {operation} timed out",
                operation=f"cache.{operation}",
                timeout_seconds=self._timeout,
            ) from e
        except RedisError as e:
            raise CacheStoreError(f"Cache {operation} failed: {e}", {"operation": operation}) from e

    async def get(self, key: str) -> str | None:
        return await self._bounded("get", self._client.get(key))

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._bounded("set", self._client.set(key, value, ex=ttl_seconds))

    async def delete(self, key: str) -> None:
        await self._bounded("delete", self._client.delete(key))

    async def flush(self) -> int:
        """
        Delete every key under the store's prefix.

        Administrative operation (e.g. after a model upgrade); other
        Redis data is left alone.

        Returns:
            int: Number of keys deleted
        """
        removed = 0
        try:
            async for key in self._client.scan_iter(match=f"{self._key_prefix}*", count=500):
                removed += await self._client.delete(key)
        except RedisError as e:
            raise CacheStoreError(f"Cache flush failed: {e}", {"operation": "flush"}) from e
        logger.info(f"{__name__}:flush - Removed {removed} keys under {self._key_prefix}")
        return removed

    async def close(self) -> None:
        await self._client.aclose()
