"""
Cache store configuration settings.

Dependencies: pydantic, pydantic_settings
System role: RAG result cache configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from edugen.configs.base import BaseSettings


class CacheSettings(BaseSettings):
    """RAG result cache configuration (in-memory or Redis)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CACHE_",
        case_sensitive=False,
        extra="ignore",
    )

    backend: str = Field(default="memory", description="Cache backend: 'memory' or 'redis'")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    key_prefix: str = Field(default="edugen:rag:", description="Namespace for cache keys")
    ttl_seconds: int = Field(default=86400, ge=1, description="Time-to-live for cached answers")
    operation_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Upper bound for a single cache get/set",
    )
    max_entries: int = Field(
        default=1024,
        ge=1,
        description="Capacity of the in-memory backend (least recently used evicted)",
    )
