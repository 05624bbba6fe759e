"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the pipeline
"""

from functools import lru_cache

from pydantic import Field

from edugen.configs.base import BaseSettings
from edugen.configs.cache import CacheSettings
from edugen.configs.database import DatabaseSettings
from edugen.configs.job_queue import JobQueueSettings
from edugen.configs.llm import LLMSettings
from edugen.configs.rag import RAGSettings
from edugen.configs.resilience import CircuitBreakerSettings
from edugen.configs.vector_store import VectorStoreSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    circuit_breaker: CircuitBreakerSettings = Field(default_factory=CircuitBreakerSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    job_queue: JobQueueSettings = Field(default_factory=JobQueueSettings)
    rag: RAGSettings = Field(default_factory=RAGSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for the process lifetime.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from edugen.configs import get_settings
        settings = get_settings()
    """
    return Settings()
