"""
Shared settings base for the generation pipeline.

Every concern-specific settings class (database, LLM, breaker, vector
store, cache, job queue, RAG) derives from this class so they read the
same ``.env`` file and ignore variables meant for the others. The
process-wide fields live here because both the worker entry point and
the table-creation script need them before the pipeline is built.

Dependencies: pydantic, pydantic_settings
System role: Foundation for all configuration classes
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Common settings for edugen processes."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EDUGEN_",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment name shown in worker startup logs",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for worker and script processes",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level
