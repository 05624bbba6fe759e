"""
RAG engine configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Retrieval and prompt-budget configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from edugen.configs.base import BaseSettings


class RAGSettings(BaseSettings):
    """Retrieval-augmented generation settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RAG_",
        case_sensitive=False,
        extra="ignore",
    )

    top_k: int = Field(default=5, ge=1, le=100, description="Passages retrieved per query")
    max_context_chars: int = Field(
        default=6000,
        ge=0,
        description="Character budget for retrieved passages in the prompt",
    )
    cache_enabled: bool = Field(default=True, description="Serve and store answers in the cache")
    max_history_turns: int = Field(
        default=10,
        ge=0,
        description="Most recent conversation turns included in the prompt",
    )
