"""
LLM runtime configuration settings.

Connection and generation defaults for the local model server
(Ollama-compatible REST API), plus the retry policy applied around it.

Dependencies: pydantic, pydantic_settings
System role: LLM client configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from edugen.configs.base import BaseSettings


class LLMSettings(BaseSettings):
    """Local LLM runtime configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LLM_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the model server",
    )
    model: str = Field(default="llama3.1:8b", description="Generation model name")
    model_revision: str = Field(
        default="1",
        description="Bumped when prompts or weights change; part of the cache key",
    )

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=0.9, ge=0.0, le=1.0)
    repeat_penalty: float = Field(default=1.1, ge=0.0)
    max_output_tokens: int | None = Field(
        default=None,
        description="Upper bound on generated tokens (num_predict); None leaves it to the server",
    )

    max_duration_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Total time budget for one generation call",
    )
    connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="TCP connect timeout for the model server",
    )

    # Retry policy for transient failures (timeouts, connection errors)
    retry_max_attempts: int = Field(default=3, ge=1, description="Attempts per generation")
    retry_initial_wait_seconds: float = Field(default=2.0, ge=0.0)
    retry_max_wait_seconds: float = Field(default=30.0, ge=0.0)
    retry_jitter_seconds: float = Field(default=1.0, ge=0.0)

    @property
    def model_version(self) -> str:
        """Model identity used in cache keys."""
        return f"{self.model}@{self.model_revision}"
