"""
Circuit breaker configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Failure isolation thresholds for the LLM boundary
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from edugen.configs.base import BaseSettings


class CircuitBreakerSettings(BaseSettings):
    """Thresholds and cool-down timings for per-endpoint circuit breakers."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CIRCUIT_BREAKER_",
        case_sensitive=False,
        extra="ignore",
    )

    failure_rate_threshold: float = Field(
        default=0.5,
        gt=0.0,
        le=1.0,
        description="Failure ratio within the window that opens the circuit",
    )
    window_size: int = Field(default=10, ge=1, description="Number of recent calls evaluated")
    minimum_calls: int = Field(
        default=5,
        ge=1,
        description="Calls required in the window before the ratio is evaluated",
    )
    window_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Outcomes older than this drop out of the window",
    )
    cooldown_seconds: float = Field(default=30.0, ge=0.0, description="Open state duration")
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        description="Cool-down multiplier applied on each consecutive reopening",
    )
    max_cooldown_seconds: float = Field(default=300.0, ge=0.0)
