"""
Job queue configuration settings.

Manages worker pool size, lease timings and the poison-job guard.

Dependencies: pydantic, pydantic_settings
System role: Async generation job processing configuration
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from edugen.configs.base import BaseSettings


class JobQueueSettings(BaseSettings):
    """Worker pool and lease configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="JOB_QUEUE_",
        case_sensitive=False,
        extra="ignore",
    )

    max_workers: int = Field(
        default=2,
        ge=1,
        description="Concurrent jobs; bounds parallel calls to the model server",
    )
    poll_interval_seconds: float = Field(default=1.0, gt=0, description="Idle worker poll interval")

    lease_seconds: float = Field(default=300.0, gt=0, description="Lease granted per claim")
    heartbeat_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Lease renewal interval while a handler runs",
    )
    reap_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How often expired leases are requeued",
    )
    job_timeout_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Upper bound on a single job's handler",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Claims allowed before an orphaned job is failed instead of requeued",
    )
    shutdown_timeout_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Grace period for in-flight jobs on stop; 0 cancels them at once",
    )

    @model_validator(mode="after")
    def _heartbeat_within_lease(self) -> "JobQueueSettings":
        # At least two renewals fit inside one lease.
        if self.heartbeat_interval_seconds > self.lease_seconds / 2:
            raise ValueError(
                f"heartbeat_interval_seconds ({self.heartbeat_interval_seconds}) must be at most "
                f"half of lease_seconds ({self.lease_seconds})"
            )
        return self
