"""
Generation job ORM model.

Durable record of a generation job: kind partition, validated payload,
status, progress, result or structured error, plus the lease and version
columns that make status transitions atomic across workers.

Dependencies: sqlalchemy, edugen.boundary.db.base
System role: Durable job store table
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from edugen.boundary.db.base import Base, TimestampMixin, UUIDMixin
from edugen.models.job import JobKind, JobStatus


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class JobModel(Base, UUIDMixin, TimestampMixin):
    """
    Generation job ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        kind: Job kind, also the queue partition
        payload: Validated, normalized input payload
        status: queued -> active -> completed | failed
        progress: Percentage complete (0-100), non-decreasing while active
        result: Handler output; set only when completed
        error: {code, message, retryable, details}; set only when failed
        version: Optimistic concurrency counter, bumped on each status transition
        attempts: Number of times the job has been claimed
        lease_owner: Worker ID holding the job while active
        lease_expires_at: Lease deadline; expired active jobs are recovered
        cancel_requested: Cooperative cancellation flag for active jobs
        started_at: First transition to active
        finished_at: Transition to a terminal status

    Workflow:
        1. Submission inserts status=queued, version=0
        2. A worker claims with a conditional UPDATE on (id, status, version)
        3. The worker renews the lease and writes progress while running
        4. The worker writes completed/failed conditioned on its lease
    """

    __tablename__ = "generation_jobs"
    __table_args__ = (
        Index("ix_generation_jobs_claim", "status", "kind", "created_at"),
        Index("ix_generation_jobs_lease", "status", "lease_expires_at"),
    )

    kind: Mapped[JobKind] = mapped_column(
        Enum(JobKind, native_enum=False, values_callable=_enum_values, length=32),
        nullable=False,
    )

    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=_enum_values, length=16),
        nullable=False,
        default=JobStatus.QUEUED,
    )

    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Progress percentage (0-100)",
    )

    result: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    error: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    lease_owner: Mapped[str | None] = mapped_column(String(128), nullable=True)
    lease_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    cancel_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
