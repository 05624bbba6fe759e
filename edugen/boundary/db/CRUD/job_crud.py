"""
Generation job CRUD operations.

Extends BaseCRUD with the conditional updates behind every job status
transition. Each transition names the state it expects in its WHERE
clause (status, version, lease owner) and reports whether it won.

Dependencies: sqlalchemy, edugen.boundary.db.models.job_model
System role: Job persistence operations for the worker pool
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edugen.boundary.db.CRUD.base_crud import BaseCRUD
from edugen.boundary.db.models.job_model import JobModel
from edugen.models.job import JobKind, JobStatus


class JobCRUD(BaseCRUD[JobModel]):
    """
    CRUD operations for JobModel.

    Extends BaseCRUD with claim, lease, progress and terminal-write
    queries used by the job store.
    """

    def __init__(self) -> None:
        """Initialize JobCRUD with JobModel."""
        super().__init__(JobModel)

    async def get_by_status(
        self,
        session: AsyncSession,
        status: JobStatus,
        limit: int | None = None,
    ) -> Sequence[JobModel]:
        """
        Retrieve jobs by execution status, oldest first.

        Args:
            session: Async database session
            status: Job execution status to filter by
            limit: Maximum number of jobs to return

        Returns:
            Sequence of JobModels with matching status
        """
        stmt = (
            select(JobModel)
            .where(JobModel.status == status)
            .order_by(JobModel.created_at)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_status(self, session: AsyncSession) -> dict[JobStatus, int]:
        """Count jobs per status."""
        stmt = select(JobModel.status, func.count()).group_by(JobModel.status)
        result = await session.execute(stmt)
        return {status: count for status, count in result.all()}

    async def list_claimable(
        self,
        session: AsyncSession,
        kind: JobKind,
        limit: int,
    ) -> Sequence[JobModel]:
        """
        Oldest queued jobs of one kind (FIFO within the partition).

        Args:
            session: Async database session
            kind: Queue partition
            limit: Candidates to return

        Returns:
            Sequence of queued JobModels ordered by creation time
        """
        stmt = (
            select(JobModel)
            .where(JobModel.status == JobStatus.QUEUED, JobModel.kind == kind)
            .order_by(JobModel.created_at, JobModel.id)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def try_claim(
        self,
        session: AsyncSession,
        job: JobModel,
        worker_id: str,
        lease_expires_at: datetime,
        now: datetime,
    ) -> bool:
        """
        Move a queued job to active for one worker.

        Args:
            session: Async database session
            job: Candidate row as read (its version is the expected version)
            worker_id: Claiming worker
            lease_expires_at: Lease deadline
            now: Current time

        Returns:
            True if this worker won the claim
        """
        updated = await self.update_where(
            session,
            JobModel.id == job.id,
            JobModel.status == JobStatus.QUEUED,
            JobModel.version == job.version,
            status=JobStatus.ACTIVE,
            version=JobModel.version + 1,
            attempts=JobModel.attempts + 1,
            progress=0,
            lease_owner=worker_id,
            lease_expires_at=lease_expires_at,
            started_at=job.started_at or now,
        )
        return updated == 1

    async def renew_lease(
        self,
        session: AsyncSession,
        id: UUID,
        worker_id: str,
        lease_expires_at: datetime,
    ) -> bool:
        """Extend the lease if the worker still holds it."""
        updated = await self.update_where(
            session,
            JobModel.id == id,
            JobModel.status == JobStatus.ACTIVE,
            JobModel.lease_owner == worker_id,
            lease_expires_at=lease_expires_at,
        )
        return updated == 1

    async def update_progress(
        self,
        session: AsyncSession,
        id: UUID,
        worker_id: str,
        progress: int,
    ) -> bool:
        """
        Raise progress; lower or equal values and foreign leases are ignored.

        Args:
            session: Async database session
            id: Job UUID
            worker_id: Worker expected to hold the lease
            progress: Progress percentage (0-100)

        Returns:
            True if the row was updated
        """
        updated = await self.update_where(
            session,
            JobModel.id == id,
            JobModel.status == JobStatus.ACTIVE,
            JobModel.lease_owner == worker_id,
            JobModel.progress < progress,
            progress=progress,
        )
        return updated == 1

    async def finish(
        self,
        session: AsyncSession,
        id: UUID,
        worker_id: str,
        version: int,
        status: JobStatus,
        now: datetime,
        result_data: dict | None = None,
        error_details: dict | None = None,
    ) -> bool:
        """
        Write a terminal status, conditioned on the worker's lease.

        Args:
            session: Async database session
            id: Job UUID
            worker_id: Worker expected to hold the lease
            version: Version observed at claim time
            status: COMPLETED or FAILED
            now: Completion time
            result_data: Output, for COMPLETED
            error_details: Structured error, for FAILED

        Returns:
            True if the transition was applied
        """
        values: dict = {
            "status": status,
            "version": JobModel.version + 1,
            "lease_owner": None,
            "lease_expires_at": None,
            "finished_at": now,
            "result": result_data,
            "error": error_details,
        }
        if status is JobStatus.COMPLETED:
            values["progress"] = 100
        updated = await self.update_where(
            session,
            JobModel.id == id,
            JobModel.status == JobStatus.ACTIVE,
            JobModel.lease_owner == worker_id,
            JobModel.version == version,
            **values,
        )
        return updated == 1

    async def fail_queued(
        self,
        session: AsyncSession,
        job: JobModel,
        error_details: dict,
        now: datetime,
    ) -> bool:
        """Fail a job that has not been claimed yet (cancellation)."""
        updated = await self.update_where(
            session,
            JobModel.id == job.id,
            JobModel.status == JobStatus.QUEUED,
            JobModel.version == job.version,
            status=JobStatus.FAILED,
            version=JobModel.version + 1,
            error=error_details,
            finished_at=now,
        )
        return updated == 1

    async def request_cancel(self, session: AsyncSession, id: UUID) -> bool:
        """Flag an active job for cooperative cancellation."""
        updated = await self.update_where(
            session,
            JobModel.id == id,
            JobModel.status == JobStatus.ACTIVE,
            cancel_requested=True,
        )
        return updated == 1

    async def list_expired_leases(
        self,
        session: AsyncSession,
        now: datetime,
        limit: int = 100,
    ) -> Sequence[JobModel]:
        """Active jobs whose lease deadline has passed."""
        stmt = (
            select(JobModel)
            .where(
                JobModel.status == JobStatus.ACTIVE,
                JobModel.lease_expires_at < now,
            )
            .order_by(JobModel.lease_expires_at)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def requeue_expired(
        self,
        session: AsyncSession,
        job: JobModel,
        now: datetime,
    ) -> bool:
        """Return an orphaned active job to the queue."""
        updated = await self.update_where(
            session,
            JobModel.id == job.id,
            JobModel.status == JobStatus.ACTIVE,
            JobModel.version == job.version,
            JobModel.lease_expires_at < now,
            status=JobStatus.QUEUED,
            version=JobModel.version + 1,
            progress=0,
            lease_owner=None,
            lease_expires_at=None,
        )
        return updated == 1

    async def fail_expired(
        self,
        session: AsyncSession,
        job: JobModel,
        error_details: dict,
        now: datetime,
    ) -> bool:
        """Fail an orphaned active job that exhausted its attempts."""
        updated = await self.update_where(
            session,
            JobModel.id == job.id,
            JobModel.status == JobStatus.ACTIVE,
            JobModel.version == job.version,
            JobModel.lease_expires_at < now,
            status=JobStatus.FAILED,
            version=JobModel.version + 1,
            lease_owner=None,
            lease_expires_at=None,
            error=error_details,
            finished_at=now,
        )
        return updated == 1


job_crud = JobCRUD()
