"""
Durable job store.

Session-owning facade over JobCRUD. Every method runs in its own
transaction and returns pydantic read models, so callers never hold ORM
rows across awaits. Status transitions are optimistic: a conditional
UPDATE names the expected status, version and lease owner, and a lost
race is reported rather than overwritten.

Dependencies: sqlalchemy, edugen.boundary.db.CRUD, edugen.models.job
System role: Job persistence for the submission API and worker pool
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker

from edugen.boundary.db.base import utcnow
from edugen.boundary.db.CRUD.job_crud import JobCRUD, job_crud
from edugen.core.exceptions import JobNotFoundError, LeaseLostError
from edugen.models.job import GenerationJob, JobKind, JobStatus

logger = logging.getLogger(__name__)

CANCELLED_ERROR = {
    "code": "cancelled",
    "message": "Job cancelled before it started",
    "retryable": False,
    "details": {},
}

# Candidates read per kind; losing all of them to other workers just moves
# the claim on to the next partition.
_CLAIM_BATCH = 5
_MAX_CANCEL_RACES = 5


class JobStore:
    """Job persistence with atomic, lease-guarded status transitions."""

    def __init__(self, session_factory: async_sessionmaker, crud: JobCRUD = job_crud) -> None:
        """
        Initialize job store.

        Args:
            session_factory: Async session factory bound to the database
            crud: Job CRUD implementation
        """
        self._session_factory = session_factory
        self._crud = crud

    async def create(self, kind: JobKind, payload: dict[str, Any]) -> GenerationJob:
        """
        Persist a new queued job.

        Args:
            kind: Job kind (queue partition)
            payload: Validated, JSON-serializable payload

        Returns:
            GenerationJob: The queued job
        """
        async with self._session_factory() as session, session.begin():
            row = await self._crud.create(
                session,
                kind=kind,
                payload=payload,
                status=JobStatus.QUEUED,
                progress=0,
                version=0,
                attempts=0,
            )
            return GenerationJob.model_validate(row)

    async def find(self, job_id: uuid.UUID) -> GenerationJob | None:
        """Fetch a job, or None when unknown."""
        async with self._session_factory() as session:
            row = await self._crud.get_by_id(session, job_id)
            return GenerationJob.model_validate(row) if row else None

    async def get(self, job_id: uuid.UUID) -> GenerationJob:
        """
        Fetch a job.

        Args:
            job_id: Job UUID

        Returns:
            GenerationJob: Current job state

        Raises:
            JobNotFoundError: When the job does not exist
        """
        job = await self.find(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def list_by_status(
        self,
        status: JobStatus,
        limit: int | None = None,
    ) -> list[GenerationJob]:
        """List jobs in a status, oldest first."""
        async with self._session_factory() as session:
            rows = await self._crud.get_by_status(session, status, limit)
            return [GenerationJob.model_validate(row) for row in rows]

    async def count_by_status(self) -> dict[JobStatus, int]:
        """Count jobs per status (zero-filled)."""
        async with self._session_factory() as session:
            counts = await self._crud.count_by_status(session)
        return {status: counts.get(status, 0) for status in JobStatus}

    async def claim_next(
        self,
        worker_id: str,
        kinds: Sequence[JobKind],
        lease_seconds: float,
    ) -> GenerationJob | None:
        """
        Claim the oldest queued job, visiting kind partitions in order.

        Args:
            worker_id: Claiming worker
            kinds: Partitions in the order they should be tried
            lease_seconds: Lease granted on success

        Returns:
            GenerationJob now active and leased to worker_id, or None when
            every partition is empty
        """
        for kind in kinds:
            async with self._session_factory() as session, session.begin():
                candidates = await self._crud.list_claimable(session, kind, _CLAIM_BATCH)
                for candidate in candidates:
                    now = utcnow()
                    won = await self._crud.try_claim(
                        session,
                        candidate,
                        worker_id,
                        lease_expires_at=now + timedelta(seconds=lease_seconds),
                        now=now,
                    )
                    if won:
                        row = await self._crud.get_by_id(session, candidate.id)
                        return GenerationJob.model_validate(row)
        return None

    async def renew_lease(self, job_id: uuid.UUID, worker_id: str, lease_seconds: float) -> bool:
        """Extend a held lease; False means the lease is gone."""
        async with self._session_factory() as session, session.begin():
            return await self._crud.renew_lease(
                session,
                job_id,
                worker_id,
                utcnow() + timedelta(seconds=lease_seconds),
            )

    async def update_progress(self, job_id: uuid.UUID, worker_id: str, progress: int) -> bool:
        """
        Raise the progress of a leased job.

        Args:
            job_id: Job UUID
            worker_id: Worker holding the lease
            progress: New percentage (0-100)

        Returns:
            bool: True if the value was written (False for lower values or a lost lease)
        """
        progress = max(0, min(100, int(progress)))
        async with self._session_factory() as session, session.begin():
            return await self._crud.update_progress(session, job_id, worker_id, progress)

    async def is_cancel_requested(self, job_id: uuid.UUID) -> bool:
        """Whether cooperative cancellation was requested for the job."""
        job = await self.get(job_id)
        return job.cancel_requested

    async def complete(
        self,
        job_id: uuid.UUID,
        worker_id: str,
        version: int,
        result: dict[str, Any],
    ) -> GenerationJob:
        """
        Mark a leased job completed with its result.

        Raises:
            LeaseLostError: When the worker no longer holds the job
        """
        return await self._finish(job_id, worker_id, version, JobStatus.COMPLETED, result=result)

    async def fail(
        self,
        job_id: uuid.UUID,
        worker_id: str,
        version: int,
        error: dict[str, Any],
    ) -> GenerationJob:
        """
        Mark a leased job failed with structured error details.

        Raises:
            LeaseLostError: When the worker no longer holds the job
        """
        return await self._finish(job_id, worker_id, version, JobStatus.FAILED, error=error)

    async def _finish(
        self,
        job_id: uuid.UUID,
        worker_id: str,
        version: int,
        status: JobStatus,
        result: dict[str, Any] | None = None,
        error: dict[str, Any] | None = None,
    ) -> GenerationJob:
        async with self._session_factory() as session, session.begin():
            applied = await self._crud.finish(
                session,
                job_id,
                worker_id,
                version,
                status,
                now=utcnow(),
                result_data=result,
                error_details=error,
            )
            if not applied:
                raise LeaseLostError(job_id, worker_id)
            row = await self._crud.get_by_id(session, job_id)
            return GenerationJob.model_validate(row)

    async def request_cancel(self, job_id: uuid.UUID) -> GenerationJob:
        """
        Cancel a job.

        A queued job fails immediately with code ``cancelled``. An active
        job is flagged and stops at its next checkpoint. A terminal job is
        returned unchanged.

        Args:
            job_id: Job UUID

        Returns:
            GenerationJob: State after the request

        Raises:
            JobNotFoundError: When the job does not exist
        """
        for _ in range(_MAX_CANCEL_RACES):
            async with self._session_factory() as session, session.begin():
                row = await self._crud.get_by_id(session, job_id)
                if row is None:
                    raise JobNotFoundError(job_id)

                if row.status.is_terminal:
                    return GenerationJob.model_validate(row)

                if row.status is JobStatus.QUEUED:
                    applied = await self._crud.fail_queued(session, row, CANCELLED_ERROR, utcnow())
                else:
                    applied = await self._crud.request_cancel(session, job_id)

                if applied:
                    row = await self._crud.get_by_id(session, job_id)
                    logger.info(
                        f"{__name__}:request_cancel - Job {job_id} cancel applied "
                        f"(status={row.status.value})"
                    )
                    return GenerationJob.model_validate(row)
            # Status moved underneath us (claimed or finished); re-read.
        return await self.get(job_id)

    async def recover_expired_leases(self, max_attempts: int) -> tuple[int, int]:
        """
        Requeue active jobs whose lease expired, or fail them when exhausted.

        Args:
            max_attempts: Claims allowed before an orphaned job is failed

        Returns:
            tuple[int, int]: (requeued, failed) counts
        """
        requeued = failed = 0
        async with self._session_factory() as session, session.begin():
            now = utcnow()
            expired = await self._crud.list_expired_leases(session, now)
            for row in expired:
                if row.attempts >= max_attempts:
                    error = {
                        "code": "lease_expired",
                        "message": "Worker lease expired too many times",
                        "retryable": False,
                        "details": {
                            "attempts": row.attempts,
                            "last_worker": row.lease_owner,
                        },
                    }
                    if await self._crud.fail_expired(session, row, error, now):
                        failed += 1
                        logger.warning(
                            f"{__name__}:recover_expired_leases - Job {row.id} failed "
                            f"after {row.attempts} attempts"
                        )
                elif await self._crud.requeue_expired(session, row, now):
                    requeued += 1
                    logger.warning(
                        f"{__name__}:recover_expired_leases - Job {row.id} requeued "
                        f"(lease held by {row.lease_owner})"
                    )
        return requeued, failed
