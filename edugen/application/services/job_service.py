"""
Job service orchestrator.

Submission API for generation jobs: validates kind and payload, persists
the queued job, wakes the worker pool and reports status. Submission
returns as soon as the job is durable; generation happens in workers.

Dependencies: pydantic, edugen.boundary.db.job_store, edugen.models.job
System role: Job management orchestration
"""

import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from edugen.boundary.db.job_store import JobStore
from edugen.core.exceptions import ValidationError
from edugen.models.job import (
    PAYLOAD_MODELS,
    GenerationJob,
    JobKind,
    JobStatusResponse,
)
from edugen.observability.log_utils import summarize_payload

logger = logging.getLogger(__name__)


class JobService:
    """
    Job service orchestrator.

    Manages job lifecycle for generation tasks with status tracking.
    Provides abstraction over JobStore for submission and polling.
    """

    def __init__(
        self,
        job_store: JobStore,
        on_submit: Callable[[], None] | None = None,
    ) -> None:
        """
        Initialize job service.

        Args:
            job_store: Durable job store
            on_submit: Called after a job is persisted (wakes idle workers)
        """
        self._job_store = job_store
        self._on_submit = on_submit

    @staticmethod
    def validate(kind: JobKind | str, payload: dict[str, Any]) -> tuple[JobKind, dict[str, Any]]:
        """
        Validate a kind and payload.

        Args:
            kind: Job kind or its string value
            payload: Raw payload

        Returns:
            tuple: (JobKind, normalized JSON payload)

        Raises:
            ValidationError: On unknown kind or invalid payload
        """
        try:
            job_kind = JobKind(kind)
        except ValueError as e:
            raise ValidationError(
                f"Unknown job kind: {kind}",
                field="kind",
                details={"allowed": [k.value for k in JobKind]},
            ) from e

        if not isinstance(payload, dict):
            raise ValidationError("Payload must be an object", field="payload")

        model = PAYLOAD_MODELS[job_kind]
        try:
            validated = model.model_validate(payload)
        except PydanticValidationError as e:
            errors = [
                {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]
            raise ValidationError(
                f"Invalid payload for {job_kind.value}",
                field="payload",
                details={"errors": errors},
            ) from e
        return job_kind, validated.model_dump(mode="json", exclude_none=True)

    async def submit(self, kind: JobKind | str, payload: dict[str, Any]) -> UUID:
        """
        Submit a job for background generation.

        Args:
            kind: Job kind
            payload: Kind-specific payload

        Returns:
            UUID: Job ID, returned without waiting for generation

        Raises:
            ValidationError: On unknown kind or invalid payload; nothing is persisted
        """
        job_kind, normalized = self.validate(kind, payload)
        job = await self._job_store.create(job_kind, normalized)
        logger.info(
            f"{__name__}:submit - Queued {job_kind.value} job {job.id}",
            extra={"payload": summarize_payload(normalized)},
        )
        if self._on_submit is not None:
            self._on_submit()
        return job.id

    async def get_status(self, job_id: UUID) -> GenerationJob:
        """
        Fetch the full job record.

        Raises:
            JobNotFoundError: When the job does not exist
        """
        return await self._job_store.get(job_id)

    async def poll(self, job_id: UUID) -> JobStatusResponse:
        """
        Poll a job: status, progress and result or structured error.

        Raises:
            JobNotFoundError: When the job does not exist
        """
        job = await self._job_store.get(job_id)
        return JobStatusResponse.from_job(job)

    async def cancel(self, job_id: UUID) -> GenerationJob:
        """
        Request cancellation.

        Queued jobs fail immediately with code ``cancelled``; active jobs
        stop at their next pipeline checkpoint; terminal jobs are unchanged.

        Raises:
            JobNotFoundError: When the job does not exist
        """
        job = await self._job_store.request_cancel(job_id)
        logger.info(f"{__name__}:cancel - Cancel requested for {job_id} (status={job.status.value})")
        return job
