"""
Job progress tracking and cooperative cancellation.

A JobTracker is handed to a kind handler for the lifetime of one claimed
job. Its ``checkpoint(stage)`` is awaited between pipeline stages: it
stops the job when cancellation was requested and records the stage's
progress. Progress writes are best-effort; a failed write is logged and
never fails the job.

Dependencies: edugen.boundary.db.job_store, edugen.core.exceptions
System role: Job tracking business logic
"""

import logging
import uuid

from edugen.boundary.db.job_store import JobStore
from edugen.core.exceptions import JobCancelledError

logger = logging.getLogger(__name__)

# Pipeline stage -> progress recorded on reaching it.
STAGE_PROGRESS: dict[str, int] = {
    "start": 0,
    "cache_lookup": 10,
    "embedding": 10,
    "retrieval": 25,
    "prompt": 25,
    "generation": 50,
    "cache_store": 75,
    "postprocess": 75,
    "persist": 90,
    "complete": 100,
}


class JobTracker:
    """Progress and cancellation for one leased job."""

    def __init__(self, job_store: JobStore, job_id: uuid.UUID, worker_id: str) -> None:
        """
        Initialize job tracker.

        Args:
            job_store: Durable job store
            job_id: Job being processed
            worker_id: Worker holding the lease
        """
        self._job_store = job_store
        self.job_id = job_id
        self.worker_id = worker_id
        self.progress = 0

    async def checkpoint(self, stage: str) -> None:
        """
        Mark a stage boundary.

        Args:
            stage: Stage name (see STAGE_PROGRESS)

        Raises:
            JobCancelledError: When cancellation was requested for the job
        """
        await self.raise_if_cancelled(stage)
        progress = STAGE_PROGRESS.get(stage)
        if progress is not None:
            await self.set_progress(progress)

    async def raise_if_cancelled(self, stage: str | None = None) -> None:
        """Raise JobCancelledError when cancellation was requested."""
        try:
            cancelled = await self._job_store.is_cancel_requested(self.job_id)
        except Exception as e:
            logger.warning(f"{__name__}:raise_if_cancelled - Cancel check failed for {self.job_id}: {e}")
            return
        if cancelled:
            logger.info(f"{__name__}:raise_if_cancelled - Job {self.job_id} cancelled at {stage}")
            raise JobCancelledError(self.job_id, stage)

    async def set_progress(self, progress: int) -> None:
        """Record progress if it is higher than the last recorded value."""
        if progress <= self.progress:
            return
        try:
            await self._job_store.update_progress(self.job_id, self.worker_id, progress)
        except Exception as e:
            logger.warning(
                f"{__name__}:set_progress - Progress write failed for {self.job_id} "
                f"({progress}%): {e}"
            )
            return
        self.progress = progress

    async def track_progress(self, current: int, total: int, start: int, end: int) -> None:
        """
        Record progress through a batch as a share of a progress range.

        Args:
            current: Items done
            total: Items in the batch
            start: Progress at the start of the batch
            end: Progress when the batch is done
        """
        if total <= 0:
            return
        share = min(current, total) / total
        await self.set_progress(start + int((end - start) * share))
