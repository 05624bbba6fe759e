"""
Job queue and worker pool.

A bounded pool of asyncio workers pulls jobs from the durable job store.
Each claim visits the kind partitions round-robin, starting one further
along each time, so no kind starves; within a kind the oldest job wins.
A claimed job is leased to its worker: a heartbeat renews the lease
while the handler runs, and a reaper requeues (or fails) jobs whose
lease expired because their worker died.

Execution is at-least-once. Handlers are idempotent.

Dependencies: asyncio, edugen.boundary.db.job_store, edugen.workers.handlers,
    edugen.core.job_tracker, edugen.observability
System role: Background generation job processing
"""

import asyncio
import contextlib
import logging
import os
import socket
import uuid
from typing import Any

from edugen.boundary.db.job_store import JobStore
from edugen.configs.job_queue import JobQueueSettings
from edugen.core.exceptions import (
    CallTimeoutError,
    EduGenException,
    InternalError,
    LeaseLostError,
)
from edugen.core.job_tracker import JobTracker
from edugen.models.job import GenerationJob, JobKind
from edugen.observability.correlation import clear_correlation_id, set_correlation_id
from edugen.observability.log_utils import log_exception_with_context, summarize_payload
from edugen.workers.handlers.registry import HandlerRegistry

logger = logging.getLogger(__name__)


def _default_worker_prefix() -> str:
    return f"{socket.gethostname()}-{os.getpid()}-{uuid.uuid4().hex[:6]}"


class WorkerPool:
    """Bounded asyncio worker pool over the job store."""

    def __init__(
        self,
        job_store: JobStore,
        handlers: HandlerRegistry,
        settings: JobQueueSettings,
        worker_prefix: str | None = None,
    ) -> None:
        """
        Initialize worker pool.

        Args:
            job_store: Durable job store
            handlers: Kind -> handler registry
            settings: Pool size, lease and timeout configuration
            worker_prefix: Worker ID prefix (host/pid based by default)
        """
        self._job_store = job_store
        self._handlers = handlers
        self._settings = settings
        self._worker_prefix = worker_prefix or _default_worker_prefix()

        self._kinds: list[JobKind] = handlers.kinds
        self._next_kind = 0
        self._wakeup = asyncio.Event()
        self._stopping = asyncio.Event()
        self._workers: list[asyncio.Task] = []
        self._reaper: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return bool(self._workers) and not self._stopping.is_set()

    def notify(self) -> None:
        """Wake idle workers (called after a submission)."""
        self._wakeup.set()

    async def start(self) -> None:
        """Recover orphaned jobs, then start the workers and the lease reaper."""
        if self._workers:
            return
        self._stopping.clear()
        await self.recover_expired_leases()

        for index in range(self._settings.max_workers):
            worker_id = f"{self._worker_prefix}-w{index}"
            self._workers.append(
                asyncio.create_task(self._worker_loop(worker_id), name=f"worker:{worker_id}")
            )
        self._reaper = asyncio.create_task(self._reaper_loop(), name="lease-reaper")
        logger.info(
            f"{__name__}:start - Started {self._settings.max_workers} workers "
            f"for kinds {[kind.value for kind in self._kinds]}"
        )

    async def stop(self, timeout: float | None = None) -> None:
        """
        Stop the pool.

        Workers finish their current job if they can within the timeout,
        then are cancelled. Jobs cut off keep their lease and are
        recovered once it expires.

        Args:
            timeout: Grace period in seconds, 0 cancels in-flight jobs at once
                (defaults to shutdown_timeout_seconds)
        """
        if not self._workers:
            return
        timeout = self._settings.shutdown_timeout_seconds if timeout is None else timeout
        self._stopping.set()
        self._wakeup.set()

        if self._reaper is not None:
            self._reaper.cancel()
        _, pending = await asyncio.wait(self._workers, timeout=timeout)
        for task in pending:
            task.cancel()
        await asyncio.gather(
            *self._workers,
            *([self._reaper] if self._reaper else []),
            return_exceptions=True,
        )
        if pending:
            logger.warning(f"{__name__}:stop - Cancelled {len(pending)} workers with jobs in flight")
        self._workers = []
        self._reaper = None
        logger.info(f"{__name__}:stop - Worker pool stopped")

    def _claim_order(self) -> list[JobKind]:
        """Kind partitions rotated one step per claim."""
        if not self._kinds:
            return []
        start = self._next_kind % len(self._kinds)
        self._next_kind += 1
        return self._kinds[start:] + self._kinds[:start]

    async def run_once(self, worker_id: str) -> bool:
        """
        Claim and process at most one job.

        Args:
            worker_id: Claiming worker

        Returns:
            bool: True if a job was processed
        """
        job = await self._job_store.claim_next(
            worker_id,
            self._claim_order(),
            self._settings.lease_seconds,
        )
        if job is None:
            return False
        await self.process(job, worker_id)
        return True

    async def process(self, job: GenerationJob, worker_id: str) -> None:
        """
        Run the handler for a claimed job and record the outcome.

        Args:
            job: Job claimed by worker_id (status active)
            worker_id: Worker holding the lease
        """
        set_correlation_id(str(job.id))
        logger.info(
            f"{__name__}:process - {worker_id} started {job.kind.value} job {job.id} "
            f"(attempt {job.attempts})",
            extra={"payload": summarize_payload(job.payload)},
        )
        tracker = JobTracker(self._job_store, job.id, worker_id)
        heartbeat = asyncio.create_task(self._heartbeat(job.id, worker_id))
        result: dict[str, Any] | None = None
        error: dict[str, Any] | None = None
        try:
            handler = self._handlers.get(job.kind)
            await tracker.raise_if_cancelled("start")
            result = await asyncio.wait_for(
                handler(job, tracker),
                timeout=self._settings.job_timeout_seconds,
            )
        except asyncio.TimeoutError:
            error = CallTimeoutError(
                f"Job exceeded {self._settings.job_timeout_seconds}s",
                operation="job",
                timeout_seconds=self._settings.job_timeout_seconds,
            ).to_error_detail()
            logger.warning(f"{__name__}:process - Job {job.id} timed out")
        except EduGenException as e:
            error = e.to_error_detail()
            logger.warning(f"{__name__}:process - Job {job.id} failed: {e.code}: {e.message}")
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:process - Unexpected failure in job {job.id}",
                e,
                job_id=job.id,
                kind=job.kind.value,
            )
            error = InternalError(f"{type(e).__name__}: {e}").to_error_detail()
        finally:
            heartbeat.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await heartbeat

        try:
            if error is None:
                await self._job_store.complete(job.id, worker_id, job.version, result or {})
                logger.info(f"{__name__}:process - Job {job.id} completed")
            else:
                await self._job_store.fail(job.id, worker_id, job.version, error)
        except LeaseLostError:
            logger.warning(
                f"{__name__}:process - Lease on job {job.id} lost before the outcome "
                f"was written; another worker owns it now"
            )
        finally:
            clear_correlation_id()

    async def _heartbeat(self, job_id: uuid.UUID, worker_id: str) -> None:
        while True:
            await asyncio.sleep(self._settings.heartbeat_interval_seconds)
            try:
                held = await self._job_store.renew_lease(
                    job_id, worker_id, self._settings.lease_seconds
                )
            except Exception as e:
                logger.warning(f"{__name__}:_heartbeat - Lease renewal failed for {job_id}: {e}")
                continue
            if not held:
                logger.warning(f"{__name__}:_heartbeat - Lease on {job_id} lost")
                return

    async def _worker_loop(self, worker_id: str) -> None:
        while not self._stopping.is_set():
            try:
                processed = await self.run_once(worker_id)
            except Exception as e:
                logger.error(f"{__name__}:_worker_loop - {worker_id} claim failed: {e}", exc_info=True)
                processed = False
            if processed:
                continue
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    self._wakeup.wait(),
                    timeout=self._settings.poll_interval_seconds,
                )
            self._wakeup.clear()

    async def _reaper_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.reap_interval_seconds)
            await self.recover_expired_leases()

    async def recover_expired_leases(self) -> tuple[int, int]:
        """Requeue or fail jobs whose worker lease expired."""
        try:
            requeued, failed = await self._job_store.recover_expired_leases(
                self._settings.max_attempts
            )
        except Exception as e:
            logger.error(f"{__name__}:recover_expired_leases - Recovery failed: {e}", exc_info=True)
            return 0, 0
        if requeued or failed:
            logger.info(
                f"{__name__}:recover_expired_leases - Requeued {requeued}, failed {failed}"
            )
            self.notify()
        return requeued, failed
