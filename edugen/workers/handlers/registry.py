"""
Kind handler registry.

Maps each job kind to the coroutine that processes it.

Dependencies: edugen.models.job, edugen.core.job_tracker
System role: Job kind dispatch
"""

from typing import Any, Protocol

from edugen.core.exceptions import ValidationError
from edugen.core.job_tracker import JobTracker
from edugen.models.job import GenerationJob, JobKind


class JobHandler(Protocol):
    """Processes one claimed job and returns its JSON result."""

    async def __call__(self, job: GenerationJob, tracker: JobTracker) -> dict[str, Any]: ...


class HandlerRegistry:
    """Job kind -> handler mapping."""

    def __init__(self, handlers: dict[JobKind, JobHandler] | None = None) -> None:
        self._handlers: dict[JobKind, JobHandler] = dict(handlers or {})

    def register(self, kind: JobKind, handler: JobHandler) -> None:
        self._handlers[kind] = handler

    def get(self, kind: JobKind) -> JobHandler:
        """
        Look up the handler for a kind.

        Raises:
            ValidationError: When no handler is registered for the kind
        """
        handler = self._handlers.get(kind)
        if handler is None:
            raise ValidationError(f"No handler registered for job kind {kind.value}", field="kind")
        return handler

    @property
    def kinds(self) -> list[JobKind]:
        """Registered kinds in declaration order of JobKind."""
        return [kind for kind in JobKind if kind in self._handlers]
