"""
Exception hierarchy for the generation pipeline.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and carry a stable
``code`` and a ``retryable`` flag so workers can record them on jobs
as structured error details.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the pipeline
"""

from typing import Any


class EduGenException(Exception):
    """Base exception for all pipeline errors."""

    code: str = "error"
    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = dict(details or {})
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_error_detail(self) -> dict[str, Any]:
        """
        Build the structured error recorded on a failed job.

        Returns:
            dict: code, message, retryable flag and details (no traceback)
        """
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }


class ValidationError(EduGenException):
    """Raised when an input payload fails validation."""

    code = "validation_error"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details)


class NotFoundError(EduGenException):
    """Raised when a requested record does not exist."""

    code = "not_found"


class JobNotFoundError(NotFoundError):
    """Raised when a job ID is unknown to the job store."""

    def __init__(self, job_id: Any, details: dict[str, Any] | None = None) -> None:
        details = dict(details or {})
        details["job_id"] = str(job_id)
        super().__init__(f"Job not found: {job_id}", details)


class EntityNotFoundError(NotFoundError):
    """Raised when a topic or question entity does not exist."""

    def __init__(self, entity_id: Any, details: dict[str, Any] | None = None) -> None:
        details = dict(details or {})
        details["entity_id"] = str(entity_id)
        super().__init__(f"Content entity not found: {entity_id}", details)


class CallTimeoutError(EduGenException):
    """Raised when an external call exceeds its time bound."""

    code = "timeout"
    retryable = True

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        timeout_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize timeout error.

        Args:
            message: Error message
            operation: Operation that timed out (llm.generate, cache.get, ...)
            timeout_seconds: The bound that was exceeded
            details: Additional context
        """
        details = dict(details or {})
        if operation:
            details["operation"] = operation
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, details)


class LLMTimeoutError(CallTimeoutError):
    """Raised when the model server does not answer within max duration."""

    def __init__(self, timeout_seconds: float, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            f"LLM call exceeded {timeout_seconds}s",
            operation="llm.generate",
            timeout_seconds=timeout_seconds,
            details=details,
        )


class LLMError(EduGenException):
    """Base exception for model server failures."""

    code = "llm_error"

    def __init__(
        self,
        message: str,
        model: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if model:
            details["model"] = model
        super().__init__(message, details)


class LLMConnectionError(LLMError):
    """Raised when the model server refuses or drops the connection."""

    code = "llm_connection_error"
    retryable = True


class LLMMalformedResponseError(LLMError):
    """Raised when the model server answers with an unparseable body."""

    code = "llm_malformed_response"


class CircuitOpenError(EduGenException):
    """Raised when the circuit breaker refuses a call. Never retried."""

    code = "circuit_open"

    def __init__(
        self,
        endpoint: str,
        retry_after_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize circuit open error.

        Args:
            endpoint: Logical endpoint guarded by the breaker (model name)
            retry_after_seconds: Remaining cool-down, when known
            details: Additional context
        """
        details = dict(details or {})
        details["endpoint"] = endpoint
        if retry_after_seconds is not None:
            details["retry_after_seconds"] = round(retry_after_seconds, 3)
        self.endpoint = endpoint
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Circuit open for endpoint: {endpoint}", details)


class EmbeddingError(EduGenException):
    """Raised when embedding generation fails."""

    code = "embedding_error"
    retryable = True


class EmbeddingDimensionError(EduGenException):
    """Raised when a vector does not match the configured index dimension."""

    code = "embedding_dimension_mismatch"

    def __init__(
        self,
        expected: int,
        actual: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        details.update({"expected": expected, "actual": actual})
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}",
            details,
        )


class VectorStoreError(EduGenException):
    """Raised when vector store operations fail."""

    code = "vector_store_error"
    retryable = True

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (upsert, search, delete)
            details: Additional context
        """
        details = dict(details or {})
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class CacheStoreError(EduGenException):
    """Raised when the cache backend fails."""

    code = "cache_error"
    retryable = True


class ConcurrentModificationError(EduGenException):
    """Raised when an optimistic status transition loses a race."""

    code = "concurrent_modification"


class LeaseLostError(ConcurrentModificationError):
    """Raised when a worker writes to a job whose lease it no longer holds."""

    code = "lease_lost"

    def __init__(self, job_id: Any, worker_id: str, details: dict[str, Any] | None = None) -> None:
        details = dict(details or {})
        details.update({"job_id": str(job_id), "worker_id": worker_id})
        super().__init__(f"Lease lost on job {job_id}", details)


class JobCancelledError(EduGenException):
    """Raised at a pipeline checkpoint when cancellation was requested."""

    code = "cancelled"

    def __init__(self, job_id: Any, stage: str | None = None) -> None:
        details: dict[str, Any] = {"job_id": str(job_id)}
        if stage:
            details["stage"] = stage
        super().__init__("Job cancelled by request", details)


class OutputParsingError(EduGenException):
    """Raised when generated text cannot be parsed into the expected structure."""

    code = "output_parsing_error"


class InternalError(EduGenException):
    """Raised for unexpected backend failures."""

    code = "internal_error"
