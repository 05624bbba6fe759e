"""
Core business logic module.

Contains the exception hierarchy, failure isolation (circuit breaker,
retry), job tracking and the RAG query engine.
"""

from edugen.core.exceptions import (
    CallTimeoutError,
    CircuitOpenError,
    EduGenException,
    EmbeddingDimensionError,
    InternalError,
    JobCancelledError,
    JobNotFoundError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "EduGenException",
    "ValidationError",
    "NotFoundError",
    "JobNotFoundError",
    "CallTimeoutError",
    "CircuitOpenError",
    "EmbeddingDimensionError",
    "JobCancelledError",
    "InternalError",
]
