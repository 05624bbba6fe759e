"""
Domain models package.

Exports pydantic schemas for jobs, retrieval and content entities.
"""

from edugen.models.content import (
    ContentEntity,
    EmbeddingStatus,
    EntityContext,
    EntityType,
    SyncResult,
)
from edugen.models.job import (
    PAYLOAD_MODELS,
    ContentEnhancementPayload,
    ErrorDetail,
    GenerationJob,
    JobKind,
    JobStatus,
    JobStatusResponse,
    QuestionsBatchPayload,
    SyllabusGenerationPayload,
)
from edugen.models.retrieval import (
    ConversationTurn,
    GeneratedAnswer,
    Passage,
    RetrievalContext,
)

__all__ = [
    "ContentEntity",
    "EmbeddingStatus",
    "EntityContext",
    "EntityType",
    "SyncResult",
    "PAYLOAD_MODELS",
    "ContentEnhancementPayload",
    "ErrorDetail",
    "GenerationJob",
    "JobKind",
    "JobStatus",
    "JobStatusResponse",
    "QuestionsBatchPayload",
    "SyllabusGenerationPayload",
    "ConversationTurn",
    "GeneratedAnswer",
    "Passage",
    "RetrievalContext",
]
