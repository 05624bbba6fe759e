"""
Content entity domain models.

Topics and questions owned by the relational store, with the reference
copy of their embedding and its sync status.

Dependencies: pydantic
System role: Content entity and embedding sync contracts
"""

import enum
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EntityType(str, enum.Enum):
    """Entity types that carry embeddings."""

    TOPIC = "topic"
    QUESTION = "question"


class EmbeddingStatus(str, enum.Enum):
    """
    Embedding sync status of an entity.

    PENDING: Not yet in the vector index (new, or last sync failed)
    SYNCED: Index and reference copy agree
    """

    PENDING = "pending"
    SYNCED = "synced"


class EntityContext(BaseModel):
    """Scope metadata written alongside an entity's vector."""

    subject: str | None = None
    class_level: str | None = None
    board: str | None = None
    teacher_id: str | None = None
    topic_id: str | None = None

    def as_metadata(self) -> dict[str, str]:
        """Non-empty fields as string metadata for the vector index."""
        return {key: str(val) for key, val in self.model_dump().items() if val is not None}


class ContentEntity(BaseModel):
    """Read model of a topic or question row."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    entity_type: EntityType
    text: str
    subject: str | None = None
    class_level: str | None = None
    board: str | None = None
    teacher_id: str | None = None
    topic_id: uuid.UUID | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    embedding_status: EmbeddingStatus
    embedding_error: str | None = None
    embedding_synced_at: datetime | None = None
    source_job_id: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime

    def context(self) -> EntityContext:
        """Scope metadata for embedding sync; topics scope by their own id."""
        topic_id = self.id if self.entity_type is EntityType.TOPIC else self.topic_id
        return EntityContext(
            subject=self.subject,
            class_level=self.class_level,
            board=self.board,
            teacher_id=self.teacher_id,
            topic_id=str(topic_id) if topic_id else None,
        )


class SyncResult(BaseModel):
    """Outcome of one embedding sync."""

    entity_id: uuid.UUID
    status: EmbeddingStatus
    error: str | None = None
    attempts: int = 0
