"""
Content entity ORM model.

Topics and questions, the entities whose text is embedded into the
vector index. Each row keeps the reference copy of its vector and the
sync status so the index can be rebuilt or reconciled from here.

Dependencies: sqlalchemy, edugen.boundary.db.base
System role: Owning store for embedded content
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from edugen.boundary.db.base import Base, TimestampMixin, UUIDMixin
from edugen.models.content import EmbeddingStatus, EntityType


class ContentModel(Base, UUIDMixin, TimestampMixin):
    """
    Content entity ORM model.

    Attributes:
        entity_type: topic or question
        text: Text that is embedded
        subject, class_level, board, teacher_id: Retrieval scope
        topic_id: Parent topic for questions
        attributes: Type-specific fields (question options, answer, ...)
        embedding: Reference copy of the indexed vector
        embedding_dimension: Length of the reference vector
        embedding_status: pending until index and reference copy agree
        embedding_error: Last sync failure message
        embedding_synced_at: Time of the last successful sync
        source_job_id: Job that generated the entity, if any
        embedding_attempts: Sync attempts since the last success
    """

    __tablename__ = "content_entities"
    __table_args__ = (
        Index("ix_content_entities_embedding_status", "embedding_status", "updated_at"),
        Index("ix_content_entities_scope", "subject", "class_level", "board"),
    )

    entity_type: Mapped[EntityType] = mapped_column(
        Enum(
            EntityType,
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            length=16,
        ),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)

    subject: Mapped[str | None] = mapped_column(String(255), nullable=True)
    class_level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    board: Mapped[str | None] = mapped_column(String(64), nullable=True)
    teacher_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    topic_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    attributes: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    embedding: Mapped[list | None] = mapped_column(JSON, nullable=True)
    embedding_dimension: Mapped[int | None] = mapped_column(Integer, nullable=True)
    embedding_status: Mapped[EmbeddingStatus] = mapped_column(
        Enum(
            EmbeddingStatus,
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            length=16,
        ),
        nullable=False,
        default=EmbeddingStatus.PENDING,
    )
    embedding_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    embedding_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    embedding_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    source_job_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
