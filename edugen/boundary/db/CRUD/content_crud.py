"""
Content entity CRUD operations.

Extends BaseCRUD with embedding-status queries used by embedding sync
and reconciliation.

Dependencies: sqlalchemy, edugen.boundary.db.models.content_model
System role: Topic/question persistence
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edugen.boundary.db.CRUD.base_crud import BaseCRUD
from edugen.boundary.db.models.content_model import ContentModel
from edugen.models.content import EmbeddingStatus, EntityType


class ContentCRUD(BaseCRUD[ContentModel]):
    """CRUD operations for ContentModel."""

    def __init__(self) -> None:
        """Initialize ContentCRUD with ContentModel."""
        super().__init__(ContentModel)

    async def get_by_topic(
        self,
        session: AsyncSession,
        topic_id: UUID,
        entity_type: EntityType | None = None,
    ) -> Sequence[ContentModel]:
        """
        Retrieve entities attached to a topic.

        Args:
            session: Async database session
            topic_id: Parent topic UUID
            entity_type: Optional type filter

        Returns:
            Sequence of ContentModels ordered by creation time
        """
        stmt = select(ContentModel).where(ContentModel.topic_id == topic_id)
        if entity_type is not None:
            stmt = stmt.where(ContentModel.entity_type == entity_type)
        result = await session.execute(stmt.order_by(ContentModel.created_at))
        return result.scalars().all()

    async def get_by_embedding_status(
        self,
        session: AsyncSession,
        status: EmbeddingStatus,
        limit: int | None = None,
    ) -> Sequence[ContentModel]:
        """
        Retrieve entities by embedding status, least recently touched first.

        Args:
            session: Async database session
            status: Embedding status to filter by
            limit: Maximum number of entities to return

        Returns:
            Sequence of ContentModels with matching status
        """
        stmt = (
            select(ContentModel)
            .where(ContentModel.embedding_status == status)
            .order_by(ContentModel.updated_at)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def mark_synced(
        self,
        session: AsyncSession,
        id: UUID,
        embedding: list[float],
        now: datetime,
    ) -> ContentModel | None:
        """
        Persist the reference vector and mark the entity synced.

        Args:
            session: Async database session
            id: Entity UUID
            embedding: Vector written to the index
            now: Sync time

        Returns:
            Updated ContentModel if found, None otherwise
        """
        return await self.update_by_id(
            session,
            id,
            embedding=embedding,
            embedding_dimension=len(embedding),
            embedding_status=EmbeddingStatus.SYNCED,
            embedding_error=None,
            embedding_synced_at=now,
            embedding_attempts=0,
        )

    async def mark_pending(
        self,
        session: AsyncSession,
        id: UUID,
        error: str | None,
        attempts: int = 0,
    ) -> ContentModel | None:
        """
        Mark the entity pending reconciliation with the last error.

        Args:
            session: Async database session
            id: Entity UUID
            error: Failure message from the last sync
            attempts: Sync attempts made in the last run

        Returns:
            Updated ContentModel if found, None otherwise
        """
        return await self.update_by_id(
            session,
            id,
            embedding_status=EmbeddingStatus.PENDING,
            embedding_error=error,
            embedding_attempts=ContentModel.embedding_attempts + attempts,
        )


content_crud = ContentCRUD()
