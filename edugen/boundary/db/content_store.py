"""
Content entity store.

Session-owning facade over ContentCRUD for topics and questions and
their embedding reference copies.

Dependencies: sqlalchemy, edugen.boundary.db.CRUD, edugen.models.content
System role: Owning store for embedded entities
"""

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker

from edugen.boundary.db.base import utcnow
from edugen.boundary.db.CRUD.content_crud import ContentCRUD, content_crud
from edugen.core.exceptions import EntityNotFoundError
from edugen.models.content import ContentEntity, EmbeddingStatus, EntityContext, EntityType


class ContentStore:
    """Topic and question persistence."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        crud: ContentCRUD = content_crud,
    ) -> None:
        self._session_factory = session_factory
        self._crud = crud

    async def upsert(
        self,
        entity_type: EntityType,
        text: str,
        context: EntityContext,
        *,
        entity_id: uuid.UUID | None = None,
        attributes: dict[str, Any] | None = None,
        source_job_id: uuid.UUID | None = None,
    ) -> ContentEntity:
        """
        Create an entity, or replace an existing one's text and scope.

        A changed entity always goes back to ``pending`` until it is
        re-synced, so its old vector is never reported as current.

        Args:
            entity_type: topic or question
            text: Text to embed
            context: Retrieval scope
            entity_id: Fixed ID (idempotent re-runs); generated when None
            attributes: Type-specific fields
            source_job_id: Generating job

        Returns:
            ContentEntity: Stored entity
        """
        fields = {
            "entity_type": entity_type,
            "text": text,
            "subject": context.subject,
            "class_level": context.class_level,
            "board": context.board,
            "teacher_id": context.teacher_id,
            "topic_id": uuid.UUID(context.topic_id) if context.topic_id else None,
            "attributes": attributes or {},
            "source_job_id": source_job_id,
            "embedding_status": EmbeddingStatus.PENDING,
        }
        async with self._session_factory() as session, session.begin():
            row = None
            if entity_id is not None:
                row = await self._crud.update_by_id(session, entity_id, **fields)
            if row is None:
                if entity_id is not None:
                    fields["id"] = entity_id
                row = await self._crud.create(session, **fields)
            return ContentEntity.model_validate(row)

    async def get(self, entity_id: uuid.UUID) -> ContentEntity:
        """
        Fetch an entity.

        Raises:
            EntityNotFoundError: When the entity does not exist
        """
        async with self._session_factory() as session:
            row = await self._crud.get_by_id(session, entity_id)
            if row is None:
                raise EntityNotFoundError(entity_id)
            return ContentEntity.model_validate(row)

    async def get_embedding(self, entity_id: uuid.UUID) -> list[float] | None:
        """Reference copy of the entity's vector, if synced at least once."""
        async with self._session_factory() as session:
            row = await self._crud.get_by_id(session, entity_id)
            if row is None:
                raise EntityNotFoundError(entity_id)
            return row.embedding

    async def update_text(self, entity_id: uuid.UUID, text: str) -> ContentEntity:
        """Replace an entity's text and mark it pending re-sync."""
        async with self._session_factory() as session, session.begin():
            row = await self._crud.update_by_id(
                session,
                entity_id,
                text=text,
                embedding_status=EmbeddingStatus.PENDING,
            )
            if row is None:
                raise EntityNotFoundError(entity_id)
            return ContentEntity.model_validate(row)

    async def list_by_topic(
        self,
        topic_id: uuid.UUID,
        entity_type: EntityType | None = None,
    ) -> list[ContentEntity]:
        """Entities attached to a topic."""
        async with self._session_factory() as session:
            rows = await self._crud.get_by_topic(session, topic_id, entity_type)
            return [ContentEntity.model_validate(row) for row in rows]

    async def list_pending(self, limit: int | None = None) -> list[ContentEntity]:
        """Entities awaiting embedding sync, least recently touched first."""
        async with self._session_factory() as session:
            rows = await self._crud.get_by_embedding_status(
                session, EmbeddingStatus.PENDING, limit
            )
            return [ContentEntity.model_validate(row) for row in rows]

    async def mark_synced(self, entity_id: uuid.UUID, embedding: list[float]) -> ContentEntity:
        """Persist the reference vector after a successful index upsert."""
        async with self._session_factory() as session, session.begin():
            row = await self._crud.mark_synced(session, entity_id, embedding, utcnow())
            if row is None:
                raise EntityNotFoundError(entity_id)
            return ContentEntity.model_validate(row)

    async def mark_pending(
        self,
        entity_id: uuid.UUID,
        error: str | None,
        attempts: int = 0,
    ) -> ContentEntity:
        """Record a failed sync; the entity stays pending for reconciliation."""
        async with self._session_factory() as session, session.begin():
            row = await self._crud.mark_pending(session, entity_id, error, attempts)
            if row is None:
                raise EntityNotFoundError(entity_id)
            return ContentEntity.model_validate(row)

    async def delete(self, entity_id: uuid.UUID) -> bool:
        """Delete an entity row. The caller removes its vector."""
        async with self._session_factory() as session, session.begin():
            return await self._crud.delete_by_id(session, entity_id)
