"""
Test suite for ContentStore against a real SQLite database.

Tests idempotent upsert by fixed ID, pending/synced embedding status
transitions, the reference vector copy and topic listing.

System role: Verification of the owning store for embedded entities
"""

import uuid

import pytest

from edugen.boundary.db.content_store import ContentStore
from edugen.core.exceptions import EntityNotFoundError
from edugen.models.content import EmbeddingStatus, EntityContext, EntityType

pytestmark = pytest.mark.integration

SCOPE = EntityContext(subject="Mathematics", class_level="8", board="CBSE")


class TestContentStoreUpsert:
    """Test suite for ContentStore.upsert()."""

    @pytest.mark.asyncio
    async def test_upsert_should_create_pending_entity(self, content_store: ContentStore) -> None:
        """Test a new entity starts pending with its scope columns set."""
        # Act
        entity = await content_store.upsert(EntityType.TOPIC, "Rational numbers", SCOPE)

        # Assert
        stored = await content_store.get(entity.id)
        assert stored.embedding_status is EmbeddingStatus.PENDING
        assert stored.subject == "Mathematics"
        assert stored.class_level == "8"
        assert stored.board == "CBSE"
        assert await content_store.get_embedding(entity.id) is None

    @pytest.mark.asyncio
    async def test_upsert_with_fixed_id_should_replace_text(
        self, content_store: ContentStore
    ) -> None:
        """Test re-running with the same ID updates the row instead of duplicating it."""
        # Arrange
        topic = await content_store.upsert(EntityType.TOPIC, "Fractions", SCOPE)
        context = SCOPE.model_copy(update={"topic_id": str(topic.id)})
        question_id = uuid.uuid4()
        await content_store.upsert(
            EntityType.QUESTION, "What is 1/2?", context, entity_id=question_id
        )

        # Act
        await content_store.upsert(
            EntityType.QUESTION,
            "What is 1/2 + 1/4?",
            context,
            entity_id=question_id,
            attributes={"answer": "3/4"},
        )

        # Assert
        questions = await content_store.list_by_topic(topic.id, EntityType.QUESTION)
        assert [q.id for q in questions] == [question_id]
        assert questions[0].text == "What is 1/2 + 1/4?"
        assert questions[0].attributes == {"answer": "3/4"}

    @pytest.mark.asyncio
    async def test_upsert_of_synced_entity_should_return_it_to_pending(
        self, content_store: ContentStore
    ) -> None:
        """Test changed content is never reported as synced with its old vector."""
        # Arrange
        entity = await content_store.upsert(EntityType.TOPIC, "Fractions", SCOPE)
        await content_store.mark_synced(entity.id, [0.1, 0.2])

        # Act
        updated = await content_store.upsert(
            EntityType.TOPIC, "Fractions and decimals", SCOPE, entity_id=entity.id
        )

        # Assert
        assert updated.embedding_status is EmbeddingStatus.PENDING


class TestContentStoreEmbeddingStatus:
    """Test suite for mark_synced/mark_pending/list_pending."""

    @pytest.mark.asyncio
    async def test_mark_synced_should_store_reference_vector(
        self, content_store: ContentStore
    ) -> None:
        """Test the reference copy and status are written together."""
        # Arrange
        entity = await content_store.upsert(EntityType.TOPIC, "Fractions", SCOPE)

        # Act
        synced = await content_store.mark_synced(entity.id, [0.1, 0.2, 0.3])

        # Assert
        assert synced.embedding_status is EmbeddingStatus.SYNCED
        assert synced.embedding_synced_at is not None
        assert synced.embedding_error is None
        assert await content_store.get_embedding(entity.id) == [0.1, 0.2, 0.3]

    @pytest.mark.asyncio
    async def test_mark_pending_should_record_error(self, content_store: ContentStore) -> None:
        """Test a failed sync keeps the entity pending with the last error."""
        # Arrange
        entity = await content_store.upsert(EntityType.TOPIC, "Fractions", SCOPE)

        # Act
        pending = await content_store.mark_pending(entity.id, "VectorStoreError: disk full", 2)

        # Assert
        assert pending.embedding_status is EmbeddingStatus.PENDING
        assert pending.embedding_error == "VectorStoreError: disk full"

    @pytest.mark.asyncio
    async def test_list_pending_should_exclude_synced(self, content_store: ContentStore) -> None:
        """Test reconciliation only sees pending entities."""
        # Arrange
        synced = await content_store.upsert(EntityType.TOPIC, "Fractions", SCOPE)
        pending = await content_store.upsert(EntityType.TOPIC, "Decimals", SCOPE)
        await content_store.mark_synced(synced.id, [0.5])

        # Act
        result = await content_store.list_pending()

        # Assert
        assert [e.id for e in result] == [pending.id]

    @pytest.mark.asyncio
    async def test_update_text_should_mark_pending(self, content_store: ContentStore) -> None:
        """Test editing text invalidates the embedding."""
        # Arrange
        entity = await content_store.upsert(EntityType.TOPIC, "Fractions", SCOPE)
        await content_store.mark_synced(entity.id, [0.5])

        # Act
        updated = await content_store.update_text(entity.id, "Fractions, revised")

        # Assert
        assert updated.text == "Fractions, revised"
        assert updated.embedding_status is EmbeddingStatus.PENDING


class TestContentStoreMissing:
    """Test suite for unknown entity handling."""

    @pytest.mark.asyncio
    async def test_unknown_entity_should_raise_not_found(
        self, content_store: ContentStore
    ) -> None:
        """Test reads and updates of a missing entity raise EntityNotFoundError."""
        # Arrange
        missing = uuid.uuid4()

        # Act & Assert
        with pytest.raises(EntityNotFoundError):
            await content_store.get(missing)
        with pytest.raises(EntityNotFoundError):
            await content_store.update_text(missing, "x")
        with pytest.raises(EntityNotFoundError):
            await content_store.mark_synced(missing, [0.1])

    @pytest.mark.asyncio
    async def test_delete_should_report_removal(self, content_store: ContentStore) -> None:
        """Test delete returns whether a row existed."""
        # Arrange
        entity = await content_store.upsert(EntityType.TOPIC, "Fractions", SCOPE)

        # Act & Assert
        assert await content_store.delete(entity.id) is True
        assert await content_store.delete(entity.id) is False
