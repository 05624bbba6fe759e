"""
Embedding synchronization.

Keeps the vector index consistent with the owning relational rows. A
sync embeds the entity text, upserts the vector with its scope metadata
and only then persists the reference copy and marks the row synced.
Transient failures are retried with backoff; a sync that still fails
leaves the row pending for reconciliation and never raises into the
flow that created the entity.

Dependencies: edugen.application.embedder, edugen.boundary.vdb,
    edugen.boundary.db.content_store, edugen.core.retry
System role: Relational store -> vector index consistency
"""

import logging
import uuid

from edugen.application.embedder import EmbeddingGenerator
from edugen.boundary.db.content_store import ContentStore
from edugen.boundary.vdb.vector_schemas import VectorIndex
from edugen.configs.vector_store import VectorStoreSettings
from edugen.core.exceptions import CallTimeoutError, EmbeddingError, VectorStoreError
from edugen.core.retry import call_with_retry
from edugen.models.content import EmbeddingStatus, EntityContext, EntityType, SyncResult
from edugen.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

RETRYABLE_SYNC_ERRORS = (CallTimeoutError, EmbeddingError, VectorStoreError)


class EmbeddingSync:
    """Embed -> index -> reference copy, with retry and pending fallback."""

    def __init__(
        self,
        embedder: EmbeddingGenerator,
        index: VectorIndex,
        content_store: ContentStore,
        settings: VectorStoreSettings,
    ) -> None:
        """
        Initialize embedding sync.

        Args:
            embedder: Embedding generator
            index: Vector index
            content_store: Owning store for entity rows
            settings: Retry policy (sync_* fields)
        """
        self._embedder = embedder
        self._index = index
        self._content_store = content_store
        self._settings = settings

    async def sync(
        self,
        entity_id: uuid.UUID,
        entity_type: EntityType,
        text: str,
        context: EntityContext,
    ) -> SyncResult:
        """
        Synchronize one entity's embedding.

        Args:
            entity_id: Owning entity ID
            entity_type: topic or question
            text: Text to embed
            context: Scope metadata stored with the vector

        Returns:
            SyncResult: synced, or pending with the error message
        """
        attempts = 0
        metadata = {
            **context.as_metadata(),
            "entity_id": str(entity_id),
            "entity_type": entity_type.value,
        }

        async def _embed_and_upsert() -> list[float]:
            nonlocal attempts
            attempts += 1
            vector = await self._embedder.embed(text)
            await self._index.upsert(str(entity_id), vector, metadata, text)
            return vector

        try:
            vector = await call_with_retry(
                _embed_and_upsert,
                operation="embedding_sync",
                retry_on=RETRYABLE_SYNC_ERRORS,
                max_attempts=self._settings.sync_max_attempts,
                initial_wait=self._settings.sync_initial_wait_seconds,
                max_wait=self._settings.sync_max_wait_seconds,
                jitter=self._settings.sync_initial_wait_seconds,
            )
            await self._content_store.mark_synced(entity_id, vector)
        except Exception as e:
            return await self._mark_pending(entity_id, e, attempts)

        logger.info(
            f"{__name__}:sync - Synced {entity_type.value} {entity_id} "
            f"(attempts={attempts})"
        )
        return SyncResult(entity_id=entity_id, status=EmbeddingStatus.SYNCED, attempts=attempts)

    async def _mark_pending(
        self,
        entity_id: uuid.UUID,
        error: Exception,
        attempts: int,
    ) -> SyncResult:
        message = f"{type(error).__name__}: {error}"
        log_with_context(
            logger,
            logging.WARNING,
            f"{__name__}:sync - Entity {entity_id} left pending after {attempts} attempts: {message}",
            entity_id=entity_id,
            attempts=attempts,
            error_type=type(error).__name__,
        )
        try:
            await self._content_store.mark_pending(entity_id, message[:1000], attempts)
        except Exception as store_error:
            logger.error(
                f"{__name__}:sync - Could not record pending state for {entity_id}: {store_error}"
            )
        return SyncResult(
            entity_id=entity_id,
            status=EmbeddingStatus.PENDING,
            error=message,
            attempts=attempts,
        )

    async def reconcile_pending(self, limit: int = 100) -> list[SyncResult]:
        """
        Re-run sync for entities left pending.

        Idempotent: an upsert replaces any vector already indexed for the
        entity, so overlapping runs converge.

        Args:
            limit: Maximum entities to process

        Returns:
            list[SyncResult]: One result per entity attempted
        """
        pending = await self._content_store.list_pending(limit)
        results = []
        for entity in pending:
            results.append(
                await self.sync(entity.id, entity.entity_type, entity.text, entity.context())
            )
        synced = sum(1 for result in results if result.status is EmbeddingStatus.SYNCED)
        if results:
            logger.info(
                f"{__name__}:reconcile_pending - {synced}/{len(results)} pending entities synced"
            )
        return results

    async def remove(self, entity_id: uuid.UUID) -> None:
        """Delete an entity's vector, then its row."""
        await self._index.delete(str(entity_id))
        await self._content_store.delete(entity_id)
