"""
Content enhancement handler.

Direct model call without retrieval. When the payload names an entity,
its text is replaced with the enhanced version and re-synchronized.

Dependencies: edugen.boundary.llm, edugen.application.embedding_sync,
    edugen.boundary.db.content_store
System role: content-enhancement job kind
"""

from typing import Any

from edugen.application.embedding_sync import EmbeddingSync
from edugen.boundary.db.content_store import ContentStore
from edugen.boundary.llm.resilient_client import ResilientLLMClient
from edugen.core.exceptions import OutputParsingError
from edugen.core.job_tracker import JobTracker
from edugen.models.job import ContentEnhancementPayload, GenerationJob
from edugen.workers.handlers.prompts import ENHANCEMENT_TASK, scope_suffix


class ContentEnhancementHandler:
    """Rewrites content with the model and keeps entity embeddings current."""

    def __init__(
        self,
        llm: ResilientLLMClient,
        content_store: ContentStore,
        embedding_sync: EmbeddingSync,
    ) -> None:
        self._llm = llm
        self._content_store = content_store
        self._embedding_sync = embedding_sync

    async def __call__(self, job: GenerationJob, tracker: JobTracker) -> dict[str, Any]:
        """
        Enhance the content.

        Args:
            job: Claimed job
            tracker: Progress and cancellation for the job

        Returns:
            dict: original and enhanced text, model version, and for entity
                payloads the entity ID and its embedding status

        Raises:
            EntityNotFoundError: When entity_id does not exist
            OutputParsingError: When the model returns empty text
        """
        payload = ContentEnhancementPayload.model_validate(job.payload)

        await tracker.checkpoint("prompt")
        entity = None
        content = payload.content
        if payload.entity_id is not None:
            entity = await self._content_store.get(payload.entity_id)
            content = content or entity.text

        prompt = ENHANCEMENT_TASK.format(
            scope=scope_suffix(
                payload.subject or (entity.subject if entity else None),
                payload.class_level or (entity.class_level if entity else None),
                payload.board or (entity.board if entity else None),
            ),
            instructions=payload.instructions,
            content=content,
        )

        await tracker.checkpoint("generation")
        response = await self._llm.generate(prompt)
        enhanced = response.text.strip()
        if not enhanced:
            raise OutputParsingError("Model returned empty content")

        result: dict[str, Any] = {
            "original": content,
            "enhanced": enhanced,
            "model": self._llm.model_version,
        }

        if entity is not None:
            await tracker.checkpoint("persist")
            updated = await self._content_store.update_text(entity.id, enhanced)
            sync_result = await self._embedding_sync.sync(
                updated.id,
                updated.entity_type,
                updated.text,
                updated.context(),
            )
            result["entity_id"] = str(updated.id)
            result["embedding_status"] = sync_result.status.value

        return result
