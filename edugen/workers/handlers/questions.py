"""
Questions batch handler.

Generates a question set for one topic through the RAG engine, stores
each question as a content entity and synchronizes its embedding.
Question IDs derive from the job ID and position, so a job re-run after
lease recovery overwrites its own entities instead of duplicating them.

Dependencies: edugen.core.rag_query, edugen.application.embedding_sync,
    edugen.boundary.db.content_store
System role: questions-batch job kind
"""

import logging
import uuid
from typing import Any

from edugen.application.embedding_sync import EmbeddingSync
from edugen.boundary.db.content_store import ContentStore
from edugen.core.exceptions import OutputParsingError
from edugen.core.job_tracker import JobTracker
from edugen.core.llm_output import parse_json_list
from edugen.core.rag_query.engine import RAGEngine
from edugen.models.content import EmbeddingStatus, EntityContext, EntityType
from edugen.models.job import GenerationJob, QuestionsBatchPayload
from edugen.workers.handlers.prompts import QUESTIONS_TASK

logger = logging.getLogger(__name__)


def question_entity_id(job_id: uuid.UUID, index: int) -> uuid.UUID:
    """Stable entity ID for the index-th question of a job."""
    return uuid.uuid5(job_id, f"question-{index}")


def normalize_question(item: Any) -> dict[str, Any] | None:
    """Coerce one generated item into a question dict; None when unusable."""
    if isinstance(item, str):
        text = item.strip()
        return {"question": text} if text else None
    if not isinstance(item, dict):
        return None
    text = item.get("question") or item.get("text")
    if not isinstance(text, str) or not text.strip():
        return None
    normalized = {key: val for key, val in item.items() if key not in ("question", "text")}
    normalized["question"] = text.strip()
    return normalized


class QuestionsBatchHandler:
    """Generates, stores and indexes a batch of questions."""

    def __init__(
        self,
        rag_engine: RAGEngine,
        content_store: ContentStore,
        embedding_sync: EmbeddingSync,
    ) -> None:
        self._rag_engine = rag_engine
        self._content_store = content_store
        self._embedding_sync = embedding_sync

    async def __call__(self, job: GenerationJob, tracker: JobTracker) -> dict[str, Any]:
        """
        Generate the question batch.

        Args:
            job: Claimed job
            tracker: Progress and cancellation for the job

        Returns:
            dict: question IDs, IDs left pending embedding, the questions,
                sources, empty_context flag and model version

        Raises:
            OutputParsingError: When the answer holds no usable questions
        """
        payload = QuestionsBatchPayload.model_validate(job.payload)
        topic_id = str(payload.topic_id) if payload.topic_id else None
        filters = {
            "subject": payload.subject,
            "class_level": payload.class_level,
            "board": payload.board,
            "topic_id": topic_id,
        }
        task = QUESTIONS_TASK.format(
            count=payload.count,
            difficulty=payload.difficulty,
            question_type=payload.question_type,
            topic=payload.topic,
            subject=payload.subject,
            class_level=payload.class_level,
            board=payload.board,
        )

        answer = await self._rag_engine.query(task, filters, checkpoint=tracker.checkpoint)

        await tracker.checkpoint("postprocess")
        items = parse_json_list(answer.answer, key="questions")
        questions = [q for q in (normalize_question(item) for item in items) if q][: payload.count]
        if not questions:
            raise OutputParsingError(
                "Model output contains no usable questions",
                {"items": len(items)},
            )

        await tracker.checkpoint("persist")
        context = EntityContext(
            subject=payload.subject,
            class_level=payload.class_level,
            board=payload.board,
            teacher_id=payload.teacher_id,
            topic_id=topic_id,
        )
        question_ids: list[str] = []
        pending_ids: list[str] = []
        for index, question in enumerate(questions):
            entity = await self._content_store.upsert(
                EntityType.QUESTION,
                question["question"],
                context,
                entity_id=question_entity_id(job.id, index),
                attributes={**question, "topic": payload.topic, "difficulty": payload.difficulty},
                source_job_id=job.id,
            )
            sync_result = await self._embedding_sync.sync(
                entity.id,
                EntityType.QUESTION,
                entity.text,
                context,
            )
            question_ids.append(str(entity.id))
            if sync_result.status is EmbeddingStatus.PENDING:
                pending_ids.append(str(entity.id))
            await tracker.track_progress(index + 1, len(questions), start=90, end=99)

        if pending_ids:
            logger.warning(
                f"{__name__}:__call__ - {len(pending_ids)} questions of job {job.id} "
                f"left pending embedding"
            )

        return {
            "question_ids": question_ids,
            "pending_embedding_ids": pending_ids,
            "questions": questions,
            "sources": [passage.model_dump(mode="json") for passage in answer.sources],
            "empty_context": answer.empty_context,
            "model": answer.model,
        }
