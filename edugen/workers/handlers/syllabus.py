"""
Syllabus generation handler.

Retrieval-grounded syllabus for one subject/class/board, scoped to the
owning teacher when given.

Dependencies: edugen.core.rag_query, edugen.core.llm_output
System role: syllabus-generation job kind
"""

import logging
from typing import Any

from edugen.core.exceptions import OutputParsingError
from edugen.core.job_tracker import JobTracker
from edugen.core.llm_output import parse_json_output
from edugen.core.rag_query.engine import RAGEngine
from edugen.models.job import GenerationJob, SyllabusGenerationPayload
from edugen.workers.handlers.prompts import SYLLABUS_TASK

logger = logging.getLogger(__name__)


class SyllabusGenerationHandler:
    """Generates a syllabus document through the RAG engine."""

    def __init__(self, rag_engine: RAGEngine) -> None:
        self._rag_engine = rag_engine

    async def __call__(self, job: GenerationJob, tracker: JobTracker) -> dict[str, Any]:
        """
        Generate the syllabus.

        Args:
            job: Claimed job
            tracker: Progress and cancellation for the job

        Returns:
            dict: document text, parsed syllabus (or None), sources,
                empty_context flag and model version
        """
        payload = SyllabusGenerationPayload.model_validate(job.payload)
        filters = {
            "subject": payload.subject,
            "class_level": payload.class_level,
            "board": payload.board,
            "teacher_id": payload.teacher_id,
        }
        task = SYLLABUS_TASK.format(
            subject=payload.subject,
            class_level=payload.class_level,
            board=payload.board,
            num_units=payload.num_units,
            instructions=f"Additional instructions: {payload.instructions}" if payload.instructions else "",
        )

        answer = await self._rag_engine.query(task, filters, checkpoint=tracker.checkpoint)

        await tracker.checkpoint("postprocess")
        try:
            syllabus = parse_json_output(answer.answer)
        except OutputParsingError as e:
            # The raw document is still a usable result.
            logger.warning(f"{__name__}:__call__ - Syllabus not structured for job {job.id}: {e}")
            syllabus = None

        return {
            "document": answer.answer,
            "syllabus": syllabus,
            "sources": [passage.model_dump(mode="json") for passage in answer.sources],
            "empty_context": answer.empty_context,
            "model": answer.model,
        }
