"""
Job domain models and schemas.

Job kinds and statuses, per-kind payload schemas validated at submission,
and the read models returned by the submission API.

Dependencies: pydantic
System role: Generation job contracts
"""

import enum
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class JobKind(str, enum.Enum):
    """
    Generation job kinds. Each kind is its own queue partition.

    SYLLABUS_GENERATION: Retrieval-grounded syllabus for a subject/class/board
    QUESTIONS_BATCH: Retrieval-grounded question set for one topic
    CONTENT_ENHANCEMENT: Direct rewrite of existing content
    """

    SYLLABUS_GENERATION = "syllabus-generation"
    QUESTIONS_BATCH = "questions-batch"
    CONTENT_ENHANCEMENT = "content-enhancement"


class JobStatus(str, enum.Enum):
    """
    Job execution states.

    QUEUED: Persisted, waiting for a worker
    ACTIVE: Claimed by a worker holding a lease
    COMPLETED: Terminal; result is set
    FAILED: Terminal; error is set
    """

    QUEUED = "queued"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class CurriculumScope(BaseModel):
    """Subject/class/board scope shared by the generation payloads."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
        extra="forbid",
    )

    subject: str = Field(min_length=1, description="Subject name, e.g. Mathematics")
    class_level: str = Field(alias="class", min_length=1, description="Class or grade, e.g. 8")
    board: str = Field(min_length=1, description="Curriculum board, e.g. CBSE")
    teacher_id: str | None = Field(default=None, description="Owning teacher, scopes retrieval")


class SyllabusGenerationPayload(CurriculumScope):
    """Payload for syllabus-generation jobs."""

    num_units: int = Field(default=6, ge=1, le=20)
    instructions: str | None = Field(default=None, max_length=4000)


class QuestionsBatchPayload(CurriculumScope):
    """Payload for questions-batch jobs."""

    topic: str = Field(min_length=1)
    topic_id: uuid.UUID | None = Field(default=None, description="Topic entity scoping retrieval")
    count: int = Field(default=10, ge=1, le=50)
    question_type: str = Field(default="mcq")
    difficulty: str = Field(default="medium")


class ContentEnhancementPayload(BaseModel):
    """Payload for content-enhancement jobs; needs content or an entity to load it from."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        str_strip_whitespace=True,
        extra="forbid",
    )

    content: str | None = Field(default=None, max_length=20000)
    entity_id: uuid.UUID | None = None
    instructions: str = Field(default="Improve clarity and accuracy for students.", max_length=4000)
    subject: str | None = None
    class_level: str | None = Field(default=None, alias="class")
    board: str | None = None

    @model_validator(mode="after")
    def _require_source(self) -> "ContentEnhancementPayload":
        if not self.content and self.entity_id is None:
            raise ValueError("either 'content' or 'entity_id' is required")
        return self


PAYLOAD_MODELS: dict[JobKind, type[BaseModel]] = {
    JobKind.SYLLABUS_GENERATION: SyllabusGenerationPayload,
    JobKind.QUESTIONS_BATCH: QuestionsBatchPayload,
    JobKind.CONTENT_ENHANCEMENT: ContentEnhancementPayload,
}


class ErrorDetail(BaseModel):
    """Structured failure recorded on a job. Never contains a stack trace."""

    code: str
    message: str
    retryable: bool = False
    details: dict[str, Any] = Field(default_factory=dict)


class GenerationJob(BaseModel):
    """Read model of a persisted generation job."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    kind: JobKind
    payload: dict[str, Any]
    status: JobStatus
    progress: int = Field(ge=0, le=100)
    result: dict[str, Any] | None = None
    error: ErrorDetail | None = None
    attempts: int = 0
    version: int = 0
    lease_owner: str | None = None
    lease_expires_at: datetime | None = None
    cancel_requested: bool = False
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None


class JobStatusResponse(BaseModel):
    """Response schema for job polling."""

    id: uuid.UUID
    kind: JobKind
    status: JobStatus
    progress: int
    result: dict[str, Any] | None = None
    error: ErrorDetail | None = None
    created_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @classmethod
    def from_job(cls, job: GenerationJob) -> "JobStatusResponse":
        return cls(
            id=job.id,
            kind=job.kind,
            status=job.status,
            progress=job.progress,
            result=job.result if job.status is JobStatus.COMPLETED else None,
            error=job.error if job.status is JobStatus.FAILED else None,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
        )
