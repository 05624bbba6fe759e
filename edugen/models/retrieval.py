"""
Retrieval domain models.

Passages, retrieval context, conversation turns and the generated answer
returned (and cached) by the RAG engine.

Dependencies: pydantic
System role: RAG engine data structures
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field


class Passage(BaseModel):
    """A retrieved passage with its source and similarity score."""

    source_id: str = Field(description="Owning entity ID in the relational store")
    text: str
    score: float = Field(description="Cosine similarity, higher is closer")
    metadata: dict[str, Any] = Field(default_factory=dict)


class RetrievalContext(BaseModel):
    """Query, the exact-match filters applied and the passages found."""

    query: str
    filters: dict[str, str] = Field(default_factory=dict)
    passages: list[Passage] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.passages


class ConversationTurn(BaseModel):
    """One prior message included in the prompt."""

    role: Literal["user", "assistant", "system"]
    content: str


class GeneratedAnswer(BaseModel):
    """Answer produced by the RAG engine; serialized as the cache value."""

    answer: str
    model: str = Field(description="Model version that produced the answer")
    sources: list[Passage] = Field(default_factory=list)
    empty_context: bool = Field(
        default=False,
        description="True when no passages matched and the model answered unassisted",
    )
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
