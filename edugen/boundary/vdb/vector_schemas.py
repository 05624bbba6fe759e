"""
Vector database schemas.

Pydantic models for vector operations (records, search results) and the
async contract every vector index backend implements.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from typing import Any, Protocol

from pydantic import BaseModel, Field


class VectorRecord(BaseModel):
    """A stored vector with its owning entity metadata."""

    id: str = Field(description="Owning entity ID")
    vector: list[float] = Field(description="Embedding vector")
    text: str = Field(default="", description="Indexed text")
    metadata: dict[str, Any] = Field(default_factory=dict)


class VectorSearchResult(BaseModel):
    """Single result from vector search."""

    id: str = Field(description="Owning entity ID")
    text: str = Field(description="Indexed text")
    metadata: dict[str, Any] = Field(default_factory=dict)
    score: float = Field(description="Cosine similarity (higher is closer)")


class VectorIndex(Protocol):
    """
    Async vector index contract.

    Every write and search rejects vectors whose length differs from
    ``dimension`` with EmbeddingDimensionError, leaving the index unchanged.
    """

    dimension: int

    async def upsert(
        self,
        id: str,
        vector: list[float],
        metadata: dict[str, Any],
        text: str = "",
    ) -> None: ...

    async def search(
        self,
        vector: list[float],
        filters: dict[str, Any] | None = None,
        top_k: int = 5,
    ) -> list[VectorSearchResult]: ...

    async def delete(self, id: str) -> bool: ...

    async def get(self, id: str) -> VectorRecord | None: ...

    async def count(self) -> int: ...
