"""
Retrieval context builder.

Turns vector search results into a RetrievalContext: passages sorted by
descending similarity, capped at top-k and fitted to a character budget
by dropping the lowest-scoring passages first.

Dependencies: edugen.boundary.vdb, edugen.models.retrieval
System role: Prompt context assembly
"""

import logging

from edugen.boundary.vdb.vector_schemas import VectorSearchResult
from edugen.models.retrieval import Passage, RetrievalContext

logger = logging.getLogger(__name__)


def build_context(
    query: str,
    filters: dict[str, str],
    results: list[VectorSearchResult],
    top_k: int,
    max_chars: int,
) -> RetrievalContext:
    """
    Build the retrieval context for a query.

    Args:
        query: Original query
        filters: Exact-match filters used for the search
        results: Raw search results
        top_k: Maximum passages
        max_chars: Character budget for passage text

    Returns:
        RetrievalContext: Ordered, budgeted passages
    """
    passages = [
        Passage(source_id=result.id, text=result.text, score=result.score, metadata=result.metadata)
        for result in results
    ]
    passages.sort(key=lambda p: p.score, reverse=True)
    passages = passages[:top_k]

    total = sum(len(p.text) for p in passages)
    dropped = 0
    while passages and total > max_chars:
        total -= len(passages.pop().text)
        dropped += 1
    if dropped:
        logger.info(
            f"{__name__}:build_context - Dropped {dropped} lowest-scoring passages "
            f"to fit {max_chars} chars"
        )

    return RetrievalContext(query=query, filters=filters, passages=passages)
