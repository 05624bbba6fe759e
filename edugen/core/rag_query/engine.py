"""
Cache-first RAG engine.

Query protocol:
    1. Validate, derive the cache key; a hit returns at once
    2. Embed the query
    3. Vector search with mandatory exact-match filters
    4. Build the retrieval context within the character budget
    5. Single prompt through the circuit-broken LLM client
    6. Cache the answer with TTL and return it

A failure at any stage propagates as a typed error and nothing is
cached. Cache backend failures degrade to a miss. An optional
``checkpoint(stage)`` coroutine is awaited before each stage so job
workers can report progress and honour cancellation.

Dependencies: edugen.application.embedder, edugen.boundary.vdb,
    edugen.boundary.cache, edugen.boundary.llm, pydantic
System role: Retrieval-grounded generation for the job handlers
"""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from edugen.application.embedder import EmbeddingGenerator
from edugen.boundary.cache.cache_store import CacheStore
from edugen.boundary.llm.resilient_client import ResilientLLMClient
from edugen.boundary.vdb.vector_schemas import VectorIndex
from edugen.configs.cache import CacheSettings
from edugen.configs.rag import RAGSettings
from edugen.core.exceptions import CacheStoreError, CallTimeoutError, ValidationError
from edugen.core.rag_query.cache_key import build_cache_key
from edugen.core.rag_query.context_builder import build_context
from edugen.core.rag_query.prompt import build_rag_prompt
from edugen.models.retrieval import ConversationTurn, GeneratedAnswer

logger = logging.getLogger(__name__)

Checkpoint = Callable[[str], Awaitable[None]]

FILTERABLE_FIELDS = frozenset(
    {"subject", "class_level", "board", "teacher_id", "topic_id", "entity_type"}
)

STAGES = ("cache_lookup", "embedding", "retrieval", "prompt", "generation", "cache_store")


async def _noop_checkpoint(stage: str) -> None:
    return None


class RAGEngine:
    """Cache-first retrieval-augmented generation."""

    def __init__(
        self,
        embedder: EmbeddingGenerator,
        index: VectorIndex,
        llm: ResilientLLMClient,
        cache: CacheStore | None,
        rag_settings: RAGSettings,
        cache_settings: CacheSettings,
    ) -> None:
        """
        Initialize engine.

        Args:
            embedder: Query embedding generator
            index: Vector index searched for passages
            llm: Resilient LLM client
            cache: Answer cache (None disables caching)
            rag_settings: top-k, context budget, history length
            cache_settings: Key prefix and TTL
        """
        self._embedder = embedder
        self._index = index
        self._llm = llm
        self._cache = cache if rag_settings.cache_enabled else None
        self._rag_settings = rag_settings
        self._cache_settings = cache_settings

    async def query(
        self,
        query: str,
        filters: Mapping[str, Any] | None = None,
        conversation_history: Sequence[ConversationTurn | Mapping[str, Any]] | None = None,
        *,
        checkpoint: Checkpoint | None = None,
        top_k: int | None = None,
    ) -> GeneratedAnswer:
        """
        Answer a query grounded in retrieved passages.

        Args:
            query: Task or question text
            filters: Exact-match scope (subject, class_level, board, ...)
            conversation_history: Prior turns, oldest first
            checkpoint: Awaited before each stage with the stage name
            top_k: Passages to retrieve (defaults to configuration)

        Returns:
            GeneratedAnswer: Answer with its sources

        Raises:
            ValidationError: Empty query, unknown filter field or bad history turn
            CircuitOpenError: When the model's circuit is open
            CallTimeoutError: When embedding, search or generation timed out
            EmbeddingDimensionError: When the embedder and index disagree
        """
        if not query or not query.strip():
            raise ValidationError("Query must not be empty", field="query")
        checkpoint = checkpoint or _noop_checkpoint
        clean_filters = self._normalize_filters(filters)
        history = self._normalize_history(conversation_history)
        top_k = top_k or self._rag_settings.top_k

        await checkpoint("cache_lookup")
        cache_key = build_cache_key(
            self._cache_settings.key_prefix,
            query,
            clean_filters,
            self._llm.model_version,
            history,
        )
        cached = await self._cache_get(cache_key)
        if cached is not None:
            logger.info(f"{__name__}:query - Cache hit")
            return cached

        await checkpoint("embedding")
        vector = await self._embedder.embed(query)

        await checkpoint("retrieval")
        results = await self._index.search(vector, clean_filters, top_k)

        await checkpoint("prompt")
        context = build_context(
            query,
            clean_filters,
            results,
            top_k=top_k,
            max_chars=self._rag_settings.max_context_chars,
        )
        if context.is_empty:
            logger.info(
                f"{__name__}:query - No passages matched {clean_filters}; "
                f"generating without reference material"
            )
        prompt = build_rag_prompt(query, context.passages, history)

        await checkpoint("generation")
        response = await self._llm.generate(prompt)
        answer = GeneratedAnswer(
            answer=response.text,
            model=self._llm.model_version,
            sources=context.passages,
            empty_context=context.is_empty,
        )

        await checkpoint("cache_store")
        await self._cache_set(cache_key, answer)
        logger.info(
            f"{__name__}:query - Generated answer ({len(answer.answer)} chars, "
            f"{len(answer.sources)} sources)"
        )
        return answer

    @staticmethod
    def _normalize_filters(filters: Mapping[str, Any] | None) -> dict[str, str]:
        if not filters:
            return {}
        unknown = set(filters) - FILTERABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unsupported filter fields: {sorted(unknown)}",
                field="filters",
                details={"allowed": sorted(FILTERABLE_FIELDS)},
            )
        return {key: str(val) for key, val in filters.items() if val is not None and val != ""}

    def _normalize_history(
        self,
        history: Sequence[ConversationTurn | Mapping[str, Any]] | None,
    ) -> list[ConversationTurn]:
        if not history:
            return []
        try:
            turns = [
                turn if isinstance(turn, ConversationTurn) else ConversationTurn.model_validate(turn)
                for turn in history
            ]
        except PydanticValidationError as e:
            raise ValidationError("Invalid conversation history", field="conversation_history") from e
        limit = self._rag_settings.max_history_turns
        return turns[-limit:] if limit else []

    async def _cache_get(self, key: str) -> GeneratedAnswer | None:
        if self._cache is None:
            return None
        try:
            raw = await self._cache.get(key)
        except (CacheStoreError, CallTimeoutError) as e:
            logger.warning(f"{__name__}:_cache_get - Cache unavailable, treating as miss: {e}")
            return None
        if raw is None:
            return None
        try:
            return GeneratedAnswer.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning(f"{__name__}:_cache_get - Discarding undecodable cache entry")
            try:
                await self._cache.delete(key)
            except (CacheStoreError, CallTimeoutError) as e:
                logger.warning(f"{__name__}:_cache_get - Could not delete bad entry: {e}")
            return None

    async def _cache_set(self, key: str, answer: GeneratedAnswer) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(key, answer.model_dump_json(), self._cache_settings.ttl_seconds)
        except (CacheStoreError, CallTimeoutError) as e:
            logger.warning(f"{__name__}:_cache_set - Answer not cached: {e}")
