"""
Dependency injection container.

Builds the generation pipeline from settings: database stores, vector
index, cache, circuit-broken LLM client, RAG engine, kind handlers,
worker pool and job service. Tests pass overrides for the backends they
replace with fakes.

Dependencies: edugen.configs, edugen.application, edugen.boundary, edugen.core,
    edugen.workers
System role: DI container for service wiring
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from langchain_core.embeddings import Embeddings
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from edugen.application.embedder import EmbeddingGenerator, build_embeddings
from edugen.application.embedding_sync import EmbeddingSync
from edugen.application.services.job_service import JobService
from edugen.boundary.cache.cache_factory import get_cache_store
from edugen.boundary.cache.cache_store import CacheStore
from edugen.boundary.db.connection import get_async_engine, get_async_session_factory
from edugen.boundary.db.content_store import ContentStore
from edugen.boundary.db.create_tables import create_all_tables
from edugen.boundary.db.job_store import JobStore
from edugen.boundary.llm.ollama_client import OllamaClient
from edugen.boundary.llm.resilient_client import ResilientLLMClient
from edugen.boundary.vdb.vector_index_factory import get_vector_index
from edugen.boundary.vdb.vector_schemas import VectorIndex
from edugen.configs import Settings, get_settings
from edugen.core.circuit_breaker import CircuitBreakerRegistry
from edugen.core.rag_query.engine import RAGEngine
from edugen.models.job import JobKind
from edugen.workers.handlers import (
    ContentEnhancementHandler,
    HandlerRegistry,
    QuestionsBatchHandler,
    SyllabusGenerationHandler,
)
from edugen.workers.job_queue import WorkerPool

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    """Wired pipeline components sharing one engine, index, cache and breaker registry."""

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker
    job_store: JobStore
    content_store: ContentStore
    embedder: EmbeddingGenerator
    vector_index: VectorIndex
    cache: CacheStore
    breakers: CircuitBreakerRegistry
    llm: ResilientLLMClient
    rag_engine: RAGEngine
    embedding_sync: EmbeddingSync
    handlers: HandlerRegistry
    worker_pool: WorkerPool
    job_service: JobService

    async def start(self, create_tables: bool = True) -> None:
        """
        Create tables if needed, retry pending embeddings and start the workers.

        Args:
            create_tables: Run metadata create_all before starting
        """
        if create_tables:
            await create_all_tables(self.engine)
        results = await self.embedding_sync.reconcile_pending()
        if results:
            logger.info(f"{__name__}:start - Reconciled {len(results)} pending embeddings")
        await self.worker_pool.start()

    async def close(self) -> None:
        """Stop workers and release network and database resources."""
        await self.worker_pool.stop()
        await self.llm.aclose()
        await self.cache.close()
        await self.engine.dispose()
        logger.info(f"{__name__}:close - Pipeline closed")


def build_pipeline(
    settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    embeddings: Embeddings | None = None,
    vector_index: VectorIndex | None = None,
    cache: CacheStore | None = None,
    llm_client: OllamaClient | None = None,
    breakers: CircuitBreakerRegistry | None = None,
    worker_prefix: str | None = None,
) -> Pipeline:
    """
    Wire the pipeline.

    Args:
        settings: Application settings (defaults to get_settings())
        engine: Database engine override
        embeddings: LangChain embedding backend override
        vector_index: Vector index override
        cache: Cache store override
        llm_client: Raw model client override
        breakers: Breaker registry override (tests inject a fake clock)
        worker_prefix: Worker ID prefix override

    Returns:
        Pipeline: Wired, not yet started
    """
    settings = settings or get_settings()

    if engine is None:
        engine = get_async_engine(settings.database)
    session_factory = get_async_session_factory(engine)
    job_store = JobStore(session_factory)
    content_store = ContentStore(session_factory)

    if embeddings is None:
        embeddings = build_embeddings(settings.vector_store)
    embedder = EmbeddingGenerator(
        embeddings,
        dimension=settings.vector_store.embedding_dimension,
        timeout_seconds=settings.vector_store.embedding_timeout_seconds,
    )
    if vector_index is None:
        vector_index = get_vector_index(settings.vector_store, embeddings)
    if cache is None:
        cache = get_cache_store(settings.cache)

    if breakers is None:
        breakers = CircuitBreakerRegistry(settings.circuit_breaker)
    if llm_client is None:
        llm_client = OllamaClient(
            base_url=settings.llm.base_url,
            connect_timeout_seconds=settings.llm.connect_timeout_seconds,
        )
    llm = ResilientLLMClient(llm_client, breakers, settings.llm)

    rag_engine = RAGEngine(embedder, vector_index, llm, cache, settings.rag, settings.cache)
    embedding_sync = EmbeddingSync(embedder, vector_index, content_store, settings.vector_store)

    handlers = HandlerRegistry(
        {
            JobKind.SYLLABUS_GENERATION: SyllabusGenerationHandler(rag_engine),
            JobKind.QUESTIONS_BATCH: QuestionsBatchHandler(rag_engine, content_store, embedding_sync),
            JobKind.CONTENT_ENHANCEMENT: ContentEnhancementHandler(llm, content_store, embedding_sync),
        }
    )
    worker_pool = WorkerPool(job_store, handlers, settings.job_queue, worker_prefix=worker_prefix)
    job_service = JobService(job_store, on_submit=worker_pool.notify)

    return Pipeline(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        job_store=job_store,
        content_store=content_store,
        embedder=embedder,
        vector_index=vector_index,
        cache=cache,
        breakers=breakers,
        llm=llm,
        rag_engine=rag_engine,
        embedding_sync=embedding_sync,
        handlers=handlers,
        worker_pool=worker_pool,
        job_service=job_service,
    )


@asynccontextmanager
async def running_pipeline(
    settings: Settings | None = None,
    **overrides,
) -> AsyncIterator[Pipeline]:
    """
    Build and start a pipeline, closing it on exit.

    Usage:
        async with running_pipeline() as pipeline:
            job_id = await pipeline.job_service.submit("syllabus-generation", payload)
    """
    pipeline = build_pipeline(settings, **overrides)
    await pipeline.start()
    try:
        yield pipeline
    finally:
        await pipeline.close()
