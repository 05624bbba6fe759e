"""
Shared test fixtures and configuration for entire test suite.

Provides: SQLite-backed stores, fake model server client, fake clock,
in-memory FAISS index and cache, a wired (not started) pipeline
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite, langchain_core
System role: Test infrastructure and fixture management
"""

import asyncio
import uuid
from collections.abc import Callable

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from edugen.application.embedder import EmbeddingGenerator
from edugen.boundary.cache.cache_store import InMemoryCacheStore
from edugen.boundary.db.connection import get_async_engine, get_async_session_factory
from edugen.boundary.db.content_store import ContentStore
from edugen.boundary.db.create_tables import create_all_tables
from edugen.boundary.db.job_store import JobStore
from edugen.boundary.llm.llm_schemas import LLMRequest, LLMResponse
from edugen.boundary.vdb.faiss_vector_index import FAISSVectorIndex
from edugen.configs import Settings
from edugen.configs.cache import CacheSettings
from edugen.configs.database import DatabaseSettings
from edugen.configs.job_queue import JobQueueSettings
from edugen.configs.llm import LLMSettings
from edugen.configs.rag import RAGSettings
from edugen.configs.resilience import CircuitBreakerSettings
from edugen.configs.vector_store import VectorStoreSettings
from edugen.models.job import GenerationJob, JobStatus

EMBEDDING_DIM = 16

SYLLABUS_JSON = (
    '{"subject": "Mathematics", "class": "8", "board": "CBSE", "units": ['
    '{"title": "Rational Numbers", "topics": ["Properties"], "outcomes": ["Compare rationals"]}]}'
)
QUESTIONS_JSON = (
    '[{"question": "What is 2/3 + 1/3?", "options": ["1", "2", "3", "4"], '
    '"answer": "1", "explanation": "Same denominator."}, '
    '{"question": "Is 0 a rational number?", "options": ["Yes", "No", "Maybe", "Never"], '
    '"answer": "Yes", "explanation": "0 = 0/1."}]'
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def default_responder(request: LLMRequest) -> str:
    """Canned model output keyed on the task wording."""
    if "questions on the topic" in request.prompt:
        return f"Here you go:\n```json\n{QUESTIONS_JSON}\n```"
    if "Design a syllabus" in request.prompt:
        return SYLLABUS_JSON
    if "improving teaching material" in request.prompt:
        return "Improved: fractions are parts of a whole."
    return "A grounded answer."


class FakeLLMClient:
    """
    Stand-in for OllamaClient.

    ``responder`` returns the text for a request, or an exception instance
    to raise. ``delay`` makes every call sleep first.
    """

    def __init__(
        self,
        responder: Callable[[LLMRequest], str | BaseException] = default_responder,
        delay: float = 0.0,
    ) -> None:
        self.responder = responder
        self.delay = delay
        self.requests: list[LLMRequest] = []
        self.closed = False

    async def generate(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.responder(request)
        if isinstance(outcome, BaseException):
            raise outcome
        return LLMResponse(text=outcome, model=request.model)

    async def health_check(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings tuned for fast, offline tests."""
    return Settings(
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'edugen.db'}"),
        llm=LLMSettings(
            model="test-model",
            max_duration_seconds=5.0,
            retry_max_attempts=2,
            retry_initial_wait_seconds=0.0,
            retry_max_wait_seconds=0.0,
            retry_jitter_seconds=0.0,
        ),
        circuit_breaker=CircuitBreakerSettings(
            failure_rate_threshold=0.5,
            window_size=4,
            minimum_calls=2,
            window_seconds=60.0,
            cooldown_seconds=30.0,
            backoff_multiplier=2.0,
            max_cooldown_seconds=120.0,
        ),
        vector_store=VectorStoreSettings(
            embedding_provider="fake",
            embedding_dimension=EMBEDDING_DIM,
            persist_directory=None,
            sync_max_attempts=2,
            sync_initial_wait_seconds=0.0,
            sync_max_wait_seconds=0.0,
        ),
        cache=CacheSettings(backend="memory", ttl_seconds=600),
        job_queue=JobQueueSettings(
            max_workers=2,
            poll_interval_seconds=0.05,
            lease_seconds=30.0,
            heartbeat_interval_seconds=5.0,
            reap_interval_seconds=5.0,
            job_timeout_seconds=10.0,
            max_attempts=3,
            shutdown_timeout_seconds=2.0,
        ),
        rag=RAGSettings(top_k=3, max_context_chars=2000, max_history_turns=4),
    )


@pytest.fixture
async def db_engine(test_settings: Settings):
    """
    File-backed SQLite database with all tables created.

    Yields:
        AsyncEngine: Engine disposed after the test
    """
    engine = get_async_engine(test_settings.database)
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return get_async_session_factory(db_engine)


@pytest.fixture
def job_store(session_factory) -> JobStore:
    return JobStore(session_factory)


@pytest.fixture
def content_store(session_factory) -> ContentStore:
    return ContentStore(session_factory)


@pytest.fixture
def fake_embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=EMBEDDING_DIM)


@pytest.fixture
def embedder(fake_embeddings) -> EmbeddingGenerator:
    return EmbeddingGenerator(fake_embeddings, dimension=EMBEDDING_DIM, timeout_seconds=5.0)


@pytest.fixture
def vector_index(fake_embeddings) -> FAISSVectorIndex:
    return FAISSVectorIndex(fake_embeddings, dimension=EMBEDDING_DIM, operation_timeout_seconds=5.0)


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore(max_entries=100)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
async def pipeline(
    test_settings,
    db_engine,
    fake_embeddings,
    vector_index,
    cache_store,
    fake_llm,
    fake_clock,
):
    """
    Pipeline wired to the test database and fakes; workers not started.

    Breakers use the fake clock so cool-downs only pass when a test advances it.

    Yields:
        Pipeline: Worker pool stopped on teardown
    """
    from edugen.core.circuit_breaker import CircuitBreakerRegistry
    from edugen.dependencies import build_pipeline

    built = build_pipeline(
        test_settings,
        engine=db_engine,
        embeddings=fake_embeddings,
        vector_index=vector_index,
        cache=cache_store,
        llm_client=fake_llm,
        breakers=CircuitBreakerRegistry(test_settings.circuit_breaker, clock=fake_clock),
        worker_prefix="test",
    )
    yield built
    await built.worker_pool.stop(timeout=1.0)


async def wait_for_terminal(
    job_store: JobStore,
    job_id: uuid.UUID,
    timeout: float = 10.0,
) -> GenerationJob:
    """Poll until the job is completed or failed."""
    deadline = asyncio.get_running_loop().time() + timeout
    while True:
        job = await job_store.get(job_id)
        if job.status.is_terminal:
            return job
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"Job {job_id} still {job.status.value} after {timeout}s")
        await asyncio.sleep(0.05)


async def wait_for_status(
    job_store: JobStore,
    job_id: uuid.UUID,
    status: JobStatus,
    timeout: float = 10.0,
) -> GenerationJob:
    """Poll until the job reaches a given status."""
    deadline = asyncio.get_running_loop().time() + timeout
    while True:
        job = await job_store.get(job_id)
        if job.status is status:
            return job
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"Job {job_id} never reached {status.value}")
        await asyncio.sleep(0.02)


@pytest.fixture
def wait_terminal(job_store):
    """Awaitable helper: wait_terminal(job_id, timeout=10.0) -> GenerationJob."""

    async def _wait(job_id: uuid.UUID, timeout: float = 10.0) -> GenerationJob:
        return await wait_for_terminal(job_store, job_id, timeout)

    return _wait


@pytest.fixture
def wait_status(job_store):
    """Awaitable helper: wait_status(job_id, status, timeout=10.0) -> GenerationJob."""

    async def _wait(job_id: uuid.UUID, status: JobStatus, timeout: float = 10.0) -> GenerationJob:
        return await wait_for_status(job_store, job_id, status, timeout)

    return _wait
