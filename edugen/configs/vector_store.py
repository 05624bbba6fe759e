"""
Vector store configuration settings.

Manages the FAISS index, the embedding backend and the retry policy
used when synchronizing entity embeddings into the index.

Dependencies: pydantic, pydantic_settings
System role: Vector database configuration for RAG retrieval
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from edugen.configs.base import BaseSettings


class VectorStoreSettings(BaseSettings):
    """Vector store and embedding configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VECTOR_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: str = Field(
        default="faiss",
        description="Vector store type (only 'faiss' is bundled)",
    )
    persist_directory: str | None = Field(
        default=None,
        description="Directory for FAISS index persistence; None keeps the index in memory",
    )

    embedding_provider: str = Field(
        default="ollama",
        description="Embedding backend: 'ollama' for the local runtime, 'fake' for offline runs",
    )
    embedding_model: str = Field(
        default="nomic-embed-text",
        description="Embedding model served by the local runtime",
    )
    embedding_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the embedding server",
    )
    embedding_dimension: int = Field(
        default=768,
        ge=1,
        description="Embedding vector dimension; must match the index exactly",
    )
    embedding_timeout_seconds: float = Field(default=30.0, gt=0)

    operation_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a single index upsert or search",
    )

    # Embedding sync retry policy
    sync_max_attempts: int = Field(default=4, ge=1)
    sync_initial_wait_seconds: float = Field(default=0.5, ge=0.0)
    sync_max_wait_seconds: float = Field(default=10.0, ge=0.0)

    filterable_metadata_fields: list[str] = Field(
        default=["subject", "class_level", "board", "teacher_id", "topic_id", "entity_type"],
        description="Metadata fields available for filtering",
    )
