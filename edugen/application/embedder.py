"""
Embedding generator.

Wraps a LangChain ``Embeddings`` backend (Ollama embeddings in
production, deterministic fake embeddings for offline runs and tests)
with a timeout and a dimension check, so a misconfigured model can never
reach the vector index.

Dependencies: langchain_core, langchain_ollama, edugen.configs
System role: Embedding generation adapter
"""

import asyncio
import logging

from langchain_core.embeddings import DeterministicFakeEmbedding, Embeddings
from langchain_ollama import OllamaEmbeddings

from edugen.configs.vector_store import VectorStoreSettings
from edugen.core.exceptions import (
    CallTimeoutError,
    EmbeddingDimensionError,
    EmbeddingError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def build_embeddings(settings: VectorStoreSettings) -> Embeddings:
    """
    Build the LangChain embedding backend named in settings.

    Args:
        settings: Vector store settings

    Returns:
        Embeddings: OllamaEmbeddings or DeterministicFakeEmbedding

    Raises:
        ValueError: If the provider is not supported
    """
    provider = settings.embedding_provider.lower()
    if provider == "ollama":
        return OllamaEmbeddings(
            model=settings.embedding_model,
            base_url=settings.embedding_base_url,
        )
    if provider == "fake":
        return DeterministicFakeEmbedding(size=settings.embedding_dimension)
    raise ValueError(
        f"Invalid VECTOR_STORE_EMBEDDING_PROVIDER: {provider}. Must be 'ollama' or 'fake'."
    )


class EmbeddingGenerator:
    """Dimension-checked, time-bounded text embedding."""

    def __init__(
        self,
        embeddings: Embeddings,
        dimension: int,
        timeout_seconds: float = 30.0,
    ) -> None:
        """
        Initialize generator.

        Args:
            embeddings: LangChain embedding backend
            dimension: Expected vector length
            timeout_seconds: Bound on a single embedding call
        """
        self._embeddings = embeddings
        self.dimension = dimension
        self._timeout = timeout_seconds

    @property
    def embeddings(self) -> Embeddings:
        return self._embeddings

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Args:
            text: Text to embed

        Returns:
            list[float]: Vector of exactly ``dimension`` floats

        Raises:
            ValidationError: When text is empty
            CallTimeoutError: When the backend exceeds the timeout
            EmbeddingDimensionError: When the backend returns another length
            EmbeddingError: For any other backend failure
        """
        if not text or not text.strip():
            raise ValidationError("Cannot embed empty text", field="text")

        try:
            vector = await asyncio.wait_for(
                self._embeddings.aembed_query(text),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise CallTimeoutError(
                "Embedding call timed out",
                operation="embedding.embed",
                timeout_seconds=self._timeout,
            ) from e
        except Exception as e:
            logger.error(f"{__name__}:embed - Embedding backend failed: {e}", exc_info=True)
            raise EmbeddingError(f"Embedding backend failed: {e}") from e

        if len(vector) != self.dimension:
            raise EmbeddingDimensionError(self.dimension, len(vector))
        return [float(x) for x in vector]
