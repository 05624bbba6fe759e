"""
Vector index factory.

Depends on VECTOR_STORE_STORE_TYPE. Provides a consistent interface
regardless of the underlying implementation.

Dependencies: edugen.boundary.vdb, edugen.configs
System role: Vector index instantiation and selection
"""

import logging

from langchain_core.embeddings import Embeddings

from edugen.boundary.vdb.faiss_vector_index import FAISSVectorIndex
from edugen.configs.vector_store import VectorStoreSettings

logger = logging.getLogger(__name__)


def get_vector_index(settings: VectorStoreSettings, embeddings: Embeddings) -> FAISSVectorIndex:
    """
    Factory function to get the vector index based on configuration.

    Args:
        settings: Vector store settings
        embeddings: Embedding backend shared with the embedding generator

    Returns:
        FAISSVectorIndex: Configured vector index instance

    Raises:
        ValueError: If the store type is not supported
    """
    store_type = settings.store_type.lower()

    if store_type == "faiss":
        logger.info(
            f"{__name__}:get_vector_index - Creating FAISS index "
            f"(dim={settings.embedding_dimension}, persist={settings.persist_directory})"
        )
        return FAISSVectorIndex(
            embeddings=embeddings,
            dimension=settings.embedding_dimension,
            persist_directory=settings.persist_directory,
            operation_timeout_seconds=settings.operation_timeout_seconds,
        )

    raise ValueError(f"Invalid VECTOR_STORE_STORE_TYPE: {store_type}. Must be 'faiss'.")
