"""
Vector database boundary.

Exports:
  - FAISSVectorIndex: Local FAISS index (cosine similarity)
  - VectorIndex: Async contract implemented by index backends
  - VectorRecord, VectorSearchResult: Record and result schemas
  - get_vector_index: Factory selecting the backend from settings
"""

from edugen.boundary.vdb.faiss_vector_index import FAISSVectorIndex
from edugen.boundary.vdb.vector_index_factory import get_vector_index
from edugen.boundary.vdb.vector_schemas import VectorIndex, VectorRecord, VectorSearchResult

__all__ = [
    "FAISSVectorIndex",
    "VectorIndex",
    "VectorRecord",
    "VectorSearchResult",
    "get_vector_index",
]
