"""
RAG query module.

Exports:
  - RAGEngine: Cache-first retrieval-augmented generation
  - build_cache_key: Deterministic answer cache key
  - build_context: Passage ordering and budgeting
"""

from edugen.core.rag_query.cache_key import build_cache_key
from edugen.core.rag_query.context_builder import build_context
from edugen.core.rag_query.engine import STAGES, Checkpoint, RAGEngine

__all__ = ["RAGEngine", "Checkpoint", "STAGES", "build_cache_key", "build_context"]
