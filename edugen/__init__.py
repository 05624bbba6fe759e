"""
Educational content generation pipeline.

Job queue, cache-first RAG retrieval, embedding synchronization and
LLM failure isolation for syllabus, question and content generation.
"""

__version__ = "0.1.0"
