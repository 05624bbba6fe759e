"""Boundary adapters: database, vector index, cache and LLM runtime."""
