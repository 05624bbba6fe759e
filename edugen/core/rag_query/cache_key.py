"""
Cache key derivation for RAG answers.

Dependencies: hashlib, json
System role: Deterministic cache keys
"""

import hashlib
import json

from edugen.models.retrieval import ConversationTurn


def build_cache_key(
    prefix: str,
    query: str,
    filters: dict[str, str],
    model_version: str,
    history: list[ConversationTurn] | None = None,
) -> str:
    """
    Derive the cache key for a RAG query.

    Identical query, filters and model version map to the same key;
    filter order does not matter. Conversation history, when present,
    is folded in so follow-up questions do not collide.

    Args:
        prefix: Key namespace
        query: Query text (surrounding whitespace ignored)
        filters: Exact-match filters
        model_version: Model identity (name@revision)
        history: Prior conversation turns included in the prompt

    Returns:
        str: ``prefix`` followed by a SHA-256 hex digest
    """
    material = {
        "query": query.strip(),
        "filters": {key: str(val) for key, val in sorted(filters.items())},
        "model": model_version,
    }
    if history:
        material["history"] = [[turn.role, turn.content] for turn in history]
    encoded = json.dumps(material, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return prefix + hashlib.sha256(encoded.encode("utf-8")).hexdigest()
