"""
Test suite for retrieval context assembly and cache keys.

Tests passage ordering, top-k capping, the character budget and
deterministic cache key derivation.

System role: Verification of RAG context and cache key helpers
"""

from edugen.boundary.vdb.vector_schemas import VectorSearchResult
from edugen.core.rag_query.cache_key import build_cache_key
from edugen.core.rag_query.context_builder import build_context
from edugen.models.retrieval import ConversationTurn


def _result(id: str, score: float, text: str = "x" * 10) -> VectorSearchResult:
    return VectorSearchResult(id=id, text=text, metadata={}, score=score)


class TestBuildContext:
    """Test suite for build_context()."""

    def test_should_sort_by_descending_score_and_cap_at_top_k(self) -> None:
        """Test the best top_k passages are kept in score order."""
        # Arrange
        results = [_result("a", 0.2), _result("b", 0.9), _result("c", 0.5), _result("d", 0.7)]

        # Act
        context = build_context("q", {}, results, top_k=3, max_chars=1000)

        # Assert
        assert [p.source_id for p in context.passages] == ["b", "d", "c"]

    def test_should_drop_lowest_scoring_passages_to_fit_budget(self) -> None:
        """Test the character budget removes passages from the bottom."""
        # Arrange
        results = [_result("a", 0.9, "a" * 40), _result("b", 0.8, "b" * 40), _result("c", 0.7, "c" * 40)]

        # Act
        context = build_context("q", {}, results, top_k=5, max_chars=90)

        # Assert
        assert [p.source_id for p in context.passages] == ["a", "b"]

    def test_should_be_empty_when_nothing_fits(self) -> None:
        """Test a zero budget yields an empty context."""
        # Act
        context = build_context("q", {"subject": "Maths"}, [_result("a", 0.9)], top_k=5, max_chars=0)

        # Assert
        assert context.is_empty
        assert context.filters == {"subject": "Maths"}


class TestBuildCacheKey:
    """Test suite for build_cache_key()."""

    def test_should_ignore_filter_order_and_surrounding_whitespace(self) -> None:
        """Test logically identical requests share a key."""
        # Act
        first = build_cache_key("p:", "Plan units", {"a": "1", "b": "2"}, "m@1")
        second = build_cache_key("p:", "  Plan units\n", {"b": "2", "a": "1"}, "m@1")

        # Assert
        assert first == second
        assert first.startswith("p:")
        assert len(first) == len("p:") + 64

    def test_should_change_with_model_version(self) -> None:
        """Test a model revision bump invalidates cached answers."""
        # Act & Assert
        assert build_cache_key("p:", "q", {}, "m@1") != build_cache_key("p:", "q", {}, "m@2")

    def test_should_change_with_history(self) -> None:
        """Test follow-up questions with history do not collide with the bare query."""
        # Arrange
        history = [ConversationTurn(role="user", content="earlier")]

        # Act & Assert
        assert build_cache_key("p:", "q", {}, "m@1") != build_cache_key("p:", "q", {}, "m@1", history)
        assert build_cache_key("p:", "q", {}, "m@1") == build_cache_key("p:", "q", {}, "m@1", [])
