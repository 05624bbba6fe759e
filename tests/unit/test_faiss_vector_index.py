"""
Test suite for FAISSVectorIndex.

Tests dimension enforcement, exact-match metadata filtering, upsert
replacement, deletion and persistence to disk. Uses the deterministic
fake embedding backend.

System role: Verification of the vector index used for retrieval
"""

import pytest

from edugen.boundary.vdb.faiss_vector_index import FAISSVectorIndex
from edugen.boundary.vdb.vector_index_factory import get_vector_index
from edugen.configs.vector_store import VectorStoreSettings
from edugen.core.exceptions import EmbeddingDimensionError

DIM = 16


def _unit(position: int) -> list[float]:
    vector = [0.0] * DIM
    vector[position] = 1.0
    return vector


@pytest.fixture
def index(fake_embeddings) -> FAISSVectorIndex:
    return FAISSVectorIndex(fake_embeddings, dimension=DIM)


class TestFAISSVectorIndexWrites:
    """Test suite for upsert/delete."""

    @pytest.mark.asyncio
    async def test_upsert_should_reject_wrong_dimension(self, index: FAISSVectorIndex) -> None:
        """Test a mis-sized vector is refused and the index is left unchanged."""
        # Arrange
        await index.upsert("t-1", _unit(0), {"subject": "Mathematics"}, "Fractions")

        # Act
        with pytest.raises(EmbeddingDimensionError) as exc_info:
            await index.upsert("t-2", [1.0] * (DIM + 1), {"subject": "Mathematics"}, "Decimals")

        # Assert
        assert exc_info.value.details == {"expected": DIM, "actual": DIM + 1}
        assert await index.count() == 1

    @pytest.mark.asyncio
    async def test_upsert_should_replace_existing_vector(self, index: FAISSVectorIndex) -> None:
        """Test re-upserting an entity keeps exactly one vector with the new content."""
        # Arrange
        await index.upsert("t-1", _unit(0), {"subject": "Mathematics"}, "Old text")

        # Act
        await index.upsert("t-1", _unit(1), {"subject": "Mathematics"}, "New text")

        # Assert
        record = await index.get("t-1")
        assert await index.count() == 1
        assert record.text == "New text"
        assert record.vector[1] == pytest.approx(1.0)
        assert record.metadata["entity_id"] == "t-1"

    @pytest.mark.asyncio
    async def test_delete_should_remove_vector(self, index: FAISSVectorIndex) -> None:
        """Test delete reports whether anything was removed."""
        # Arrange
        await index.upsert("t-1", _unit(0), {}, "Fractions")

        # Act
        removed = await index.delete("t-1")
        removed_again = await index.delete("t-1")

        # Assert
        assert removed is True
        assert removed_again is False
        assert await index.get("t-1") is None

    @pytest.mark.asyncio
    async def test_upsert_should_persist_to_directory(self, fake_embeddings, tmp_path) -> None:
        """Test a new index instance over the same directory sees earlier writes."""
        # Arrange
        first = FAISSVectorIndex(fake_embeddings, dimension=DIM, persist_directory=str(tmp_path))
        await first.upsert("t-1", _unit(0), {"subject": "Science"}, "Cells")

        # Act
        second = FAISSVectorIndex(fake_embeddings, dimension=DIM, persist_directory=str(tmp_path))

        # Assert
        assert await second.count() == 1
        assert (await second.get("t-1")).metadata["subject"] == "Science"

    @pytest.mark.asyncio
    async def test_load_should_reject_persisted_index_of_other_dimension(
        self, fake_embeddings, tmp_path
    ) -> None:
        """Test reopening with a different configured dimension fails fast."""
        # Arrange
        first = FAISSVectorIndex(fake_embeddings, dimension=DIM, persist_directory=str(tmp_path))
        await first.upsert("t-1", _unit(0), {}, "Cells")

        # Act & Assert
        with pytest.raises(EmbeddingDimensionError):
            FAISSVectorIndex(fake_embeddings, dimension=DIM * 2, persist_directory=str(tmp_path))
    @pytest.mark.asyncio
    async def test_clear_should_drop_vectors_and_persisted_files(
        self, fake_embeddings, tmp_path
    ) -> None:
        """Test clear empties the index and a reopened index starts empty."""
        # Arrange
        index = FAISSVectorIndex(fake_embeddings, dimension=DIM, persist_directory=str(tmp_path))
        await index.upsert("t-1", _unit(0), {}, "Fractions")

        # Act
        index.clear()

        # Assert
        reopened = FAISSVectorIndex(fake_embeddings, dimension=DIM, persist_directory=str(tmp_path))
        assert await index.count() == 0
        assert await reopened.count() == 0



class TestFAISSVectorIndexSearch:
    """Test suite for search()."""

    @pytest.mark.asyncio
    async def test_search_empty_index_should_return_nothing(self, index: FAISSVectorIndex) -> None:
        """Test searching before any upsert."""
        # Act & Assert
        assert await index.search(_unit(0)) == []

    @pytest.mark.asyncio
    async def test_search_should_rank_by_cosine_similarity(self, index: FAISSVectorIndex) -> None:
        """Test the nearest vector scores ~1.0 and comes first."""
        # Arrange
        await index.upsert("near", _unit(0), {}, "near")
        await index.upsert("far", _unit(5), {}, "far")

        # Act
        results = await index.search(_unit(0), top_k=2)

        # Assert
        assert [r.id for r in results] == ["near", "far"]
        assert results[0].score == pytest.approx(1.0, abs=1e-5)
        assert results[1].score == pytest.approx(0.0, abs=1e-5)

    @pytest.mark.asyncio
    async def test_search_should_apply_every_filter_exactly(self, index: FAISSVectorIndex) -> None:
        """Test only results matching all filters are returned, even when less similar."""
        # Arrange
        await index.upsert("math-8", _unit(1), {"subject": "Mathematics", "class_level": "8"}, "a")
        await index.upsert("math-9", _unit(0), {"subject": "Mathematics", "class_level": "9"}, "b")
        await index.upsert("sci-8", _unit(0), {"subject": "Science", "class_level": "8"}, "c")

        # Act
        results = await index.search(
            _unit(0), {"subject": "Mathematics", "class_level": "8"}, top_k=5
        )

        # Assert
        assert [r.id for r in results] == ["math-8"]

    @pytest.mark.asyncio
    async def test_search_should_reject_wrong_dimension(self, index: FAISSVectorIndex) -> None:
        """Test query vectors are dimension-checked too."""
        # Act & Assert
        with pytest.raises(EmbeddingDimensionError):
            await index.search([1.0, 0.0])


class TestGetVectorIndex:
    """Test suite for get_vector_index()."""

    def test_faiss_store_type_should_build_faiss_index(self, fake_embeddings) -> None:
        """Test VECTOR_STORE_STORE_TYPE=faiss."""
        # Act
        index = get_vector_index(
            VectorStoreSettings(embedding_dimension=DIM), fake_embeddings
        )

        # Assert
        assert isinstance(index, FAISSVectorIndex)
        assert index.dimension == DIM

    def test_unknown_store_type_should_raise_value_error(self, fake_embeddings) -> None:
        """Test unsupported store types are a configuration error."""
        # Act & Assert
        with pytest.raises(ValueError):
            get_vector_index(VectorStoreSettings(store_type="pinecone"), fake_embeddings)
