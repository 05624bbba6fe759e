"""
FAISS vector index.

Wraps LangChain FAISS over an inner-product flat index with L2-normalized
vectors, so scores are cosine similarities. Vectors are supplied by the
caller (embedding sync, RAG engine); the index never embeds text itself.

Dimension is enforced on every write and search before the index is
touched. Blocking FAISS calls run in a worker thread behind a lock and
are bounded by the configured operation timeout.

Dependencies: faiss-cpu, langchain_community.vectorstores, langchain_core
System role: Vector index for RAG retrieval
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any

import faiss
import numpy as np
from langchain_community.docstore.in_memory import InMemoryDocstore
from langchain_community.vectorstores import FAISS
from langchain_community.vectorstores.utils import DistanceStrategy
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from edugen.boundary.vdb.vector_schemas import VectorRecord, VectorSearchResult
from edugen.core.exceptions import CallTimeoutError, EmbeddingDimensionError, VectorStoreError

logger = logging.getLogger(__name__)

INDEX_NAME = "index"


class FAISSVectorIndex:
    """
    Local FAISS vector index keyed by owning entity ID.

    Attributes:
        dimension: Required vector length
    """

    def __init__(
        self,
        embeddings: Embeddings,
        dimension: int,
        persist_directory: str | None = None,
        operation_timeout_seconds: float = 30.0,
    ) -> None:
        """
        Initialize FAISS index, loading a persisted one when present.

        Args:
            embeddings: Embedding backend required by the LangChain wrapper
            dimension: Required vector length
            persist_directory: Directory for index persistence (None = memory only)
            operation_timeout_seconds: Bound on a single index operation

        Raises:
            EmbeddingDimensionError: When a persisted index has another dimension
        """
        self.dimension = dimension
        self._embeddings = embeddings
        self._timeout = operation_timeout_seconds
        self._persist_dir = Path(persist_directory) if persist_directory else None
        self._lock = threading.Lock()
        self._store = self._load_or_create_index()

    def _new_store(self) -> FAISS:
        return FAISS(
            embedding_function=self._embeddings,
            index=faiss.IndexFlatIP(self.dimension),
            docstore=InMemoryDocstore({}),
            index_to_docstore_id={},
            distance_strategy=DistanceStrategy.MAX_INNER_PRODUCT,
        )

    def _load_or_create_index(self) -> FAISS:
        """Load existing FAISS index or create an empty one."""
        if self._persist_dir and (self._persist_dir / f"{INDEX_NAME}.faiss").exists():
            store = FAISS.load_local(
                str(self._persist_dir),
                self._embeddings,
                index_name=INDEX_NAME,
                allow_dangerous_deserialization=True,
                distance_strategy=DistanceStrategy.MAX_INNER_PRODUCT,
            )
            if store.index.d != self.dimension:
                raise EmbeddingDimensionError(self.dimension, store.index.d)
            logger.info(
                f"{__name__}:_load_or_create_index - Loaded {store.index.ntotal} vectors "
                f"from {self._persist_dir}"
            )
            return store

        logger.info(f"{__name__}:_load_or_create_index - Creating empty index (dim={self.dimension})")
        return self._new_store()

    def _check_dimension(self, vector: list[float]) -> None:
        if len(vector) != self.dimension:
            raise EmbeddingDimensionError(self.dimension, len(vector))

    @staticmethod
    def _normalize(vector: list[float]) -> list[float]:
        """Scale to unit length so inner product equals cosine similarity."""
        arr = np.asarray(vector, dtype=np.float32)
        norm = float(np.linalg.norm(arr))
        if norm == 0.0:
            return arr.tolist()
        return (arr / norm).tolist()

    def _persist(self) -> None:
        if self._persist_dir is None:
            return
        self._persist_dir.mkdir(parents=True, exist_ok=True)
        self._store.save_local(str(self._persist_dir), index_name=INDEX_NAME)

    def _contains(self, id: str) -> bool:
        return id in self._store.docstore._dict

    # Synchronous operations (run in a worker thread)

    def upsert_sync(
        self,
        id: str,
        vector: list[float],
        metadata: dict[str, Any],
        text: str = "",
    ) -> None:
        """
        Insert or replace the vector owned by an entity.

        Args:
            id: Owning entity ID
            vector: Embedding of the entity text
            metadata: Exact-match filterable fields
            text: Indexed text returned with search results

        Raises:
            EmbeddingDimensionError: When the vector length is wrong
        """
        self._check_dimension(vector)
        with self._lock:
            if self._contains(id):
                self._store.delete([id])
            self._store.add_embeddings(
                text_embeddings=[(text, self._normalize(vector))],
                metadatas=[{**metadata, "entity_id": id}],
                ids=[id],
            )
            self._persist()

    def search_sync(
        self,
        vector: list[float],
        filters: dict[str, Any] | None = None,
        top_k: int = 5,
    ) -> list[VectorSearchResult]:
        """
        Top-k most similar vectors matching every filter exactly.

        Args:
            vector: Query embedding
            filters: Field -> required value; all must match
            top_k: Maximum results

        Returns:
            list[VectorSearchResult]: Results by descending similarity

        Raises:
            EmbeddingDimensionError: When the vector length is wrong
        """
        self._check_dimension(vector)
        with self._lock:
            total = self._store.index.ntotal
            if total == 0:
                return []
            # Exact filtering over the whole flat index; nothing is dropped
            # by an approximate pre-cut.
            raw = self._store.similarity_search_with_score_by_vector(
                self._normalize(vector),
                k=total,
            )

        filtered = self._filter_results(raw, filters or {})
        filtered.sort(key=lambda item: item[1], reverse=True)
        return [
            VectorSearchResult(
                id=doc.metadata.get("entity_id", ""),
                text=doc.page_content,
                metadata=dict(doc.metadata),
                score=float(score),
            )
            for doc, score in filtered[:top_k]
        ]

    @staticmethod
    def _filter_results(
        results: list[tuple[Document, float]],
        filters: dict[str, Any],
    ) -> list[tuple[Document, float]]:
        """Keep results whose metadata matches every filter value."""
        if not filters:
            return list(results)
        wanted = {key: str(val) for key, val in filters.items() if val is not None}
        filtered = []
        for doc, score in results:
            metadata = doc.metadata or {}
            if all(str(metadata.get(key)) == val for key, val in wanted.items()):
                filtered.append((doc, score))
        return filtered

    def delete_sync(self, id: str) -> bool:
        """Remove an entity's vector; False when it was not indexed."""
        with self._lock:
            if not self._contains(id):
                return False
            self._store.delete([id])
            self._persist()
            return True

    def get_sync(self, id: str) -> VectorRecord | None:
        """Stored (normalized) vector and metadata for an entity."""
        with self._lock:
            if not self._contains(id):
                return None
            position = next(
                pos for pos, doc_id in self._store.index_to_docstore_id.items() if doc_id == id
            )
            doc = self._store.docstore.search(id)
            vector = self._store.index.reconstruct(position)
            return VectorRecord(
                id=id,
                vector=[float(x) for x in vector],
                text=doc.page_content,
                metadata=dict(doc.metadata),
            )

    def count_sync(self) -> int:
        with self._lock:
            return int(self._store.index.ntotal)

    def clear(self) -> None:
        """Drop every vector (and the persisted files)."""
        with self._lock:
            self._store = self._new_store()
            if self._persist_dir:
                for suffix in (".faiss", ".pkl"):
                    path = self._persist_dir / f"{INDEX_NAME}{suffix}"
                    if path.exists():
                        path.unlink()

    # Async contract

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise CallTimeoutError(
                f"Vector index {operation} timed out",
                operation=f"vector.{operation}",
                timeout_seconds=self._timeout,
            ) from e
        except (EmbeddingDimensionError, CallTimeoutError):
            raise
        except Exception as e:
            logger.error(f"{__name__}:{operation} - FAISS failure: {e}", exc_info=True)
            raise VectorStoreError(str(e), operation=operation) from e

    async def upsert(
        self,
        id: str,
        vector: list[float],
        metadata: dict[str, Any],
        text: str = "",
    ) -> None:
        await self._run("upsert", self.upsert_sync, id, vector, metadata, text)

    async def search(
        self,
        vector: list[float],
        filters: dict[str, Any] | None = None,
        top_k: int = 5,
    ) -> list[VectorSearchResult]:
        return await self._run("search", self.search_sync, vector, filters, top_k)

    async def delete(self, id: str) -> bool:
        return await self._run("delete", self.delete_sync, id)

    async def get(self, id: str) -> VectorRecord | None:
        return await self._run("get", self.get_sync, id)

    async def count(self) -> int:
        return await self._run("count", self.count_sync)
