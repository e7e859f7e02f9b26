"""In-memory vector store provider.

Implements :class:`IVectorStoreProvider` with a plain ``dict`` and an exact
linear cosine scan.  Fully local and session-scoped: nothing is persisted,
and the store is sized for one course document (tens to a few hundred
chunks), where a brute-force scan is faster than building an index.
"""

from __future__ import annotations

import asyncio

import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import VectorItem, VectorSearchResult
from src.utils.errors import VectorStoreError
from src.utils.similarity import cosine_similarity

logger = structlog.get_logger(logger_name=__name__)


class InMemoryVectorStore(IVectorStoreProvider):
    """Vector store backed by an insertion-ordered ``dict``.

    Parameters
    ----------
    strict_dimensions:
        When ``True``, querying with a vector whose length differs from a
        stored vector raises :class:`VectorStoreError`.  Otherwise the two
        are compared over their common prefix and a warning is logged.
    """

    def __init__(self, strict_dimensions: bool = False) -> None:
        self._items: dict[str, VectorItem] = {}
        self._strict_dimensions = strict_dimensions
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, items: list[VectorItem]) -> None:
        """Insert or replace *items*.

        A replaced id keeps its original insertion position, so tie-breaking
        among equal scores is stable across re-uploads.
        """
        if not items:
            return
        async with self._lock:
            for item in items:
                if not item.vector:
                    raise VectorStoreError(
                        message=f"Refusing to store empty vector for id {item.id}",
                        provider_name=self.get_provider_name(),
                        retryable=False,
                    )
                self._items[item.id] = item

        logger.debug("vectors_upserted", count=len(items), total=len(self._items))

    async def query_by_vector(self, vector: list[float], top_k: int = 5) -> list[VectorSearchResult]:
        """Return the *top_k* stored items closest to *vector* by cosine similarity."""
        if top_k <= 0 or not vector:
            return []

        async with self._lock:
            snapshot = list(self._items.values())

        mismatched = 0
        scored: list[VectorSearchResult] = []
        for item in snapshot:
            if len(item.vector) != len(vector):
                if self._strict_dimensions:
                    raise VectorStoreError(
                        message=(
                            f"Query vector has {len(vector)} dimensions but "
                            f"stored vector {item.id} has {len(item.vector)}"
                        ),
                        provider_name=self.get_provider_name(),
                        retryable=False,
                    )
                mismatched += 1
            scored.append(
                VectorSearchResult(
                    id=item.id,
                    score=cosine_similarity(vector, item.vector),
                    metadata=item.metadata,
                )
            )

        if mismatched:
            logger.warning(
                "vector_dimension_mismatch",
                query_dimension=len(vector),
                mismatched_items=mismatched,
            )

        # sorted() is stable, so equal scores keep insertion order.
        scored.sort(key=lambda result: -result.score)
        return scored[:top_k]

    async def count(self) -> int:
        return len(self._items)

    async def clear(self) -> None:
        """Drop every stored vector."""
        async with self._lock:
            self._items.clear()

    def get_provider_name(self) -> str:
        return "in_memory"

    def is_available(self) -> bool:
        return True
