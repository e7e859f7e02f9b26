"""Abstract base class for vector-store service providers.

Defines the contract for storing embedded chunks and finding the nearest
ones to a query vector.  The reference implementation is the in-memory
:class:`~src.providers.vector_store.memory_vector_store.InMemoryVectorStore`;
any other backend can be injected through this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import VectorItem, VectorSearchResult


# Concrete implementation: InMemoryVectorStore (src/providers/vector_store/)
# Exact linear-scan cosine search, session-scoped, no persistence.
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by the RAG pipeline.

    Methods are async so network-backed stores can be dropped in without
    blocking the event loop.
    """

    @abstractmethod
    async def upsert(self, items: list[VectorItem]) -> None:
        """Insert or replace *items*, keyed by ``VectorItem.id``.

        Idempotent: upserting the same id again replaces the stored vector
        and metadata (last write wins).

        Raises
        ------
        src.utils.errors.VectorStoreError
            If the store operation fails.
        """

    @abstractmethod
    async def query_by_vector(self, vector: list[float], top_k: int = 5) -> list[VectorSearchResult]:
        """Return up to *top_k* items ranked by descending cosine similarity.

        Fewer than *top_k* results are returned only when the store holds
        fewer items.  Equal scores keep the store's insertion order.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"in_memory"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
