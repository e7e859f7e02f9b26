"""Retrieval of the chunks most relevant to a topic or question.

Two strategies, tried in order:

1. **Vector search** -- embed the query with the active embedding provider,
   ask the vector store for the nearest neighbours, and resolve each hit
   back to a catalog chunk (or, if the catalog no longer holds it, to a
   chunk rebuilt from the preview stored in the vector metadata).

2. **Keyword fallback** -- Jaccard similarity between the query's and each
   chunk's lowercase whitespace tokens.  Used when no provider or store is
   wired, and whenever the vector path fails for any reason.

The vector path reports its result as a :class:`VectorOutcome` rather than
raising, so falling back is an explicit branch in :meth:`retrieve`.
Retrieval never raises to its caller.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from src.models.rag import DocumentChunk, VectorSearchResult
from src.utils.similarity import jaccard_similarity, tokenize

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_SOURCE = "document"


@dataclass(frozen=True)
class VectorOutcome:
    """Result of the vector retrieval path: chunks on success, a reason otherwise."""

    chunks: list[DocumentChunk] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, chunks: list[DocumentChunk]) -> VectorOutcome:
        return cls(chunks=chunks)

    @classmethod
    def failure(cls, reason: str) -> VectorOutcome:
        return cls(error=reason)


class RetrievalService:
    """Ranks catalog chunks against a query, semantically when possible.

    Stateless: the catalog snapshot and the provider/store wiring are passed
    in on every call, so the owning :class:`DocumentService` decides what
    "current" means.
    """

    async def retrieve(
        self,
        query: str,
        chunks: Sequence[DocumentChunk],
        embedding_provider: IEmbeddingProvider | None,
        vector_store: IVectorStoreProvider | None,
        top_k: int = 5,
        document_name: str | None = None,
    ) -> list[DocumentChunk]:
        """Return up to *top_k* chunks relevant to *query*, best first.

        An empty or whitespace-only query and a non-positive *top_k* return
        an empty list without touching any backend.
        """
        if not query or not query.strip() or top_k <= 0:
            return []

        if embedding_provider is not None and vector_store is not None:
            outcome = await self.vector_search(
                query, chunks, embedding_provider, vector_store, top_k, document_name
            )
            if outcome.ok:
                logger.debug("retrieval_vector", query_len=len(query), results=len(outcome.chunks))
                return outcome.chunks
            logger.warning("retrieval_vector_failed_fallback", reason=outcome.error)

        results = self.keyword_search(query, chunks, top_k)
        logger.debug("retrieval_keyword", query_len=len(query), results=len(results))
        return results

    async def vector_search(
        self,
        query: str,
        chunks: Sequence[DocumentChunk],
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        top_k: int,
        document_name: str | None = None,
    ) -> VectorOutcome:
        """Embed *query*, search *vector_store* and resolve hits to chunks."""
        try:
            query_vector = await embedding_provider.embed_text(query)
            hits = await vector_store.query_by_vector(query_vector, top_k=top_k)
        except Exception as exc:
            return VectorOutcome.failure(f"{type(exc).__name__}: {exc}")

        by_id = {chunk.id: chunk for chunk in chunks}
        found: list[DocumentChunk] = []
        for hit in hits:
            chunk = self._resolve_hit(hit, by_id, document_name)
            if chunk is not None:
                found.append(chunk)
        return VectorOutcome.success(found)

    @staticmethod
    def keyword_search(
        query: str,
        chunks: Sequence[DocumentChunk],
        top_k: int = 5,
    ) -> list[DocumentChunk]:
        """Rank *chunks* by Jaccard similarity to *query* and keep the top *top_k*.

        Zero-score chunks are still returned when fewer than *top_k* chunks
        share a token with the query.  Ties keep catalog order.
        """
        if top_k <= 0 or not chunks:
            return []
        query_tokens = tokenize(query)
        scored = [(jaccard_similarity(tokenize(chunk.content), query_tokens), chunk) for chunk in chunks]
        scored.sort(key=lambda pair: -pair[0])
        return [chunk for _, chunk in scored[:top_k]]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_hit(
        hit: VectorSearchResult,
        by_id: Mapping[str, DocumentChunk],
        document_name: str | None,
    ) -> DocumentChunk | None:
        """Map a search hit to a chunk; ``None`` when it cannot be shown."""
        meta: Mapping[str, Any] | None = hit.metadata
        if meta is None:
            return None

        chunk_id = str(meta.get("id") or hit.id)
        local = by_id.get(chunk_id)
        if local is not None:
            return local

        # Stale hit from a previous upload: rebuild from the stored preview.
        preview = str(meta.get("text_preview") or "")
        if not preview.strip():
            return None
        return DocumentChunk(
            id=chunk_id,
            content=preview,
            page_number=max(int(meta.get("page_number") or 1), 1),
            source=str(meta.get("source") or document_name or _DEFAULT_SOURCE),
            chunk_index=max(int(meta.get("chunk_index") or 0), 0),
        )
