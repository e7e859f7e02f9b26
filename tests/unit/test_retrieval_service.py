"""Unit tests for RetrievalService -- vector path, hit resolution, keyword fallback."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import DocumentChunk, VectorSearchResult
from src.providers.vector_store.memory_vector_store import InMemoryVectorStore
from src.services.document_service import DocumentService
from src.services.retrieval_service import RetrievalService, VectorOutcome
from tests.conftest import FailingEmbeddingProvider, MockEmbeddingProvider, build_pptx


def _chunk(chunk_id: str, content: str, page: int = 1, index: int = 0) -> DocumentChunk:
    return DocumentChunk(id=chunk_id, content=content, page_number=page, source="notes.pdf", chunk_index=index)


def _store_returning(*hits: VectorSearchResult) -> MagicMock:
    store = MagicMock(spec=IVectorStoreProvider)
    store.query_by_vector = AsyncMock(return_value=list(hits))
    store.get_provider_name.return_value = "mock-store"
    return store


CATALOG = [
    _chunk("c1", "Photosynthesis converts light energy into chemical energy"),
    _chunk("c2", "Gradient descent minimises the loss function step by step", page=2),
    _chunk("c3", "Mitochondria are the powerhouse of the cell", page=3),
]


class TestVectorOutcome:
    def test_success(self) -> None:
        outcome = VectorOutcome.success(CATALOG[:1])
        assert outcome.ok is True
        assert outcome.chunks == CATALOG[:1]

    def test_failure(self) -> None:
        outcome = VectorOutcome.failure("boom")
        assert outcome.ok is False
        assert outcome.chunks == []
        assert outcome.error == "boom"


class TestKeywordSearch:
    def test_best_overlap_first(self) -> None:
        results = RetrievalService.keyword_search("gradient descent loss", CATALOG, top_k=2)
        assert results[0].id == "c2"
        assert len(results) == 2

    def test_zero_score_chunks_fill_remaining_slots(self) -> None:
        results = RetrievalService.keyword_search("zzz", CATALOG, top_k=5)
        assert [c.id for c in results] == ["c1", "c2", "c3"]

    def test_ties_keep_catalog_order(self) -> None:
        chunks = [_chunk("a", "same words here"), _chunk("b", "same words here")]
        assert [c.id for c in RetrievalService.keyword_search("words", chunks)] == ["a", "b"]

    def test_empty_catalog(self) -> None:
        assert RetrievalService.keyword_search("anything", []) == []


class TestRetrieve:
    @pytest.mark.asyncio
    async def test_blank_query_returns_empty(self) -> None:
        service = RetrievalService()
        provider = MockEmbeddingProvider()
        store = _store_returning()

        assert await service.retrieve("   ", CATALOG, provider, store) == []
        assert await service.retrieve("", CATALOG, None, None) == []
        assert provider.queries == []
        store.query_by_vector.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_positive_top_k_returns_empty(self) -> None:
        assert await RetrievalService().retrieve("cell", CATALOG, None, None, top_k=0) == []

    @pytest.mark.asyncio
    async def test_keyword_mode_without_backends(self) -> None:
        results = await RetrievalService().retrieve("powerhouse cell", CATALOG, None, None, top_k=1)
        assert [c.id for c in results] == ["c3"]

    @pytest.mark.asyncio
    async def test_keyword_mode_with_only_provider(self) -> None:
        provider = MockEmbeddingProvider()
        results = await RetrievalService().retrieve("powerhouse cell", CATALOG, provider, None, top_k=1)
        assert [c.id for c in results] == ["c3"]
        assert provider.queries == []

    @pytest.mark.asyncio
    async def test_vector_hits_resolve_to_catalog_chunks(self) -> None:
        store = _store_returning(
            VectorSearchResult(id="c3", score=0.9, metadata={"id": "c3", "text_preview": "Mito..."}),
            VectorSearchResult(id="c1", score=0.4, metadata={"id": "c1", "text_preview": "Photo..."}),
        )

        results = await RetrievalService().retrieve("cells", CATALOG, MockEmbeddingProvider(), store, top_k=2)

        assert results == [CATALOG[2], CATALOG[0]]
        store.query_by_vector.assert_awaited_once()
        assert store.query_by_vector.await_args.kwargs["top_k"] == 2

    @pytest.mark.asyncio
    async def test_stale_hit_rebuilt_from_preview(self) -> None:
        store = _store_returning(
            VectorSearchResult(
                id="old",
                score=0.8,
                metadata={"id": "old", "text_preview": "Old slide text...", "page_number": 4, "chunk_index": 1},
            )
        )

        results = await RetrievalService().retrieve(
            "slide", CATALOG, MockEmbeddingProvider(), store, document_name="current.pptx"
        )

        assert len(results) == 1
        rebuilt = results[0]
        assert rebuilt.id == "old"
        assert rebuilt.content == "Old slide text..."
        assert rebuilt.page_number == 4
        assert rebuilt.chunk_index == 1
        assert rebuilt.source == "current.pptx"

    @pytest.mark.asyncio
    async def test_stale_hit_prefers_stored_source(self) -> None:
        store = _store_returning(
            VectorSearchResult(id="old", score=0.5, metadata={"text_preview": "Text", "source": "old.pdf"})
        )

        results = await RetrievalService().retrieve("text", [], MockEmbeddingProvider(), store)

        assert results[0].source == "old.pdf"
        assert results[0].page_number == 1
        assert results[0].chunk_index == 0

    @pytest.mark.asyncio
    async def test_stale_hit_without_any_name_uses_placeholder(self) -> None:
        store = _store_returning(VectorSearchResult(id="old", score=0.5, metadata={"text_preview": "Text"}))

        results = await RetrievalService().retrieve("text", [], MockEmbeddingProvider(), store)

        assert results[0].source == "document"

    @pytest.mark.asyncio
    async def test_hits_without_metadata_or_preview_are_skipped(self) -> None:
        store = _store_returning(
            VectorSearchResult(id="x", score=0.9, metadata=None),
            VectorSearchResult(id="y", score=0.8, metadata={"id": "y", "text_preview": "  "}),
            VectorSearchResult(id="c2", score=0.7, metadata={"id": "c2"}),
        )

        results = await RetrievalService().retrieve("loss", CATALOG, MockEmbeddingProvider(), store)

        assert [c.id for c in results] == ["c2"]

    @pytest.mark.asyncio
    async def test_empty_vector_result_is_not_a_failure(self) -> None:
        store = _store_returning()
        results = await RetrievalService().retrieve("cell", CATALOG, MockEmbeddingProvider(), store)
        assert results == []

    @pytest.mark.asyncio
    async def test_embedding_failure_falls_back_to_keywords(self) -> None:
        provider = FailingEmbeddingProvider()
        store = _store_returning()

        results = await RetrievalService().retrieve("powerhouse cell", CATALOG, provider, store, top_k=1)

        assert [c.id for c in results] == ["c3"]
        assert provider.calls == 1
        store.query_by_vector.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_falls_back_to_keywords(self) -> None:
        store = MagicMock(spec=IVectorStoreProvider)
        store.query_by_vector = AsyncMock(side_effect=RuntimeError("connection reset"))

        results = await RetrievalService().retrieve(
            "photosynthesis light", CATALOG, MockEmbeddingProvider(), store, top_k=1
        )

        assert [c.id for c in results] == ["c1"]

    @pytest.mark.asyncio
    async def test_vector_search_reports_failure_reason(self) -> None:
        outcome = await RetrievalService().vector_search(
            "q", CATALOG, FailingEmbeddingProvider(), _store_returning(), top_k=3
        )
        assert outcome.ok is False
        assert "EmbeddingError" in (outcome.error or "")


class TestRetrieveThroughDocumentService:
    @pytest.mark.asyncio
    async def test_semantic_round_trip(self, rag_service: DocumentService) -> None:
        text = "Gradient descent updates weights against the gradient of the loss."
        await rag_service.upload_document_and_index(build_pptx(["Intro slide", text]), "ml.pptx")

        # Identical text embeds to the identical vector, so it ranks first.
        results = await rag_service.retrieve_relevant_chunks(text, top_k=1)

        assert len(results) == 1
        assert results[0].content == text
        assert results[0].page_number == 2

    @pytest.mark.asyncio
    async def test_default_top_k(self, keyword_service: DocumentService) -> None:
        await keyword_service.upload_document_and_index(
            build_pptx([f"Slide {i} text" for i in range(8)]), "deck.pptx"
        )
        assert len(await keyword_service.retrieve_relevant_chunks("slide")) == 5

    @pytest.mark.asyncio
    async def test_cleared_document_still_served_from_store(
        self,
        rag_service: DocumentService,
        memory_store: InMemoryVectorStore,
    ) -> None:
        text = "Enzymes lower the activation energy of reactions."
        await rag_service.upload_document_and_index(build_pptx([text]), "bio.pptx")
        rag_service.clear_document()

        results = await rag_service.retrieve_relevant_chunks(text, top_k=1)

        assert await memory_store.count() == 1
        assert results[0].content == text
        assert results[0].source == "bio.pptx"

    @pytest.mark.asyncio
    async def test_empty_catalog_keyword_mode(self, keyword_service: DocumentService) -> None:
        assert await keyword_service.retrieve_relevant_chunks("anything") == []
