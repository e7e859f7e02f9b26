"""RAG pipeline data models for the course-document index.

Defines Pydantic v2 models for document chunks, vector items, similarity
search results, indexing outcomes and the status snapshot shown by the UI.
All models use frozen config so a chunk handed to a caller can never be
mutated behind the catalog's back.

RAG (Retrieval-Augmented Generation) in this application:

    1. EXTRACTION: an uploaded PDF or PPTX is turned into per-page text.
    2. CHUNKING: each page is split into overlapping ~1000-character chunks.
    3. EMBEDDING: each chunk is converted into a numeric vector.
    4. STORAGE: vectors plus preview metadata are upserted into a vector store.
    5. RETRIEVAL: a topic or question is embedded and the nearest chunks are
       returned (or, without embeddings, the best keyword matches).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ---------------------------------------------------------------------------
# DocumentChunk -- the unit of embedding and retrieval.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A contiguous slice of one page's cleaned text.

    The ``id`` is content-addressed (see
    :func:`src.services.ingestion.chunker.chunk_id`), so re-uploading an
    unchanged document produces the same ids and a no-op upsert.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="SHA-256 hex id derived from source, page, index and content.")
    content: str = Field(min_length=1, description="The chunk's text.")
    page_number: int = Field(ge=1, description="1-based page or slide number.")
    source: str = Field(description="Originating file name.")
    chunk_index: int = Field(ge=0, description="0-based position of the chunk within its page.")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def length(self) -> int:
        return len(self.content)


# ---------------------------------------------------------------------------
# ExtractedPage -- extractor output, one per non-empty page/slide.
# ---------------------------------------------------------------------------
class ExtractedPage(BaseModel):
    """Cleaned text of one PDF page or PPTX slide."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    text: str


# ---------------------------------------------------------------------------
# Vector store records
# ---------------------------------------------------------------------------
class VectorItem(BaseModel):
    """An embedding plus opaque metadata, keyed by chunk id."""

    model_config = ConfigDict(frozen=True)

    id: str
    vector: list[float]
    metadata: dict[str, Any] | None = None


class VectorSearchResult(BaseModel):
    """One hit from :meth:`IVectorStoreProvider.query_by_vector`.

    ``score`` is the raw cosine similarity in ``[-1, 1]``; higher is more
    similar.  ``metadata`` is whatever was attached at upsert time.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    score: float = Field(ge=-1.0, le=1.0)
    metadata: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# IndexingResult -- outcome of one upload.
# ---------------------------------------------------------------------------
class IndexingResult(BaseModel):
    """Summary of a single ``upload_document_and_index`` call.

    ``vector_indexed`` is ``False`` when no embedding provider or vector
    store was configured; the chunks are then only reachable through the
    keyword fallback, which still counts as a successful upload.
    """

    model_config = ConfigDict(frozen=True)

    success: bool = True
    document_name: str
    pages_extracted: int = Field(default=0, ge=0)
    chunks_created: int = Field(default=0, ge=0)
    chunks_dropped: int = Field(default=0, ge=0)
    total_chars: int = Field(default=0, ge=0)
    chunks_indexed: int = Field(default=0, ge=0)
    vector_indexed: bool = False
    ingestion_time: float = Field(default=0.0, ge=0.0)


# ---------------------------------------------------------------------------
# RAGStatus -- live wiring snapshot.
# ---------------------------------------------------------------------------
class RAGStatus(BaseModel):
    """Whether semantic retrieval is wired up, and what is currently indexed.

    The UI uses this to show "RAG enabled" versus "basic search".
    """

    model_config = ConfigDict(frozen=True)

    has_embedding_provider: bool
    has_vector_store: bool
    embedding_provider_type: str | None = None
    vector_store_type: str | None = None
    document_chunks_count: int = Field(default=0, ge=0)
    current_document: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def rag_enabled(self) -> bool:
        return self.has_embedding_provider and self.has_vector_store
