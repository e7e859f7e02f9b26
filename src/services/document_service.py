"""Orchestrator for indexing one course document and retrieving from it.

Pipeline stages: **validate -> extract -> chunk -> trim -> embed -> store**.

The :class:`DocumentService` owns the in-memory catalog of the current
document's chunks (:class:`DocumentIndex`) and coordinates the collaborators
that turn an upload into searchable vectors:

    1. Source processors -- PDF / PPTX bytes to cleaned per-page text
    2. TextChunker -- pages to overlapping 1000-character windows
    3. Character budget -- keep chunks in order until the budget is spent
    4. IEmbeddingProvider -- chunk text to vectors, in batches of 16
    5. IVectorStoreProvider -- vectors plus preview metadata upserted

Every embed and upsert call is wrapped in a :class:`RetryPolicy`.  When the
policy gives up, the chunks already in the catalog stay there, so keyword
retrieval keeps working even though semantic indexing failed.

The embedding provider and vector store are both optional and can be
swapped at runtime; each upload or retrieval reads the wiring once, when it
starts.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import structlog

from src.models.rag import DocumentChunk, ExtractedPage, IndexingResult, RAGStatus, VectorItem
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.source_processors import (
    SUPPORTED_EXTENSIONS,
    extract_pages,
    file_extension,
)
from src.services.retrieval_service import RetrievalService
from src.utils.backoff import RetryPolicy
from src.utils.errors import (
    DocumentParseError,
    DocumentTooLargeError,
    DocumentValidationError,
    IndexingError,
    UnsupportedDocumentError,
)
from src.utils.text_normalizer import truncate_preview

if TYPE_CHECKING:
    from src.config.settings import Settings
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class DocumentIndex:
    """The catalog: ordered chunks of the current document, plus its name.

    Mutated only by :class:`DocumentService` while it holds the indexing
    lock.  Readers take :meth:`snapshot`, an immutable tuple, so a
    retrieval running alongside an upload sees a consistent (possibly
    empty or partial) catalog rather than a list changing under it.
    """

    def __init__(self) -> None:
        self._chunks: tuple[DocumentChunk, ...] = ()
        self._document_name: str | None = None

    @property
    def document_name(self) -> str | None:
        return self._document_name

    def snapshot(self) -> tuple[DocumentChunk, ...]:
        return self._chunks

    def reset(self, document_name: str | None = None) -> None:
        """Drop every chunk and record *document_name* as current."""
        self._chunks = ()
        self._document_name = document_name

    def replace(self, chunks: Sequence[DocumentChunk]) -> None:
        self._chunks = tuple(chunks)

    def __len__(self) -> int:
        return len(self._chunks)


class DocumentService:
    """Indexes one uploaded course document and answers retrieval queries.

    Parameters
    ----------
    embedding_provider:
        Turns chunk and query text into vectors.  ``None`` means
        keyword-only mode.
    vector_store:
        Stores chunk vectors for nearest-neighbour search.  ``None`` means
        keyword-only mode.
    chunker:
        Splits page text into overlapping windows.
    retry_policy:
        Backoff applied to each embedding and upsert batch.
    max_total_indexed_chars:
        Character budget across all kept chunks of one document.
    max_upload_bytes:
        Upload size ceiling.
    embedding_batch_size:
        Chunks per embed/upsert round trip.
    text_preview_chars:
        Length of the preview stored in vector metadata.
    retrieval_top_k:
        Default number of chunks returned by retrieval.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider | None = None,
        vector_store: IVectorStoreProvider | None = None,
        chunker: TextChunker | None = None,
        retry_policy: RetryPolicy | None = None,
        max_total_indexed_chars: int = 20_000,
        max_upload_bytes: int = _DEFAULT_MAX_UPLOAD_BYTES,
        embedding_batch_size: int = 16,
        text_preview_chars: int = 200,
        retrieval_top_k: int = 5,
    ) -> None:
        if embedding_batch_size <= 0:
            raise ValueError("embedding_batch_size must be positive")
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._chunker = chunker or TextChunker()
        self._retry_policy = retry_policy or RetryPolicy()
        self._max_total_indexed_chars = max_total_indexed_chars
        self._max_upload_bytes = max_upload_bytes
        self._embedding_batch_size = embedding_batch_size
        self._text_preview_chars = text_preview_chars
        self._retrieval_top_k = retrieval_top_k

        self._index = DocumentIndex()
        self._retrieval = RetrievalService()
        # Uploads queue behind each other instead of interleaving catalog writes.
        self._index_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        embedding_provider: IEmbeddingProvider | None = None,
        vector_store: IVectorStoreProvider | None = None,
    ) -> DocumentService:
        """Build a service whose limits and retry policy come from *settings*."""
        return cls(
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            chunker=TextChunker(chunk_size=settings.chunk_size, overlap=settings.chunk_overlap),
            retry_policy=RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                initial_delay=settings.retry_initial_delay,
                multiplier=settings.retry_multiplier,
            ),
            max_total_indexed_chars=settings.max_total_indexed_chars,
            max_upload_bytes=settings.max_upload_bytes,
            embedding_batch_size=settings.embedding_batch_size,
            text_preview_chars=settings.text_preview_chars,
            retrieval_top_k=settings.retrieval_top_k,
        )

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    @property
    def embedding_provider(self) -> IEmbeddingProvider | None:
        return self._embedding_provider

    @property
    def vector_store(self) -> IVectorStoreProvider | None:
        return self._vector_store

    def set_embedding_provider(self, provider: IEmbeddingProvider | None) -> None:
        """Swap the embedding provider; takes effect for the next call."""
        self._embedding_provider = provider
        logger.info(
            "embedding_provider_set",
            provider=provider.get_provider_name() if provider else None,
        )

    def set_vector_store(self, store: IVectorStoreProvider | None) -> None:
        """Swap the vector store; takes effect for the next call."""
        self._vector_store = store
        logger.info(
            "vector_store_set",
            store=store.get_provider_name() if store else None,
        )

    # ------------------------------------------------------------------
    # Catalog accessors
    # ------------------------------------------------------------------

    @property
    def document_chunks(self) -> tuple[DocumentChunk, ...]:
        return self._index.snapshot()

    @property
    def current_document_name(self) -> str | None:
        return self._index.document_name

    @property
    def has_document(self) -> bool:
        return len(self._index) > 0

    def clear_document(self) -> None:
        """Forget the current document.

        Vectors already upserted stay in the store; they are resolved
        through their metadata preview if a later query hits them.
        """
        self._index.reset()
        logger.info("document_cleared")

    def get_rag_status(self) -> RAGStatus:
        provider = self._embedding_provider
        store = self._vector_store
        return RAGStatus(
            has_embedding_provider=provider is not None,
            has_vector_store=store is not None,
            embedding_provider_type=provider.get_provider_name() if provider else None,
            vector_store_type=store.get_provider_name() if store else None,
            document_chunks_count=len(self._index),
            current_document=self._index.document_name,
        )

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def upload_document_and_index(self, data: bytes, filename: str) -> IndexingResult:
        """Replace the current document with *data* and index it.

        Parameters
        ----------
        data:
            Raw file contents.
        filename:
            Original file name; its extension selects the parser.

        Returns
        -------
        IndexingResult
            Statistics about the upload.  ``vector_indexed`` is ``False`` in
            keyword-only mode.

        Raises
        ------
        DocumentValidationError
            Unsupported extension, empty file or file over the size limit.
            The previous document is left untouched.
        DocumentParseError
            The file could not be parsed; the catalog is left empty.
        IndexingError
            An embedding or upsert batch failed after all retries.  The
            catalog keeps the new document's chunks.
        """
        async with self._index_lock:
            start = time.monotonic()
            embedding_provider = self._embedding_provider
            vector_store = self._vector_store

            self._validate_upload(data, filename)

            self._index.reset(filename)
            try:
                pages = await asyncio.to_thread(extract_pages, data, filename)
            except Exception:
                self._index.reset()
                raise

            chunks = self._chunk_pages(pages, filename)
            kept = self._apply_char_budget(chunks)
            self._index.replace(kept)
            total_chars = sum(chunk.length for chunk in kept)

            logger.info(
                "document_extracted",
                filename=filename,
                pages=len(pages),
                chunks=len(chunks),
                chunks_kept=len(kept),
                total_chars=total_chars,
            )

            chunks_indexed = 0
            vector_indexed = False
            if embedding_provider is not None and vector_store is not None and kept:
                chunks_indexed = await self._embed_and_store(kept, embedding_provider, vector_store)
                vector_indexed = True
            elif embedding_provider is None or vector_store is None:
                logger.info(
                    "vector_indexing_skipped",
                    filename=filename,
                    has_embedding_provider=embedding_provider is not None,
                    has_vector_store=vector_store is not None,
                )

            elapsed = round(time.monotonic() - start, 3)
            logger.info(
                "document_indexed",
                filename=filename,
                chunks_indexed=chunks_indexed,
                vector_indexed=vector_indexed,
                elapsed_s=elapsed,
            )
            return IndexingResult(
                document_name=filename,
                pages_extracted=len(pages),
                chunks_created=len(kept),
                chunks_dropped=len(chunks) - len(kept),
                total_chars=total_chars,
                chunks_indexed=chunks_indexed,
                vector_indexed=vector_indexed,
                ingestion_time=elapsed,
            )

    def _validate_upload(self, data: bytes, filename: str) -> None:
        extension = file_extension(filename)
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedDocumentError(
                message=f"Unsupported file type '.{extension}'. Please upload a PDF or PPTX file."
                if extension
                else "File has no extension. Please upload a PDF or PPTX file.",
            )
        if len(data) > self._max_upload_bytes:
            raise DocumentTooLargeError(
                message=f"File too large. Max allowed is {self._max_upload_bytes // (1024 * 1024)} MB",
            )
        if not data:
            raise DocumentValidationError(message=f"Uploaded file '{filename}' is empty")

    def _chunk_pages(self, pages: Sequence[ExtractedPage], filename: str) -> list[DocumentChunk]:
        chunks: list[DocumentChunk] = []
        for page in pages:
            chunks.extend(self._chunker.chunk_page(page.text, source=filename, page_number=page.page_number))
        return chunks

    def _apply_char_budget(self, chunks: list[DocumentChunk]) -> list[DocumentChunk]:
        """Keep chunks in document order while their running length fits the budget.

        The first chunk that would overflow the budget ends the document;
        later, shorter chunks are not used to fill the remaining space.
        """
        total = sum(chunk.length for chunk in chunks)
        if total <= self._max_total_indexed_chars:
            return chunks

        kept: list[DocumentChunk] = []
        running = 0
        for chunk in chunks:
            if running + chunk.length > self._max_total_indexed_chars:
                break
            kept.append(chunk)
            running += chunk.length

        logger.warning(
            "document_trimmed_to_budget",
            total_chars=total,
            budget=self._max_total_indexed_chars,
            chunks_kept=len(kept),
            chunks_dropped=len(chunks) - len(kept),
        )
        return kept

    async def _embed_and_store(
        self,
        chunks: list[DocumentChunk],
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
    ) -> int:
        """Embed and upsert *chunks* batch by batch; return the number stored."""
        indexed = 0
        batch_size = self._embedding_batch_size
        for batch_start in range(0, len(chunks), batch_size):
            batch = chunks[batch_start : batch_start + batch_size]
            texts = [chunk.content for chunk in batch]
            batch_number = batch_start // batch_size + 1
            try:
                vectors = await self._retry_policy.run(
                    lambda: embedding_provider.embed_text_batch(texts),
                    operation="embed_batch",
                )
                if len(vectors) != len(batch):
                    raise IndexingError(
                        message=f"Embedding provider returned {len(vectors)} vectors for {len(batch)} chunks",
                        provider_name=embedding_provider.get_provider_name(),
                        chunks_indexed=indexed,
                    )
                items = [
                    VectorItem(id=chunk.id, vector=vector, metadata=self._chunk_metadata(chunk))
                    for chunk, vector in zip(batch, vectors)
                ]
                await self._retry_policy.run(
                    lambda: vector_store.upsert(items),
                    operation="upsert_batch",
                )
            except IndexingError:
                raise
            except Exception as exc:
                logger.error(
                    "vector_indexing_failed",
                    batch=batch_number,
                    chunks_indexed=indexed,
                    error=str(exc),
                )
                raise IndexingError(
                    message=f"Failed to index batch {batch_number}: {exc}",
                    provider_name=getattr(exc, "provider_name", None),
                    chunks_indexed=indexed,
                ) from exc

            indexed += len(batch)
            logger.debug("batch_indexed", batch=batch_number, chunks_indexed=indexed)
        return indexed

    def _chunk_metadata(self, chunk: DocumentChunk) -> dict[str, Any]:
        return {
            "id": chunk.id,
            "source": chunk.source,
            "page_number": chunk.page_number,
            "chunk_index": chunk.chunk_index,
            "length": chunk.length,
            "text_preview": truncate_preview(chunk.content, self._text_preview_chars),
        }

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    async def retrieve_relevant_chunks(self, query: str, top_k: int | None = None) -> list[DocumentChunk]:
        """Return the chunks most relevant to *query*, best first.

        Uses vector search when both an embedding provider and a vector
        store are wired, falling back to keyword similarity otherwise or on
        any failure.  Never raises.
        """
        return await self._retrieval.retrieve(
            query,
            self._index.snapshot(),
            self._embedding_provider,
            self._vector_store,
            top_k=self._retrieval_top_k if top_k is None else top_k,
            document_name=self._index.document_name,
        )
