"""Pydantic request/response schemas for the course-document RAG API.

Defines the public contract for the REST endpoints: upload, clear,
retrieval, RAG status, provider switching and health.

Convention: request schemas end with "Request", response schemas end with
"Response".  Domain models from :mod:`src.models.rag` (``IndexingResult``,
``RAGStatus``, ``DocumentChunk``) are returned as-is where they already
match the wire shape.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from src.models.rag import DocumentChunk, RAGStatus


class RetrieveRequest(BaseModel):
    """A topic or question to find supporting passages for."""

    query: str = Field(..., min_length=1, max_length=2000)
    top_k: int | None = Field(default=None, ge=1, le=50, description="Defaults to RETRIEVAL_TOP_K")


class RetrieveResponse(BaseModel):
    """Chunks ranked best first, plus the RAG wiring at query time."""

    query: str
    chunks: list[DocumentChunk] = Field(default_factory=list)
    total: int = 0
    rag_enabled: bool = Field(
        description="True when an embedding provider and vector store are wired. "
        "The chunks may still come from keyword search if the vector path failed."
    )


class ClearDocumentResponse(BaseModel):
    """Result of forgetting the current document."""

    cleared: bool
    previous_document: str | None = None


class EmbeddingProviderRequest(BaseModel):
    """Switch the embedding backend by name (openai, gemini, nomic, auto, none)."""

    provider: str = Field(..., min_length=1, max_length=32)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    rag: RAGStatus


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
