"""FastAPI API routes for the course-document RAG index.

Provides REST endpoints for document upload, clearing, retrieval, RAG
status, embedding-provider switching and health checks.  Service
dependencies are resolved from ``app.state`` via FastAPI's ``Depends``
using the ``Annotated`` pattern.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/documents                     POST    Upload PDF/PPTX → extract → index
# /api/v1/documents                     DELETE  Forget the current document
# /api/v1/retrieve                      POST    Top-K chunks for a topic/question
# /api/v1/rag/status                    GET     Live RAG wiring + catalog size
# /api/v1/rag/embedding-provider        PUT     Switch embedding backend by name
# /api/v1/health                        GET     Health check
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile

from src.api.middleware import status_for_error
from src.api.schemas import (
    ClearDocumentResponse,
    EmbeddingProviderRequest,
    ErrorResponse,
    HealthResponse,
    RetrieveRequest,
    RetrieveResponse,
)
from src.config.settings import Settings
from src.models.rag import IndexingResult, RAGStatus
from src.providers.embedding.factory import build_embedding_provider
from src.services.document_service import DocumentService
from src.utils.errors import ConfigurationError, CourseRAGError, user_message
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_APP_VERSION = "0.1.0"

# Uploads are read in 64 KB increments so an oversized file is rejected
# without buffering all of it.
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_document_service(request: Request) -> DocumentService:
    """Return the document service from application state."""
    return request.app.state.document_service


def _get_settings(request: Request) -> Settings:
    """Return the settings the application was built with."""
    return request.app.state.settings


def _get_http_client(request: Request) -> httpx.AsyncClient | None:
    """Return the shared HTTP client opened by the lifespan, if any."""
    return getattr(request.app.state, "http_client", None)


DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]
HttpClientDep = Annotated[httpx.AsyncClient | None, Depends(_get_http_client)]


def _http_error(exc: CourseRAGError) -> HTTPException:
    return HTTPException(status_code=status_for_error(exc), detail=user_message(exc))


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents",
    response_model=IndexingResult,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Upload a PDF or PPTX course document and index it",
)
async def upload_document(file: UploadFile, service: DocumentServiceDep) -> IndexingResult:
    """Replace the current document with the upload and index it for retrieval."""
    filename = file.filename or ""
    max_bytes = service.max_upload_bytes

    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Max allowed is {max_bytes // (1024 * 1024)} MB",
            )
        chunks.append(chunk)
    data = b"".join(chunks)
    del chunks

    try:
        result = await service.upload_document_and_index(data, filename)
    except CourseRAGError as exc:
        _logger.warning(
            "document_upload_failed",
            filename=filename,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise _http_error(exc) from exc

    _logger.info(
        "document_uploaded",
        filename=filename,
        size=total_size,
        chunks=result.chunks_created,
        vector_indexed=result.vector_indexed,
    )
    return result


@router.delete(
    "/documents",
    response_model=ClearDocumentResponse,
    summary="Forget the current document",
)
async def clear_document(service: DocumentServiceDep) -> ClearDocumentResponse:
    previous = service.current_document_name
    service.clear_document()
    return ClearDocumentResponse(cleared=previous is not None, previous_document=previous)


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


@router.post(
    "/retrieve",
    response_model=RetrieveResponse,
    summary="Retrieve the chunks most relevant to a topic or question",
)
async def retrieve(body: RetrieveRequest, service: DocumentServiceDep) -> RetrieveResponse:
    """Vector search when configured, keyword similarity otherwise.  Never fails."""
    status = service.get_rag_status()
    chunks = await service.retrieve_relevant_chunks(body.query, top_k=body.top_k)
    return RetrieveResponse(
        query=body.query,
        chunks=chunks,
        total=len(chunks),
        rag_enabled=status.rag_enabled,
    )


# ---------------------------------------------------------------------------
# RAG wiring
# ---------------------------------------------------------------------------


@router.get(
    "/rag/status",
    response_model=RAGStatus,
    summary="Embedding/vector-store wiring and catalog size",
)
async def rag_status(service: DocumentServiceDep) -> RAGStatus:
    return service.get_rag_status()


@router.put(
    "/rag/embedding-provider",
    response_model=RAGStatus,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Switch the embedding provider using the server's configured keys",
)
async def set_embedding_provider(
    body: EmbeddingProviderRequest,
    service: DocumentServiceDep,
    settings: SettingsDep,
    http_client: HttpClientDep,
) -> RAGStatus:
    """Rebuild the embedding provider by name.

    ``none`` turns semantic retrieval off.  A named backend without
    credentials (or an unreachable Ollama) is rejected with 409 and the
    current provider is kept.  Already indexed vectors are not re-embedded;
    re-upload the document after switching.

    Construction runs in a worker thread: the Ollama availability check
    is a blocking HTTP call.
    """
    name = body.provider.strip().lower()
    try:
        provider = await asyncio.to_thread(
            build_embedding_provider, settings, name=name, http_client=http_client
        )
    except ConfigurationError as exc:
        raise _http_error(exc) from exc

    if provider is None and name not in ("none", "auto"):
        raise HTTPException(
            status_code=409,
            detail=f"Embedding provider '{name}' is not configured on this server",
        )

    service.set_embedding_provider(provider)
    return service.get_rag_status()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(service: DocumentServiceDep) -> HealthResponse:
    """Return application health, version, and RAG wiring."""
    return HealthResponse(status="ok", version=_APP_VERSION, rag=service.get_rag_status())
