"""Course-document RAG FastAPI application entry point.

Wires together the embedding provider, vector store, document service and
routes via dependency injection.  Loads configuration from the environment
(and ``.env``) and configures structured logging.

Also exposes :func:`build_document_service` for CLI or scripting usage
outside the web server.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.settings import Settings
from src.providers.embedding.factory import build_embedding_provider
from src.providers.vector_store.memory_vector_store import InMemoryVectorStore
from src.services.document_service import DocumentService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Service construction
# ---------------------------------------------------------------------------


def build_document_service(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> DocumentService:
    """Build a :class:`DocumentService` wired from *app_settings*.

    With ``RAG_ENABLED=false`` or no usable embedding backend the service
    is built without a provider and store, and retrieval uses keyword
    similarity only.
    """
    embedding_provider = None
    vector_store = None
    if app_settings.rag_enabled:
        embedding_provider = build_embedding_provider(app_settings, http_client=http_client)
        vector_store = InMemoryVectorStore(
            strict_dimensions=app_settings.vector_store_strict_dimensions,
        )

    service = DocumentService.from_settings(
        app_settings,
        embedding_provider=embedding_provider,
        vector_store=vector_store,
    )
    status = service.get_rag_status()
    _logger.info(
        "document_service_built",
        rag_enabled=status.rag_enabled,
        embedding_provider=status.embedding_provider_type,
        vector_store=status.vector_store_type,
    )
    return service


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build the document service on startup, close the HTTP client on shutdown."""
    app_settings: Settings = application.state.settings
    http_client = httpx.AsyncClient(timeout=app_settings.http_timeout)

    application.state.http_client = http_client
    # A named nomic backend probes Ollama with a blocking request.
    application.state.document_service = await asyncio.to_thread(
        build_document_service, app_settings, http_client=http_client
    )

    _logger.info(
        "app_startup",
        version="0.1.0",
        environment=app_settings.app_env,
    )

    yield

    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Course Document RAG API",
        version="0.1.0",
        description=(
            "Upload a PDF or PPTX course document, index it into overlapping "
            "chunks with embeddings, and retrieve the passages most relevant "
            "to a topic or question."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings or settings

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
