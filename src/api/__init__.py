"""Course-document RAG API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    ClearDocumentResponse,
    EmbeddingProviderRequest,
    ErrorResponse,
    HealthResponse,
    RetrieveRequest,
    RetrieveResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ClearDocumentResponse",
    "EmbeddingProviderRequest",
    "ErrorResponse",
    "HealthResponse",
    "RetrieveRequest",
    "RetrieveResponse",
]
