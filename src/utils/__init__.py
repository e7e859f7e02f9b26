"""Utility modules for the course-document RAG index.

- **backoff** -- exponential backoff with jitter (:class:`RetryPolicy`)
  wrapping every embedding and vector-store batch call.
- **errors** -- domain exception hierarchy rooted at ``CourseRAGError``;
  each pipeline stage raises its own subclass so callers can react
  granularly (reject the upload, fall back to keyword search, ...).
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **similarity** -- cosine similarity for vector search and Jaccard
  similarity for the keyword fallback.
"""

from src.utils.backoff import RetryPolicy, with_exponential_backoff
from src.utils.errors import (
    ConfigurationError,
    CourseRAGError,
    DocumentParseError,
    DocumentTooLargeError,
    DocumentValidationError,
    EmbeddingError,
    IndexingError,
    RAGError,
    UnsupportedDocumentError,
    VectorStoreError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.similarity import cosine_similarity, jaccard_similarity, tokenize

__all__ = [
    "ConfigurationError",
    "CourseRAGError",
    "DocumentParseError",
    "DocumentTooLargeError",
    "DocumentValidationError",
    "EmbeddingError",
    "IndexingError",
    "RAGError",
    "RetryPolicy",
    "UnsupportedDocumentError",
    "VectorStoreError",
    "configure_logging",
    "cosine_similarity",
    "get_logger",
    "jaccard_similarity",
    "tokenize",
    "with_exponential_backoff",
]
