"""Custom exception hierarchy for the course-document RAG index.

All application exceptions inherit from :class:`CourseRAGError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai_embedding", "gemini_embedding") caused the
failure.

The hierarchy is organized by pipeline stage:

    CourseRAGError  (base -- catch-all for any application error)
    +-- DocumentValidationError  (upload rejected before parsing)
    |   +-- UnsupportedDocumentError
    |   +-- DocumentTooLargeError
    +-- DocumentParseError       (corrupt / unreadable PDF or PPTX)
    +-- RAGError                 (embedding or vector-store failure)
    |   +-- EmbeddingError
    |   +-- VectorStoreError
    +-- IndexingError            (batch embed/upsert exhausted its retries)
    +-- ConfigurationError       (startup / missing config)

Remote-call errors carry a ``retryable`` flag so the backoff helper can tell
transient failures (5xx, 429, timeouts) from terminal ones (401, 400).
"""

from __future__ import annotations


class CourseRAGError(Exception):
    """Base exception for all application errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[openai_embedding] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Upload validation and parsing
# ---------------------------------------------------------------------------

class DocumentValidationError(CourseRAGError):
    """Raised when an upload is rejected before any parsing happens."""

    def __init__(
        self,
        message: str = "Document failed validation",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedDocumentError(DocumentValidationError):
    """Raised for file extensions outside the allow-list (pdf, pptx)."""

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentTooLargeError(DocumentValidationError):
    """Raised when an upload exceeds the configured byte ceiling."""

    def __init__(
        self,
        message: str = "File too large",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentParseError(CourseRAGError):
    """Raised when a PDF or slide deck cannot be read.

    Aborts the whole upload: no partial index is built from a broken file.
    """

    def __init__(
        self,
        message: str = "Failed to parse document",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# RAG / remote-call errors
# ---------------------------------------------------------------------------

class RAGError(CourseRAGError):
    """Raised when a RAG pipeline operation fails (embedding or vector store)."""

    def __init__(
        self,
        message: str = "RAG pipeline operation failed",
        provider_name: str | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        return self._retryable


class EmbeddingError(RAGError):
    """Raised when an embedding backend call fails."""

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
        retryable: bool = True,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=retryable)
        self.status_code = status_code


class VectorStoreError(RAGError):
    """Raised when a vector-store upsert or query fails."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name, retryable=retryable)


class IndexingError(CourseRAGError):
    """Raised when vector indexing of an uploaded document gives up.

    The extracted chunks stay in the in-memory catalog, so keyword retrieval
    keeps working.  ``chunks_indexed`` records how many vectors made it into
    the store before the failure.
    """

    def __init__(
        self,
        message: str = "Failed to index document",
        provider_name: str | None = None,
        chunks_indexed: int = 0,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self.chunks_indexed = chunks_indexed


class ConfigurationError(CourseRAGError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_retryable(exc: BaseException) -> bool:
    """Return ``False`` only for errors explicitly flagged as terminal."""
    return bool(getattr(exc, "retryable", True))


def user_message(exc: BaseException) -> str:
    """Translate an exception into a short message suitable for end users."""
    if isinstance(exc, (DocumentValidationError, DocumentParseError)):
        return exc.message
    if isinstance(exc, TimeoutError):
        return "Request timed out. Please try again."
    if isinstance(exc, ConnectionError):
        return "Network connection failed. Please check your internet connection."

    status = getattr(exc, "status_code", None)
    if status == 401:
        return "Invalid API key. Please check your credentials."
    if status == 403:
        return "Access denied. Please verify your API key permissions."
    if status == 429:
        return "Rate limit exceeded. Please wait a moment and try again."
    if isinstance(status, int) and status >= 500:
        return "Server error. Please try again later."

    if isinstance(exc, IndexingError):
        return (
            "The document was uploaded but semantic indexing failed; "
            "basic keyword search is still available."
        )
    if isinstance(exc, CourseRAGError):
        return exc.message
    return "An unexpected error occurred. Please try again."
