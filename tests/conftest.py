"""Shared pytest fixtures for the course-document RAG test suite."""

from __future__ import annotations

import hashlib
import io
import struct
import zipfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.providers.vector_store.memory_vector_store import InMemoryVectorStore
from src.services.document_service import DocumentService
from src.utils.backoff import RetryPolicy
from src.utils.errors import EmbeddingError

# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------

_EMBEDDING_DIM = 128


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic fixed-length vector by hashing *text*.

    Uses SHA-256 to hash the text, then unpacks bytes into floats and
    normalises to unit length.  Same text always produces the same vector.
    """
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    raw = digest
    while len(raw) < dim * 4:
        raw += hashlib.sha256(raw).digest()
    raw = raw[: dim * 4]
    # Unpack as unsigned ints and centre them: raw IEEE floats from random
    # bytes can be NaN or huge.
    values = [v / 2**31 - 1.0 for v in struct.unpack(f"<{dim}I", raw)]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests.

    Records every batch it was asked to embed in ``batches``.
    """

    def __init__(self, dim: int = _EMBEDDING_DIM) -> None:
        self._dim = dim
        self.batches: list[list[str]] = []
        self.queries: list[str] = []

    async def embed_text(self, text: str) -> list[float]:
        self.queries.append(text)
        return _hash_to_vector(text, self._dim)

    async def embed_text_batch(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(list(texts))
        return [_hash_to_vector(t, self._dim) for t in texts]

    def get_dimension(self) -> int:
        return self._dim

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class FailingEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider whose every call fails with a transient error."""

    def __init__(self, retryable: bool = True, status_code: int | None = 503) -> None:
        self.calls = 0
        self._retryable = retryable
        self._status_code = status_code

    def _error(self) -> EmbeddingError:
        return EmbeddingError(
            message="upstream unavailable",
            provider_name="failing-embedding",
            retryable=self._retryable,
            status_code=self._status_code,
        )

    async def embed_text(self, text: str) -> list[float]:
        self.calls += 1
        raise self._error()

    async def embed_text_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        raise self._error()

    def get_dimension(self) -> int:
        return _EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "failing-embedding"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Document builders
# ---------------------------------------------------------------------------


def build_pptx(slides: list[str]) -> bytes:
    """Build a minimal .pptx archive whose slides hold the given texts.

    Each slide's text goes into a single ``<a:t>`` run; an empty string
    produces a slide with no text runs.  Every slide also gets a
    ``_rels`` part, which the processor must ignore.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", '<?xml version="1.0"?><Types/>')
        archive.writestr("ppt/presentation.xml", '<?xml version="1.0"?><p:presentation/>')
        for number, text in enumerate(slides, start=1):
            runs = f"<a:r><a:rPr lang=\"en-US\"/><a:t>{text}</a:t></a:r>" if text else ""
            archive.writestr(
                f"ppt/slides/slide{number}.xml",
                (
                    '<?xml version="1.0" encoding="UTF-8"?>'
                    '<p:sld xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
                    'xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main">'
                    f"<p:cSld><p:spTree><p:sp><p:txBody><a:p>{runs}</a:p></p:txBody></p:sp>"
                    "</p:spTree></p:cSld></p:sld>"
                ),
            )
            archive.writestr(
                f"ppt/slides/_rels/slide{number}.xml.rels",
                '<?xml version="1.0"?><Relationships/>',
            )
    return buffer.getvalue()


def long_page_text() -> str:
    """Return a 2600-character page of unique, single-spaced tokens."""
    text = " ".join(f"tok{i:04d}" for i in range(325)) + "."
    assert len(text) == 2600
    return text


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no embedding credentials and no ``.env`` lookup."""
    return Settings(
        _env_file=None,
        embedding_provider="none",
        openai_api_key="",
        gemini_api_key="",
    )


@pytest.fixture
def no_sleep_policy() -> RetryPolicy:
    """Five-attempt retry policy whose sleeps return immediately."""
    return RetryPolicy(max_attempts=5, initial_delay=0.5, multiplier=2.0, sleep=AsyncMock())


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def rag_service(
    mock_embedding_provider: MockEmbeddingProvider,
    memory_store: InMemoryVectorStore,
    no_sleep_policy: RetryPolicy,
) -> DocumentService:
    """DocumentService wired with deterministic embeddings and an in-memory store."""
    return DocumentService(
        embedding_provider=mock_embedding_provider,
        vector_store=memory_store,
        retry_policy=no_sleep_policy,
    )


@pytest.fixture
def keyword_service(no_sleep_policy: RetryPolicy) -> DocumentService:
    """DocumentService with no embedding provider or vector store."""
    return DocumentService(retry_policy=no_sleep_policy)


@pytest.fixture
def sample_pptx() -> bytes:
    """Three-slide deck: a long slide, a short slide, and an image-only slide."""
    return build_pptx(
        [
            long_page_text(),
            "Gradient descent updates weights against the gradient of the loss.",
            "",
        ]
    )
