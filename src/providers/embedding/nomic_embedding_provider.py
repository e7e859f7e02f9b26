"""Nomic embedding provider adapter (local, via Ollama).

Talks to ``nomic-embed-text`` (768 dimensions) through the OpenAI-compatible
``/v1`` endpoint an Ollama server exposes.  No API key is needed, but the
server must be running, so availability is probed over HTTP.

nomic-embed-text is trained with task prefixes: chunk text is sent as
``search_document: ...`` and retrieval queries as ``search_query: ...``.
Without them query/chunk similarity is noticeably flatter.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_MODEL = "nomic-embed-text"
_DIMENSION = 768
_OLLAMA_BATCH_LIMIT = 512
_DOCUMENT_PREFIX = "search_document: "
_QUERY_PREFIX = "search_query: "


class NomicEmbeddingProvider(IEmbeddingProvider):
    """``nomic-embed-text`` served by a local Ollama instance."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # ignored by Ollama, required by the client
            timeout=settings.http_timeout,
            max_retries=0,
        )
        self._available: bool | None = None

    async def embed_text(self, text: str) -> list[float]:
        """Embed a retrieval query."""
        vectors = await self._embed([_QUERY_PREFIX + text])
        return vectors[0]

    async def embed_text_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed document chunks, at most 512 per request."""
        return await self._embed([_DOCUMENT_PREFIX + text for text in texts])

    async def _embed(self, inputs: list[str]) -> list[list[float]]:
        if not inputs:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(inputs), _OLLAMA_BATCH_LIMIT):
            batch = inputs[start : start + _OLLAMA_BATCH_LIMIT]
            try:
                response = await self._client.embeddings.create(input=batch, model=_MODEL)
            except openai.APIStatusError as exc:
                # 404 here means the model has not been pulled; retrying will not help.
                raise EmbeddingError(
                    message=f"Ollama returned {exc.status_code} for {_MODEL}: {exc.message}",
                    provider_name=self.get_provider_name(),
                    retryable=exc.status_code >= 500,
                    status_code=exc.status_code,
                ) from exc
            except openai.APIError as exc:
                raise EmbeddingError(
                    message=f"Ollama at {self._base_url} unreachable: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            data = sorted(response.data, key=lambda item: item.index)
            if len(data) != len(batch):
                raise EmbeddingError(
                    message=f"Ollama returned {len(data)} embeddings for {len(batch)} inputs",
                    provider_name=self.get_provider_name(),
                )
            vectors.extend(list(item.embedding) for item in data)
            logger.debug("nomic_embedding_batch", batch_size=len(batch), offset=start)
        return vectors

    def get_dimension(self) -> int:
        return _DIMENSION

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama server answers ``/api/tags``.

        The probe runs once per instance; the answer is cached.
        """
        if self._available is None:
            self._available = self._probe()
        return self._available

    def _probe(self) -> bool:
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
        except (httpx.ConnectError, httpx.TimeoutException):
            logger.info("ollama_unreachable", base_url=self._base_url)
            return False
        return response.status_code == 200
