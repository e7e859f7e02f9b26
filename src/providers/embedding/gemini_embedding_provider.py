"""Google Gemini embedding provider adapter.

Calls the Generative Language REST API (``models/{model}:batchEmbedContents``)
over ``httpx`` to implement :class:`IEmbeddingProvider`.  Uses the same API
key as the Gemini chat models; ``text-embedding-004`` produces 768-dim
vectors.
"""

from __future__ import annotations

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# batchEmbedContents accepts at most 100 requests per call.
_GEMINI_BATCH_LIMIT = 100

_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-004": 768,
    "embedding-001": 768,
    "gemini-embedding-001": 3072,
}


class GeminiEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by Google's Generative Language API.

    Parameters
    ----------
    settings:
        Supplies ``gemini_api_key``, ``gemini_embedding_model`` and the
        request timeout.
    http_client:
        Optional shared ``httpx.AsyncClient``; one is created when omitted.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = settings.gemini_api_key
        self._model = settings.gemini_embedding_model or "text-embedding-004"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 768)
        self._http = http_client or httpx.AsyncClient(timeout=settings.http_timeout)

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_text(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed_text_batch([text])
        return result[0]

    async def embed_text_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts, in input order."""
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), _GEMINI_BATCH_LIMIT):
            batch = texts[start : start + _GEMINI_BATCH_LIMIT]
            all_embeddings.extend(await self._batch_embed(batch))
        return all_embeddings

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "gemini_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _batch_embed(self, batch: list[str]) -> list[list[float]]:
        model_path = f"models/{self._model}"
        payload = {
            "requests": [
                {"model": model_path, "content": {"parts": [{"text": text}]}}
                for text in batch
            ]
        }
        try:
            response = await self._http.post(
                f"{_GEMINI_BASE_URL}/{model_path}:batchEmbedContents",
                json=payload,
                headers={"x-goog-api-key": self._api_key},
            )
        except httpx.HTTPError as exc:
            raise EmbeddingError(
                message=f"Gemini embedding request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code != 200:
            status = response.status_code
            raise EmbeddingError(
                message=f"Gemini embedding API error {status}: {response.text[:200]}",
                provider_name=self.get_provider_name(),
                retryable=status in (408, 429) or status >= 500,
                status_code=status,
            )

        embeddings = response.json().get("embeddings") or []
        if len(embeddings) != len(batch):
            raise EmbeddingError(
                message=f"expected {len(batch)} embeddings, got {len(embeddings)}",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "gemini_embedding_batch",
            model=self._model,
            batch_size=len(batch),
        )
        return [[float(v) for v in item["values"]] for item in embeddings]
