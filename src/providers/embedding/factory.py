"""Embedding provider selection.

Turns the ``EMBEDDING_PROVIDER`` setting (or an explicit name chosen by the
user at runtime) into a concrete :class:`IEmbeddingProvider`, or ``None``
when no backend is configured.  ``None`` is a valid outcome: the document
service then keeps working with keyword retrieval only.
"""

from __future__ import annotations

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

SUPPORTED_PROVIDERS = ("openai", "gemini", "nomic")


def build_embedding_provider(
    settings: Settings,
    name: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> IEmbeddingProvider | None:
    """Build the embedding provider named *name* (default: the setting).

    ``"auto"`` tries OpenAI, then Gemini, returning the first one with a
    key.  Nomic/Ollama is only used when asked for by name, because probing
    a local server on every start is slow when nothing is listening.
    ``"none"`` or an empty string disables embeddings.

    Raises
    ------
    ConfigurationError
        If *name* is not a known provider.
    """
    choice = (name if name is not None else settings.embedding_provider).strip().lower()

    if choice in ("", "none"):
        return None

    if choice == "auto":
        for candidate in ("openai", "gemini"):
            provider = _build(candidate, settings, http_client)
            if provider.is_available():
                logger.info("embedding_provider_selected", provider=provider.get_provider_name())
                return provider
        logger.info("embedding_provider_unconfigured", msg="No embedding API key set; keyword search only.")
        return None

    if choice not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            message=f"Unknown embedding provider '{choice}'. "
            f"Expected one of: {', '.join(SUPPORTED_PROVIDERS)}, auto, none",
        )

    provider = _build(choice, settings, http_client)
    if not provider.is_available():
        logger.warning("embedding_provider_unavailable", provider=provider.get_provider_name())
        return None
    logger.info("embedding_provider_selected", provider=provider.get_provider_name())
    return provider


def _build(
    choice: str,
    settings: Settings,
    http_client: httpx.AsyncClient | None,
) -> IEmbeddingProvider:
    # Imports are deferred so an unused backend's client is never constructed.
    if choice == "openai":
        from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        return OpenAIEmbeddingProvider(settings=settings)
    if choice == "gemini":
        from src.providers.embedding.gemini_embedding_provider import GeminiEmbeddingProvider

        return GeminiEmbeddingProvider(settings=settings, http_client=http_client)

    from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

    return NomicEmbeddingProvider(settings=settings)
