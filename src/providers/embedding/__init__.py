"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
These vectors are stored in the vector store and used for similarity
search (RAG).

Three implementations of IEmbeddingProvider:
    1. OpenAIEmbeddingProvider  -- text-embedding-3-small (1536 dims),
       also any OpenAI-compatible endpoint via OPENAI_BASE_URL.
    2. GeminiEmbeddingProvider  -- text-embedding-004 (768 dims) through the
       Generative Language REST API.
    3. NomicEmbeddingProvider   -- nomic-embed-text via Ollama (768 dims).
       Free and local, but requires a running Ollama server.

Use :func:`build_embedding_provider` to pick one from settings.
"""

from src.providers.embedding.factory import SUPPORTED_PROVIDERS, build_embedding_provider
from src.providers.embedding.gemini_embedding_provider import GeminiEmbeddingProvider
from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = [
    "GeminiEmbeddingProvider",
    "NomicEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "SUPPORTED_PROVIDERS",
    "build_embedding_provider",
]
