"""Public interface definitions for the pluggable RAG backends.

Embedding backends and vector stores are accessed exclusively through the
abstract base classes defined here.  Concrete adapters live in
``src/providers/`` and are injected into the document service at runtime,
so switching from OpenAI to Gemini embeddings (or to another vector store)
does not touch the indexing or retrieval code.

CONCRETE PROVIDER MAP:
    Interface              →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    IEmbeddingProvider     →  OpenAIEmbeddingProvider,
                              GeminiEmbeddingProvider,
                              NomicEmbeddingProvider
    IVectorStoreProvider   →  InMemoryVectorStore
"""

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "IVectorStoreProvider",
]
