"""Vector store provider implementations.

InMemoryVectorStore is the bundled implementation: an exact cosine scan over
a session-scoped dict, sized for a single course document.

To swap it for a real vector database (Qdrant, Chroma, pgvector), create a
new class implementing IVectorStoreProvider and inject it through
DocumentService.set_vector_store() or build_document_service() in main.py.
"""

from src.providers.vector_store.memory_vector_store import InMemoryVectorStore

__all__ = ["InMemoryVectorStore"]
