"""Domain models -- re-exports all public model classes.

Other modules can import from ``src.models`` directly
(``from src.models import DocumentChunk``) instead of the submodule.
"""

from __future__ import annotations

from src.models.rag import (
    DocumentChunk,
    ExtractedPage,
    IndexingResult,
    RAGStatus,
    VectorItem,
    VectorSearchResult,
)

__all__ = [
    "DocumentChunk",
    "ExtractedPage",
    "IndexingResult",
    "RAGStatus",
    "VectorItem",
    "VectorSearchResult",
]
