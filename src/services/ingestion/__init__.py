"""Document ingestion building blocks for the course-document RAG index.

Pipeline stages overview:

1. **Extract** (source_processors/) -- Format-specific readers turn PDF and
   PPTX bytes into cleaned per-page text (ExtractedPage objects).

2. **Chunk** (chunker.py / TextChunker) -- Splits each page into
   1000-character overlapping windows and gives every chunk a
   content-addressed id.

Embedding and storage are orchestrated by
:class:`src.services.document_service.DocumentService`.
"""

from src.services.ingestion.chunker import TextChunker, chunk_id
from src.services.ingestion.source_processors import SUPPORTED_EXTENSIONS, extract_pages

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "TextChunker",
    "chunk_id",
    "extract_pages",
]
