"""Text chunking with fixed-size overlapping character windows.

Splits one page of cleaned text into :class:`~src.models.rag.DocumentChunk`
objects sized for embedding models (1000 characters with 200 characters of
overlap by default).

Consecutive chunks share ``overlap`` characters so that a concept spanning a
window boundary is captured whole in at least one chunk.  Windows are cut at
exact character offsets; the boundary may fall mid-word.  Each chunk is
stripped of surrounding whitespace after cutting, so adjacent chunks overlap
by *up to* ``overlap`` characters.

Chunk ids are content-addressed (see :func:`chunk_id`): re-uploading the
same document yields the same ids, which makes the vector upsert a no-op.
"""

from __future__ import annotations

import hashlib

import structlog

from src.models.rag import DocumentChunk

logger = structlog.get_logger(logger_name=__name__)

# Number of leading content characters folded into a chunk's id.
_ID_CONTENT_PREFIX = 64


def chunk_id(source: str, page_number: int, chunk_index: int, content: str) -> str:
    """Return the SHA-256 hex id for a chunk.

    The digest covers ``"{source}|{page_number}|{chunk_index}|{content[:64]}"``,
    so two chunks at the same position of the same file collide only if
    their first 64 characters are identical as well.
    """
    key = f"{source}|{page_number}|{chunk_index}|{content[:_ID_CONTENT_PREFIX]}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


class TextChunker:
    """Splits text into overlapping fixed-size character windows.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per chunk (default 1000).
    overlap:
        Characters shared between consecutive windows (default 200).
        Must satisfy ``0 <= overlap < chunk_size``.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(
                f"overlap must satisfy 0 <= overlap < chunk_size, got {overlap} (chunk_size={chunk_size})"
            )
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split(self, text: str) -> list[str]:
        """Split *text* into overlapping windows.

        Text no longer than ``chunk_size`` comes back as a single element,
        unchanged.  Otherwise each window is ``text[start:start+chunk_size]``
        stripped; the next window starts ``overlap`` characters before the
        previous one ended.  Windows that are empty after stripping are
        discarded.
        """
        if len(text) <= self._chunk_size:
            return [text]

        pieces: list[str] = []
        start = 0
        length = len(text)
        while True:
            end = min(start + self._chunk_size, length)
            piece = text[start:end].strip()
            if piece:
                pieces.append(piece)
            if end == length:
                break
            start = end - self._overlap
        return pieces

    def chunk_page(self, text: str, source: str, page_number: int) -> list[DocumentChunk]:
        """Split one page of *text* into :class:`DocumentChunk` objects.

        Parameters
        ----------
        text:
            Cleaned page text.
        source:
            Originating file name, stored on each chunk and folded into its id.
        page_number:
            1-based page or slide number.

        Returns
        -------
        list[DocumentChunk]
            Chunks in page order with ``chunk_index`` 0, 1, 2, ...
            Blank input returns an empty list.
        """
        if not text or not text.strip():
            return []

        chunks: list[DocumentChunk] = []
        for index, content in enumerate(self.split(text)):
            if not content.strip():
                continue
            chunks.append(
                DocumentChunk(
                    id=chunk_id(source, page_number, index, content),
                    content=content,
                    page_number=page_number,
                    source=source,
                    chunk_index=index,
                )
            )

        logger.debug(
            "page_chunked",
            source=source,
            page_number=page_number,
            num_chunks=len(chunks),
            page_chars=len(text),
        )
        return chunks
