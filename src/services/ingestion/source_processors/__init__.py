"""Source processors for course-document ingestion.

Each processor converts one upload format into a list of
:class:`~src.models.rag.ExtractedPage` objects (cleaned text per page or
slide).  The pages are then fed to the TextChunker for windowed splitting,
and onward through the embed -> store stages.

Available processors and their input formats:

- **PDFProcessor**   -- PDF documents via PyMuPDF page extraction
- **PPTXProcessor**  -- PowerPoint decks, read directly from the OOXML zip

:func:`extract_pages` picks the processor by file extension.
"""

from __future__ import annotations

from pathlib import PurePath

from src.models.rag import ExtractedPage
from src.services.ingestion.source_processors.pdf_processor import PDFProcessor
from src.services.ingestion.source_processors.pptx_processor import PPTXProcessor
from src.utils.errors import UnsupportedDocumentError
from src.utils.text_normalizer import clean_text

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({"pdf", "pptx"})


def file_extension(filename: str) -> str:
    """Return the lowercase extension of *filename* without the dot."""
    return PurePath(filename).suffix.lower().lstrip(".")


def extract_pages(data: bytes, filename: str) -> list[ExtractedPage]:
    """Extract cleaned per-page text from an uploaded document.

    Raises
    ------
    UnsupportedDocumentError
        If the extension is not ``pdf`` or ``pptx``.
    DocumentParseError
        If the file cannot be parsed.
    """
    extension = file_extension(filename)
    if extension == "pdf":
        return PDFProcessor().process(data, filename)
    if extension == "pptx":
        return PPTXProcessor().process(data, filename)
    raise UnsupportedDocumentError(
        message=f"Unsupported file type '.{extension}'. Please upload a PDF or PPTX file."
        if extension
        else "File has no extension. Please upload a PDF or PPTX file.",
    )


__all__ = [
    "PDFProcessor",
    "PPTXProcessor",
    "SUPPORTED_EXTENSIONS",
    "clean_text",
    "extract_pages",
    "file_extension",
]
