"""Source processor for PDF course documents.

Reads PDF bytes using PyMuPDF (fitz) and extracts text page-by-page.
Returns one :class:`~src.models.rag.ExtractedPage` per page that still has
text after whitespace cleaning; page numbers are 1-based and follow the
document's physical page order, so blank pages leave gaps.

Only embedded text layers are read.  Scanned pages without a text layer
produce no pages (no OCR).
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.models.rag import ExtractedPage
from src.utils.errors import DocumentParseError
from src.utils.text_normalizer import clean_text

logger = structlog.get_logger(logger_name=__name__)


class PDFProcessor:
    """Extracts per-page text from PDF bytes."""

    def process(self, data: bytes, filename: str) -> list[ExtractedPage]:
        """Extract the cleaned text of every non-empty page.

        Parameters
        ----------
        data:
            Raw PDF file contents.
        filename:
            Original file name, used only for logging and error messages.

        Raises
        ------
        DocumentParseError
            If PyMuPDF cannot open or read the document.
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            logger.error("pdf_open_failed", filename=filename, error=str(exc))
            raise DocumentParseError(
                message=f"Could not open PDF '{filename}': {exc}",
                provider_name="pymupdf",
            ) from exc

        pages: list[ExtractedPage] = []
        try:
            for page_index in range(len(doc)):
                page = doc[page_index]
                text = clean_text(page.get_text("text"))
                if text:
                    pages.append(ExtractedPage(page_number=page_index + 1, text=text))
            page_count = len(doc)
        except Exception as exc:
            logger.error("pdf_read_failed", filename=filename, error=str(exc))
            raise DocumentParseError(
                message=f"Could not read PDF '{filename}': {exc}",
                provider_name="pymupdf",
            ) from exc
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_extracted", filename=filename)

        logger.info(
            "pdf_processed",
            filename=filename,
            pages=page_count,
            pages_with_text=len(pages),
        )
        return pages
