"""Source processor for PowerPoint (.pptx) slide decks.

A .pptx file is a zip archive of Office Open XML parts.  Each slide lives at
``ppt/slides/slideN.xml`` and its visible text sits in DrawingML text runs
(``<a:t>...</a:t>``).  This processor reads the archive straight from bytes,
pulls every text run out of every slide part, and joins the runs of one
slide with single spaces.

Slides are numbered 1, 2, 3, ... in the order their parts appear in the
archive.  A slide without text still consumes a number, so page numbers
stay aligned with the deck even when some slides are images only.
"""

from __future__ import annotations

import html
import io
import re
import zipfile

import structlog

from src.models.rag import ExtractedPage
from src.utils.errors import DocumentParseError
from src.utils.text_normalizer import clean_text

logger = structlog.get_logger(logger_name=__name__)

_SLIDE_PREFIX = "ppt/slides/slide"
_TEXT_RUN = re.compile(r"<a:t(?:\s[^>]*)?>([^<]*)</a:t>")


class PPTXProcessor:
    """Extracts per-slide text from PPTX bytes."""

    def process(self, data: bytes, filename: str) -> list[ExtractedPage]:
        """Extract the cleaned text of every slide that has any.

        Raises
        ------
        DocumentParseError
            If *data* is not a readable zip archive or a slide part cannot
            be decompressed.
        """
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                slide_xml = [
                    archive.read(info).decode("utf-8", errors="replace")
                    for info in archive.infolist()
                    if self._is_slide(info.filename)
                ]
        except Exception as exc:
            # zlib.error on a corrupt member, RuntimeError when encrypted, NotImplementedError
            # for an unknown compression method.
            logger.error("pptx_open_failed", filename=filename, error=str(exc))
            raise DocumentParseError(
                message=f"Could not open slide deck '{filename}': {exc}",
                provider_name="pptx",
            ) from exc

        pages: list[ExtractedPage] = []
        for slide_number, xml in enumerate(slide_xml, start=1):
            text = clean_text(" ".join(html.unescape(run) for run in _TEXT_RUN.findall(xml)))
            if text:
                pages.append(ExtractedPage(page_number=slide_number, text=text))

        if not pages:
            logger.warning("pptx_no_text_extracted", filename=filename, slides=len(slide_xml))

        logger.info(
            "pptx_processed",
            filename=filename,
            slides=len(slide_xml),
            slides_with_text=len(pages),
        )
        return pages

    @staticmethod
    def _is_slide(member_name: str) -> bool:
        # Excludes ppt/slides/_rels/slideN.xml.rels and slide layouts/masters.
        return member_name.startswith(_SLIDE_PREFIX) and member_name.endswith(".xml")
