"""Unit tests for source processors -- PDF, PPTX and extension dispatch."""

from __future__ import annotations

import io
import zipfile
from unittest.mock import MagicMock, patch

import fitz
import pytest

from src.models.rag import ExtractedPage
from src.services.ingestion.source_processors import (
    SUPPORTED_EXTENSIONS,
    extract_pages,
    file_extension,
)
from src.services.ingestion.source_processors.pdf_processor import PDFProcessor
from src.services.ingestion.source_processors.pptx_processor import PPTXProcessor
from src.utils.errors import DocumentParseError, UnsupportedDocumentError
from src.utils.text_normalizer import clean_text, truncate_preview
from tests.conftest import build_pptx


def _mock_doc(page_texts: list[str]) -> MagicMock:
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.get_text.return_value = text
        pages.append(page)
    doc = MagicMock()
    doc.__len__ = MagicMock(return_value=len(pages))
    doc.__getitem__ = MagicMock(side_effect=lambda i: pages[i])
    doc.close = MagicMock()
    return doc


# ======================================================================
# PDF
# ======================================================================


class TestPDFProcessor:
    """Tests for the PDFProcessor that reads PDFs via PyMuPDF (fitz)."""

    @patch("src.services.ingestion.source_processors.pdf_processor.fitz")
    def test_process_success(self, mock_fitz: MagicMock) -> None:
        mock_doc = _mock_doc(
            [
                "Week 1\n\nIntroduction   to\tmachine learning.",
                "Supervised learning maps inputs\nto labelled outputs.",
            ]
        )
        mock_fitz.open.return_value = mock_doc

        pages = PDFProcessor().process(b"%PDF-1.7 ...", "ml101.pdf")

        assert pages == [
            ExtractedPage(page_number=1, text="Week 1 Introduction to machine learning."),
            ExtractedPage(page_number=2, text="Supervised learning maps inputs to labelled outputs."),
        ]
        mock_fitz.open.assert_called_once_with(stream=b"%PDF-1.7 ...", filetype="pdf")
        mock_doc.close.assert_called_once()

    @patch("src.services.ingestion.source_processors.pdf_processor.fitz")
    def test_blank_pages_are_skipped_but_numbering_is_kept(self, mock_fitz: MagicMock) -> None:
        mock_fitz.open.return_value = _mock_doc(["First page.", "  \n\t ", "Third page."])

        pages = PDFProcessor().process(b"pdf", "notes.pdf")

        assert [p.page_number for p in pages] == [1, 3]

    @patch("src.services.ingestion.source_processors.pdf_processor.fitz")
    def test_process_empty_pdf(self, mock_fitz: MagicMock) -> None:
        mock_fitz.open.return_value = _mock_doc([])
        assert PDFProcessor().process(b"pdf", "empty.pdf") == []

    @patch("src.services.ingestion.source_processors.pdf_processor.fitz")
    def test_process_open_error(self, mock_fitz: MagicMock) -> None:
        mock_fitz.open.side_effect = RuntimeError("Corrupted PDF")

        with pytest.raises(DocumentParseError, match="broken.pdf"):
            PDFProcessor().process(b"garbage", "broken.pdf")

    @patch("src.services.ingestion.source_processors.pdf_processor.fitz")
    def test_page_read_error_closes_document(self, mock_fitz: MagicMock) -> None:
        mock_doc = _mock_doc(["ok"])
        mock_doc.__getitem__ = MagicMock(side_effect=RuntimeError("bad xref"))
        mock_fitz.open.return_value = mock_doc

        with pytest.raises(DocumentParseError):
            PDFProcessor().process(b"pdf", "broken.pdf")
        mock_doc.close.assert_called_once()

    def test_real_pdf_round_trip(self) -> None:
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "Entropy measures uncertainty.")
        data = doc.tobytes()
        doc.close()

        pages = PDFProcessor().process(data, "entropy.pdf")

        assert len(pages) == 1
        assert pages[0].page_number == 1
        assert pages[0].text == "Entropy measures uncertainty."

    def test_corrupt_bytes_raise_parse_error(self) -> None:
        with pytest.raises(DocumentParseError):
            PDFProcessor().process(b"this is definitely not a pdf", "fake.pdf")


# ======================================================================
# PPTX
# ======================================================================


class TestPPTXProcessor:
    def test_slides_in_archive_order(self) -> None:
        data = build_pptx(["Slide one title", "Slide two body"])

        pages = PPTXProcessor().process(data, "deck.pptx")

        assert pages == [
            ExtractedPage(page_number=1, text="Slide one title"),
            ExtractedPage(page_number=2, text="Slide two body"),
        ]

    def test_empty_slide_still_advances_numbering(self) -> None:
        data = build_pptx(["First", "", "Third"])

        pages = PPTXProcessor().process(data, "deck.pptx")

        assert [p.page_number for p in pages] == [1, 3]

    def test_multiple_runs_are_joined_with_spaces(self) -> None:
        xml = (
            '<p:sld xmlns:a="a" xmlns:p="p"><a:p>'
            '<a:r><a:t>Loss</a:t></a:r><a:r><a:rPr b="1"/><a:t xml:space="preserve">functions</a:t></a:r>'
            "</a:p><a:p><a:r><a:t>and   gradients</a:t></a:r></a:p></p:sld>"
        )
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("ppt/slides/slide1.xml", xml)

        pages = PPTXProcessor().process(buffer.getvalue(), "deck.pptx")

        assert pages[0].text == "Loss functions and gradients"

    def test_xml_entities_are_unescaped(self) -> None:
        data = build_pptx(["Q &amp; A: x &lt; y"])
        pages = PPTXProcessor().process(data, "deck.pptx")
        assert pages[0].text == "Q & A: x < y"

    def test_non_slide_parts_are_ignored(self) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("ppt/slideLayouts/slideLayout1.xml", "<a:t>Layout text</a:t>")
            archive.writestr("ppt/notesSlides/notesSlide1.xml", "<a:t>Speaker notes</a:t>")
            archive.writestr("ppt/slides/slide1.xml", "<a:t>Visible text</a:t>")

        pages = PPTXProcessor().process(buffer.getvalue(), "deck.pptx")

        assert pages == [ExtractedPage(page_number=1, text="Visible text")]

    def test_bad_zip_raises_parse_error(self) -> None:
        with pytest.raises(DocumentParseError, match="deck.pptx"):
            PPTXProcessor().process(b"PK\x03\x04 not really a zip", "deck.pptx")

    def test_corrupt_deflate_member_raises_parse_error(self) -> None:
        name = "ppt/slides/slide1.xml"
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(name, "<a:t>" + "Mitochondria make ATP. " * 50 + "</a:t>")
        raw = bytearray(buffer.getvalue())
        # Local header is 30 bytes plus the member name; 0xFF starts an invalid deflate block.
        start = 30 + len(name)
        raw[start : start + 4] = b"\xff\xff\xff\xff"

        with pytest.raises(DocumentParseError, match="deck.pptx"):
            PPTXProcessor().process(bytes(raw), "deck.pptx")


# ======================================================================
# Dispatch and text helpers
# ======================================================================


class TestExtractPages:
    def test_supported_extensions(self) -> None:
        assert SUPPORTED_EXTENSIONS == {"pdf", "pptx"}

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [("a.PDF", "pdf"), ("deck.final.pptx", "pptx"), ("README", ""), ("notes.docx", "docx")],
    )
    def test_file_extension(self, filename: str, expected: str) -> None:
        assert file_extension(filename) == expected

    def test_dispatches_pptx(self) -> None:
        pages = extract_pages(build_pptx(["Hello"]), "Deck.PPTX")
        assert pages == [ExtractedPage(page_number=1, text="Hello")]

    @patch("src.services.ingestion.source_processors.pdf_processor.fitz")
    def test_dispatches_pdf(self, mock_fitz: MagicMock) -> None:
        mock_fitz.open.return_value = _mock_doc(["Page text"])
        pages = extract_pages(b"pdf", "lecture.pdf")
        assert pages == [ExtractedPage(page_number=1, text="Page text")]

    def test_unsupported_extension_raises(self) -> None:
        with pytest.raises(UnsupportedDocumentError):
            extract_pages(b"data", "essay.docx")


class TestTextNormalizer:
    def test_clean_text_collapses_whitespace(self) -> None:
        assert clean_text("  a\n\n b\t\tc  ") == "a b c"

    def test_clean_text_of_whitespace_is_empty(self) -> None:
        assert clean_text(" \n\t ") == ""

    def test_truncate_preview(self) -> None:
        assert truncate_preview("short", 200) == "short"
        assert truncate_preview("x" * 200, 200) == "x" * 200
        assert truncate_preview("x" * 201, 200) == "x" * 200 + "..."
