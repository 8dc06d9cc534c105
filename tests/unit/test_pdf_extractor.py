"""Tests for PDF text extraction with OCR escalation."""

from collections.abc import Callable

import pytest

from content_ingest_service.extraction import PDFExtractor, SourceType
from content_ingest_service.extraction.exceptions import PdfParseError
from content_ingest_service.extraction.pdf_extractor import TextFragment, order_fragments
from tests.fakes import FakeOcrEngine

PdfFactory = Callable[..., bytes]


class TestOrderFragments:
    def test_lines_top_to_bottom(self) -> None:
        fragments = [
            TextFragment(x=10, y=200, text="second"),
            TextFragment(x=10, y=100, text="first"),
        ]

        assert order_fragments(fragments) == ["first", "second"]

    def test_same_line_left_to_right(self) -> None:
        fragments = [
            TextFragment(x=300, y=100, text="right"),
            TextFragment(x=10, y=100.5, text="left"),
        ]

        assert order_fragments(fragments, tolerance=1.0) == ["left", "right"]

    def test_outside_tolerance_is_new_line(self) -> None:
        fragments = [
            TextFragment(x=300, y=100, text="upper"),
            TextFragment(x=10, y=103, text="lower"),
        ]

        assert order_fragments(fragments, tolerance=1.0) == ["upper", "lower"]

    def test_empty(self) -> None:
        assert order_fragments([]) == []


class TestPDFExtractor:
    def test_text_layer_without_ocr(
        self, pdf_factory: PdfFactory, fake_ocr: FakeOcrEngine
    ) -> None:
        # Arrange
        content = pdf_factory([[(72, 100, "Hello world from a PDF page")]])
        extractor = PDFExtractor(ocr_engine=fake_ocr)

        # Act
        text = extractor.extract_text(content)

        # Assert
        assert text == "Hello world from a PDF page"
        assert fake_ocr.opened == 0

    def test_reading_order_follows_position(
        self, pdf_factory: PdfFactory, fake_ocr: FakeOcrEngine
    ) -> None:
        content = pdf_factory(
            [
                [
                    (72, 200, "Second line of text"),
                    (72, 100, "First line of text"),
                ]
            ]
        )
        extractor = PDFExtractor(ocr_engine=fake_ocr)

        assert extractor.extract_text(content) == "First line of text Second line of text"

    def test_sparse_page_escalates_to_ocr(
        self, pdf_factory: PdfFactory, fake_ocr: FakeOcrEngine
    ) -> None:
        # Arrange
        content = pdf_factory(
            [
                [(72, 100, "Page one text here")],
                [],
                [(72, 100, "Page three text here")],
            ]
        )
        extractor = PDFExtractor(ocr_engine=fake_ocr)

        # Act
        readout = extractor.read(content)

        # Assert
        assert readout.text == "Page one text here\nRecognized scan text\nPage three text here"
        assert readout.ocr_pages == [2]
        assert fake_ocr.opened == 1
        assert fake_ocr.closed == 1

    def test_ocr_failure_leaves_empty_page(self, pdf_factory: PdfFactory) -> None:
        """A failing page contributes an empty segment; the rest survive."""
        # Arrange
        ocr = FakeOcrEngine(error=RuntimeError("tesseract not installed"))
        content = pdf_factory(
            [
                [(72, 100, "Page one text here")],
                [],
                [(72, 100, "Page three text here")],
            ]
        )
        extractor = PDFExtractor(ocr_engine=ocr)

        # Act
        article = extractor.extract(content, "report.pdf")

        # Assert
        segments = article.content.split("\n")
        assert segments == ["Page one text here", "", "Page three text here"]
        assert ocr.calls == 1
        assert ocr.closed == 1  # session released even on failure
        assert article.metadata["ocr_pages"] == [2]
        assert any("[2]" in warning for warning in article.metadata["warnings"])

    @pytest.mark.parametrize(
        ("pages", "expected"),
        [
            ([[], [(72, 100, "Page two text here")]], ["", "Page two text here"]),
            ([[(72, 100, "Page one text here")], []], ["Page one text here", ""]),
        ],
    )
    def test_ocr_failure_at_document_edge_keeps_segment(
        self, pdf_factory: PdfFactory, pages: list, expected: list[str]
    ) -> None:
        ocr = FakeOcrEngine(error=RuntimeError("tesseract not installed"))
        extractor = PDFExtractor(ocr_engine=ocr)

        article = extractor.extract(pdf_factory(pages), "report.pdf")

        assert article.content.split("\n") == expected
        assert article.word_count == 4

    def test_no_text_anywhere(self, pdf_factory: PdfFactory) -> None:
        extractor = PDFExtractor(ocr_engine=FakeOcrEngine(text=""))

        article = extractor.extract(pdf_factory([[], []]))

        assert article.content == ""
        assert article.excerpt == ""
        assert article.estimated_read_time == 1
        assert article.page_count == 2
        assert "No text could be extracted from any page" in article.metadata["warnings"]

    def test_threshold_is_configurable(
        self, pdf_factory: PdfFactory, fake_ocr: FakeOcrEngine
    ) -> None:
        content = pdf_factory([[(72, 100, "Short")]])
        extractor = PDFExtractor(ocr_engine=fake_ocr, min_text_length=3)

        assert extractor.extract_text(content) == "Short"
        assert fake_ocr.opened == 0

    def test_extract_builds_article(
        self, pdf_factory: PdfFactory, fake_ocr: FakeOcrEngine
    ) -> None:
        # Arrange
        content = pdf_factory([[(72, 100, "word " * 15)]] * 3)
        extractor = PDFExtractor(ocr_engine=fake_ocr)

        # Act
        article = extractor.extract(content, "https://example.com/files/My%20Paper.pdf")

        # Assert
        assert article.source_type == SourceType.PDF
        assert article.title == "My Paper"
        assert article.page_count == 3
        assert article.word_count == 45
        assert article.estimated_read_time == 1
        assert article.excerpt.endswith("...")
        assert article.metadata["extraction_method"] == "pymupdf"

    def test_document_title_preferred(
        self, pdf_factory: PdfFactory, fake_ocr: FakeOcrEngine
    ) -> None:
        content = pdf_factory([[(72, 100, "Hello world from a PDF page")]], title="Annual Report")
        extractor = PDFExtractor(ocr_engine=fake_ocr)

        article = extractor.extract(content, "report.pdf")

        assert article.title == "Annual Report"

    def test_unopenable_document(self, fake_ocr: FakeOcrEngine) -> None:
        extractor = PDFExtractor(ocr_engine=fake_ocr)

        with pytest.raises(PdfParseError, match="PDF could not be opened"):
            extractor.extract_text(b"this is not a pdf")

    def test_empty_bytes(self, fake_ocr: FakeOcrEngine) -> None:
        extractor = PDFExtractor(ocr_engine=fake_ocr)

        with pytest.raises(PdfParseError):
            extractor.extract_text(b"")
