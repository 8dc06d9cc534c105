"""Tests for source type detection."""

from content_ingest_service.extraction.content_type import (
    SourceType,
    detect_source_type,
    detect_source_type_from_bytes,
    detect_source_type_from_filename,
)
from tests.fakes import build_epub


class TestDetectFromBytes:
    def test_pdf_magic(self) -> None:
        assert detect_source_type_from_bytes(b"%PDF-1.7\n...") == SourceType.PDF

    def test_epub_archive(self) -> None:
        assert detect_source_type_from_bytes(build_epub()) == SourceType.EPUB

    def test_plain_zip_is_unknown(self) -> None:
        assert detect_source_type_from_bytes(build_epub(include_mimetype=False)) is None

    def test_html_markers(self) -> None:
        assert detect_source_type_from_bytes(b"<!DOCTYPE html><html>") == SourceType.WEB
        assert detect_source_type_from_bytes(b"  <HTML lang='en'>") == SourceType.WEB

    def test_unknown(self) -> None:
        assert detect_source_type_from_bytes(b"just some text") is None


class TestDetectFromFilename:
    def test_extensions(self) -> None:
        assert detect_source_type_from_filename("paper.PDF") == SourceType.PDF
        assert detect_source_type_from_filename("novel.epub") == SourceType.EPUB
        assert detect_source_type_from_filename("index.htm") == SourceType.WEB
        assert detect_source_type_from_filename("notes.txt") is None


class TestDetectSourceType:
    def test_bytes_win_over_extension(self) -> None:
        assert detect_source_type(b"%PDF-1.4", "book.epub") == SourceType.PDF

    def test_extension_used_when_bytes_unknown(self) -> None:
        assert detect_source_type(b"garbage", "book.epub") == SourceType.EPUB

    def test_nothing_known(self) -> None:
        assert detect_source_type(b"garbage") is None
