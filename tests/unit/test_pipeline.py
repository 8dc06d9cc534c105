"""Tests for the extraction pipeline facade."""

from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from content_ingest_service.config import Settings
from content_ingest_service.extraction import (
    ExtractionPipeline,
    PipelineConfig,
    ReadabilityResult,
    SourceRequest,
    SourceType,
)
from content_ingest_service.extraction.exceptions import (
    ContentTypeError,
    EpubStructuralError,
    FetchError,
    ValidationError,
)
from tests.fakes import FakeOcrEngine, build_epub, build_pdf, html_transport, make_heuristic


def make_pipeline(
    result: ReadabilityResult | None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[ExtractionPipeline, Any]:
    heuristic = make_heuristic(result)
    pipeline = ExtractionPipeline(
        PipelineConfig(proxies=[], timeout_seconds=1.0),
        transport=transport or html_transport(),
        ocr_engine=FakeOcrEngine(),
        heuristics=[heuristic],
    )
    return pipeline, heuristic


class TestWebSources:
    @pytest.mark.asyncio
    async def test_fetches_and_extracts(self, article_result: ReadabilityResult) -> None:
        # Arrange
        pipeline, heuristic = make_pipeline(article_result)

        # Act
        article = await pipeline.extract(
            SourceRequest(source_type=SourceType.WEB, origin="HTTPS://Example.com/article#top")
        )

        # Assert
        assert article.title == "Test Article 1"
        assert article.estimated_read_time == 3
        assert article.site_name == "example.com"
        assert article.url == "https://example.com/article"
        assert len(heuristic.calls) == 1

    @pytest.mark.asyncio
    async def test_fetch_failure_never_reaches_readability(
        self, article_result: ReadabilityResult
    ) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        pipeline, heuristic = make_pipeline(article_result, transport=transport)

        with pytest.raises(FetchError):
            await pipeline.extract_url("https://example.com/article")

        assert heuristic.calls == []

    @pytest.mark.asyncio
    async def test_invalid_url(self, article_result: ReadabilityResult) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text="<html></html>")

        pipeline, _heuristic = make_pipeline(article_result, transport=httpx.MockTransport(handler))

        with pytest.raises(ValidationError, match="Invalid URL provided"):
            await pipeline.extract_url("not a url")

        assert requests == []

    @pytest.mark.asyncio
    async def test_web_source_requires_string(self, article_result: ReadabilityResult) -> None:
        pipeline, _heuristic = make_pipeline(article_result)

        with pytest.raises(ValidationError):
            await pipeline.extract(SourceRequest(source_type=SourceType.WEB, origin=b"bytes"))


class TestDocumentSources:
    @pytest.mark.asyncio
    async def test_pdf_request(self) -> None:
        pipeline, _heuristic = make_pipeline(None)
        content = build_pdf([[(72, 100, "Hello world from a PDF page")]])

        article = await pipeline.extract(
            SourceRequest(source_type=SourceType.PDF, origin=content, original_url="doc.pdf")
        )

        assert article.source_type == SourceType.PDF
        assert article.content == "Hello world from a PDF page"
        assert article.page_count == 1

    @pytest.mark.asyncio
    async def test_document_requires_bytes(self) -> None:
        pipeline, _heuristic = make_pipeline(None)

        with pytest.raises(ValidationError):
            await pipeline.extract(SourceRequest(source_type=SourceType.PDF, origin="doc.pdf"))

    @pytest.mark.asyncio
    async def test_epub_structural_check_runs_first(self) -> None:
        # Arrange
        pipeline, _heuristic = make_pipeline(None)
        pipeline.epub_extractor = MagicMock()

        # Act
        with pytest.raises(EpubStructuralError):
            await pipeline.extract(
                SourceRequest(
                    source_type=SourceType.EPUB,
                    origin=build_epub(include_container=False),
                )
            )

        # Assert
        pipeline.epub_extractor.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_epub_request(self) -> None:
        pipeline, _heuristic = make_pipeline(None)

        article = await pipeline.extract(
            SourceRequest(source_type=SourceType.EPUB, origin=build_epub())
        )

        assert article.source_type == SourceType.EPUB
        assert article.title == "The Test Book"


class TestExtractFile:
    @pytest.mark.asyncio
    async def test_detects_pdf_by_magic_bytes(self) -> None:
        pipeline, _heuristic = make_pipeline(None)
        content = build_pdf([[(72, 100, "Hello world from a PDF page")]])

        article = await pipeline.extract_file(content, "upload.bin")

        assert article.source_type == SourceType.PDF

    @pytest.mark.asyncio
    async def test_detects_epub(self) -> None:
        pipeline, _heuristic = make_pipeline(None)

        article = await pipeline.extract_file(build_epub(), "book.epub")

        assert article.source_type == SourceType.EPUB
        assert article.url == "book.epub"

    @pytest.mark.asyncio
    async def test_epub_extension_without_mimetype(self) -> None:
        pipeline, _heuristic = make_pipeline(None)

        with pytest.raises(EpubStructuralError):
            await pipeline.extract_file(build_epub(include_mimetype=False), "book.epub")

    @pytest.mark.asyncio
    async def test_rejects_html_upload(self) -> None:
        pipeline, _heuristic = make_pipeline(None)

        with pytest.raises(ContentTypeError, match="Allowed: .pdf, .epub"):
            await pipeline.extract_file(b"<!DOCTYPE html><html></html>", "page.html")

    @pytest.mark.asyncio
    async def test_rejects_unknown_bytes(self) -> None:
        pipeline, _heuristic = make_pipeline(None)

        with pytest.raises(ContentTypeError):
            await pipeline.extract_file(b"plain text notes", "notes.txt")


class TestPipelineConfig:
    def test_from_settings(self) -> None:
        settings = Settings(
            fetch_timeout_seconds=5.0,
            fetch_proxies=["https://proxy.test/?url={url}"],
            pdf_min_text_length=25,
            ocr_language="deu",
        )

        config = PipelineConfig.from_settings(settings)

        assert config.timeout_seconds == 5.0
        assert config.proxies == ["https://proxy.test/?url={url}"]
        assert config.pdf_min_text_length == 25
        assert config.ocr_language == "deu"

    def test_max_content_size_bytes(self) -> None:
        assert PipelineConfig(max_content_size_mb=2).max_content_size_bytes == 2 * 1024 * 1024
