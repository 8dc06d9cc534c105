"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from content_ingest_service.extraction import (
    ExtractionPipeline,
    PipelineConfig,
    ReadabilityResult,
)
from content_ingest_service.main import app
from content_ingest_service.routers.extract import get_pipeline

from .fakes import FakeOcrEngine, build_epub, build_pdf, html_transport, make_heuristic


@pytest.fixture
def fake_ocr() -> FakeOcrEngine:
    return FakeOcrEngine()


@pytest.fixture
def pdf_factory() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def epub_factory() -> Callable[..., bytes]:
    return build_epub


@pytest.fixture
def heuristic_factory() -> Callable[..., Callable[[str, str], ReadabilityResult | None]]:
    return make_heuristic


@pytest.fixture
def article_result() -> ReadabilityResult:
    """Typical heuristic result: 500 words, byline, no site name."""
    return ReadabilityResult(
        title="Test Article 1",
        content="<p>word </p>" * 500,
        text_content="word " * 500,
        excerpt="Test excerpt...",
        byline="Test Author",
        site_name=None,
    )


@pytest.fixture
def test_pipeline(article_result: ReadabilityResult, fake_ocr: FakeOcrEngine) -> ExtractionPipeline:
    """Pipeline with stubbed network, readability and OCR."""
    return ExtractionPipeline(
        PipelineConfig(proxies=[], timeout_seconds=1.0),
        transport=html_transport(),
        ocr_engine=fake_ocr,
        heuristics=[make_heuristic(article_result)],
    )


@pytest.fixture
def client(test_pipeline: ExtractionPipeline) -> Iterator[TestClient]:
    """Synchronous test client for FastAPI app with the stubbed pipeline."""
    app.dependency_overrides[get_pipeline] = lambda: test_pipeline
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_pipeline, None)


@pytest.fixture
async def async_client(test_pipeline: ExtractionPipeline) -> AsyncGenerator[AsyncClient, None]:
    """Async test client with the stubbed pipeline."""
    app.dependency_overrides[get_pipeline] = lambda: test_pipeline
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_pipeline, None)
