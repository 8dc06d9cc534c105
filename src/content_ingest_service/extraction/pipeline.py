"""Content extraction pipeline orchestration."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

import httpx

from content_ingest_service.config import (
    BROWSER_ACCEPT,
    BROWSER_USER_AGENT,
    DEFAULT_FETCH_PROXIES,
    Settings,
)
from content_ingest_service.logging_config import get_logger

from .base import BaseExtractor, ExtractedArticle, SourceRequest
from .content_type import SourceType, detect_source_type
from .epub_extractor import EPUBExtractor, validate_epub_structure
from .exceptions import ContentTypeError, EpubStructuralError, ValidationError
from .fetcher import HtmlFetcher
from .html_extractor import Heuristic, HTMLExtractor
from .ocr import OcrEngine, TesseractOcrEngine
from .pdf_extractor import PDFExtractor
from .utils import is_valid_url, normalize_url

logger = get_logger(__name__)


@dataclass
class PipelineConfig:
    """Configuration for extraction pipeline.

    Design Decision: Configurable timeouts and thresholds
    - All settings have sensible defaults
    - Environment-driven configuration in production (see from_settings)

    Attributes:
        timeout_seconds: Per-attempt HTTP timeout
        proxies: Proxy URL templates tried after the direct fetch
        user_agent: User-Agent header for requests
        accept: Accept header for requests
        max_content_size_mb: Maximum fetched content size
        excerpt_length: Derived excerpt length
        words_per_minute: Reading speed for read-time estimates
        pdf_min_text_length: Minimum page text before OCR escalation
        pdf_ocr_scale: Render upscale factor for OCR
        pdf_line_tolerance: Vertical tolerance for grouping text into lines
        ocr_language: Tesseract language code
        ocr_tessdata_dir: Tesseract language data directory
    """

    timeout_seconds: float = 15.0
    proxies: list[str] = field(default_factory=lambda: list(DEFAULT_FETCH_PROXIES))
    user_agent: str = BROWSER_USER_AGENT
    accept: str = BROWSER_ACCEPT
    max_content_size_mb: int = 20
    excerpt_length: int = 280
    words_per_minute: int = 200
    pdf_min_text_length: int = 10
    pdf_ocr_scale: float = 2.0
    pdf_line_tolerance: float = 1.0
    ocr_language: str = "eng"
    ocr_tessdata_dir: str | None = None

    @property
    def max_content_size_bytes(self) -> int:
        """Get max content size in bytes."""
        return self.max_content_size_mb * 1024 * 1024

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        """Build pipeline configuration from application settings."""
        return cls(
            timeout_seconds=settings.fetch_timeout_seconds,
            proxies=list(settings.fetch_proxies),
            user_agent=settings.fetch_user_agent,
            accept=settings.fetch_accept,
            max_content_size_mb=settings.fetch_max_content_size_mb,
            excerpt_length=settings.excerpt_length,
            words_per_minute=settings.words_per_minute,
            pdf_min_text_length=settings.pdf_min_text_length,
            pdf_ocr_scale=settings.pdf_ocr_scale,
            pdf_line_tolerance=settings.pdf_line_tolerance,
            ocr_language=settings.ocr_language,
            ocr_tessdata_dir=settings.ocr_tessdata_dir,
        )


class ExtractionPipeline:
    """Dispatches a SourceRequest to the matching extractor.

    Flow:
    - web:  validate URL -> fetch (direct, then proxies) -> readability -> sanitize
    - pdf:  text layer per page, OCR for sparse pages
    - epub: structural pre-check -> metadata, cover, spine text

    Extractors are stateless between calls, so one pipeline may serve
    concurrent invocations. PDF/EPUB work runs in a worker thread and is
    not cancelled mid-document.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        ocr_engine: OcrEngine | None = None,
        heuristics: Sequence[Heuristic] | None = None,
    ) -> None:
        """Initialize pipeline with configuration.

        Args:
            config: Pipeline configuration (uses defaults if None)
            transport: Optional httpx transport for the fetcher
            ocr_engine: Optional OCR engine (Tesseract by default)
            heuristics: Optional readability heuristics (trafilatura, newspaper4k by default)
        """
        self.config = config or PipelineConfig()
        self.ocr_engine: OcrEngine = ocr_engine or TesseractOcrEngine(
            language=self.config.ocr_language,
            tessdata=self.config.ocr_tessdata_dir,
        )
        self.fetcher = HtmlFetcher(
            timeout_seconds=self.config.timeout_seconds,
            proxies=self.config.proxies,
            user_agent=self.config.user_agent,
            accept=self.config.accept,
            max_content_size_bytes=self.config.max_content_size_bytes,
            transport=transport,
        )
        self.html_extractor = HTMLExtractor(
            heuristics=heuristics,
            excerpt_length=self.config.excerpt_length,
            words_per_minute=self.config.words_per_minute,
        )
        self.pdf_extractor = PDFExtractor(
            ocr_engine=self.ocr_engine,
            min_text_length=self.config.pdf_min_text_length,
            ocr_scale=self.config.pdf_ocr_scale,
            line_tolerance=self.config.pdf_line_tolerance,
            excerpt_length=self.config.excerpt_length,
            words_per_minute=self.config.words_per_minute,
        )
        self.epub_extractor = EPUBExtractor(
            excerpt_length=self.config.excerpt_length,
            words_per_minute=self.config.words_per_minute,
        )

    async def extract(self, request: SourceRequest) -> ExtractedArticle:
        """Extract a canonical article from a source request.

        Args:
            request: What to extract and from where

        Returns:
            ExtractedArticle for the source

        Raises:
            ValidationError: If the request is malformed
            FetchError: If every fetch attempt failed
            ReadabilityError: If no article could be found in the HTML
            PdfParseError: If the PDF cannot be opened
            EpubStructuralError: If the EPUB lacks mandatory entries
            EpubExtractionError: If EPUB metadata cannot be read
        """
        if request.source_type == SourceType.WEB:
            if not isinstance(request.origin, str):
                raise ValidationError("Web sources require a URL string")
            return await self._extract_web(request.origin)

        if not isinstance(request.origin, bytes | bytearray):
            raise ValidationError(f"{request.source_type.value} sources require raw bytes")
        content = bytes(request.origin)

        if request.source_type == SourceType.PDF:
            return await self._extract_document(self.pdf_extractor, content, request.original_url)

        if request.source_type == SourceType.EPUB:
            if not validate_epub_structure(content):
                raise EpubStructuralError(
                    "Invalid EPUB: missing 'mimetype' (application/epub+zip) "
                    "or 'META-INF/container.xml'"
                )
            return await self._extract_document(self.epub_extractor, content, request.original_url)

        raise ContentTypeError(f"Unsupported source type: {request.source_type}")

    async def extract_url(self, url: str) -> ExtractedArticle:
        """Extract an article from a web URL."""
        return await self.extract(SourceRequest(source_type=SourceType.WEB, origin=url))

    async def extract_file(self, content: bytes, filename: str | None = None) -> ExtractedArticle:
        """Extract an article from uploaded bytes, detecting the source type.

        Raises:
            ContentTypeError: If the bytes are neither PDF nor EPUB
        """
        source_type = detect_source_type(content, filename)
        if source_type not in (SourceType.PDF, SourceType.EPUB):
            raise ContentTypeError("Unsupported file type. Allowed: .pdf, .epub")
        return await self.extract(
            SourceRequest(source_type=source_type, origin=content, original_url=filename)
        )

    async def _extract_web(self, url: str) -> ExtractedArticle:
        if not is_valid_url(url):
            raise ValidationError("Invalid URL provided")

        normalized_url = normalize_url(url)
        logger.info("web_extraction_started", url=normalized_url)

        html = await self.fetcher.fetch_html(normalized_url)
        return await asyncio.to_thread(self.html_extractor.extract_article, html, normalized_url)

    async def _extract_document(
        self,
        extractor: BaseExtractor,
        content: bytes,
        original_url: str | None,
    ) -> ExtractedArticle:
        logger.info(
            "document_extraction_started",
            extractor=type(extractor).__name__,
            size_bytes=len(content),
        )
        return await asyncio.to_thread(extractor.extract, content, original_url)
