"""Content extraction module.

Normalizes web pages, PDF documents and EPUB books into one canonical
article record.

Usage:
    from content_ingest_service.extraction import ExtractionPipeline, PipelineConfig

    config = PipelineConfig(timeout_seconds=10)
    pipeline = ExtractionPipeline(config)

    article = await pipeline.extract_url("https://example.com/article")
    print(article.title, article.estimated_read_time)
"""

from .base import BaseExtractor, ExtractedArticle, SourceRequest
from .content_type import SourceType, detect_source_type
from .epub_extractor import CoverSource, EPUBExtractor, EpubMetadata, validate_epub_structure
from .exceptions import (
    ContentTooLargeError,
    ContentTypeError,
    EpubExtractionError,
    EpubStructuralError,
    ExtractionError,
    FetchError,
    FetchTimeoutError,
    NetworkError,
    PdfParseError,
    ReadabilityError,
    ValidationError,
)
from .fetcher import FetchAttempt, FetchCause, FetchOutcome, FetchStrategy, HtmlFetcher
from .html_extractor import HTMLExtractor, ReadabilityResult
from .ocr import OcrEngine, OcrSession, TesseractOcrEngine
from .pdf_extractor import PDFExtractor
from .pipeline import ExtractionPipeline, PipelineConfig
from .sanitizer import html_to_markdown, sanitize_html
from .utils import clean_text, estimate_reading_time, make_excerpt, normalize_whitespace

__all__ = [
    # Records
    "BaseExtractor",
    "ExtractedArticle",
    "SourceRequest",
    # Source types
    "SourceType",
    "detect_source_type",
    # Fetch
    "HtmlFetcher",
    "FetchAttempt",
    "FetchCause",
    "FetchOutcome",
    "FetchStrategy",
    # Extractors
    "HTMLExtractor",
    "ReadabilityResult",
    "PDFExtractor",
    "EPUBExtractor",
    "EpubMetadata",
    "CoverSource",
    "validate_epub_structure",
    # OCR
    "OcrEngine",
    "OcrSession",
    "TesseractOcrEngine",
    # Pipeline
    "ExtractionPipeline",
    "PipelineConfig",
    # Exceptions
    "ExtractionError",
    "ValidationError",
    "NetworkError",
    "FetchError",
    "FetchTimeoutError",
    "ReadabilityError",
    "PdfParseError",
    "EpubStructuralError",
    "EpubExtractionError",
    "ContentTooLargeError",
    "ContentTypeError",
    # Utilities
    "clean_text",
    "normalize_whitespace",
    "estimate_reading_time",
    "make_excerpt",
    "sanitize_html",
    "html_to_markdown",
]
