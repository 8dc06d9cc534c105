"""Core records and abstract base class for content extractors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from .content_type import SourceType


@dataclass(frozen=True)
class SourceRequest:
    """Input to the extraction pipeline.

    Attributes:
        source_type: Declared source type (web, pdf, epub)
        origin: URL string for web sources, raw bytes for pdf/epub
        original_url: Where the bytes came from (filename or URL), if known
    """

    source_type: SourceType
    origin: str | bytes
    original_url: str | None = None


@dataclass
class ExtractedArticle:
    """Canonical article record produced by every extractor.

    Design Decision: Uses dataclass for simplicity.
    Alternative considered: Pydantic BaseModel (rejected to keep API schemas
    separate from extraction internals - see schemas/extraction.py).

    The persistence layer assigns identity, timestamps and flags; none of
    those live here.

    Attributes:
        title: Document title (may be empty; "Untitled" fallback is the caller's job)
        content: Sanitized HTML (web) or plain text (pdf/epub)
        excerpt: Short summary, at most ~280 characters
        source_type: Which extractor produced the record
        estimated_read_time: Minutes, never below 1
        author: Author / byline (if available)
        site_name: Publishing site (web only)
        language: Language code (e.g., 'en', 'fr')
        published_date: Publication date as reported by the source
        page_count: Number of pages (pdf only)
        cover: Base64 data URL of the cover image (epub only)
        url: Normalized origin URL (if known)
        markdown: Markdown rendition of the sanitized HTML (web only)
        word_count: Whitespace token count of the plain text
        metadata: Additional metadata (extraction_method, warnings, ...)
    """

    title: str
    content: str
    excerpt: str
    source_type: SourceType
    estimated_read_time: int = 1
    author: str | None = None
    site_name: str | None = None
    language: str | None = None
    published_date: str | None = None
    page_count: int | None = None
    cover: str | None = None
    url: str | None = None
    markdown: str | None = None
    word_count: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Enforce the reading time floor."""
        self.estimated_read_time = max(1, self.estimated_read_time)


class BaseExtractor(ABC):
    """Abstract base class for document extractors.

    Byte-oriented extractors (PDF, EPUB) inherit from this base to share
    one interface with the pipeline facade.
    """

    @abstractmethod
    def extract(self, content: bytes, original_url: str | None = None) -> ExtractedArticle:
        """Extract an article record from raw bytes.

        Args:
            content: Raw document bytes
            original_url: Source URL or filename for context/metadata

        Returns:
            ExtractedArticle built from the document

        Raises:
            ExtractionError: If the document cannot be opened at all
        """
        pass

    @abstractmethod
    def can_extract(self, source_type: SourceType) -> bool:
        """Check if this extractor can handle the source type."""
        pass
