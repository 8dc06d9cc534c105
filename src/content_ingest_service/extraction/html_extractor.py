"""HTML article extraction using trafilatura with newspaper4k fallback."""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from html import escape

import lxml.html
import trafilatura
from lxml import etree
from newspaper import Article

from content_ingest_service.logging_config import get_logger

from .base import ExtractedArticle
from .content_type import SourceType
from .exceptions import ReadabilityError, ValidationError
from .sanitizer import html_to_markdown, html_to_text, sanitize_html
from .utils import (
    DEFAULT_EXCERPT_LENGTH,
    DEFAULT_WORDS_PER_MINUTE,
    clean_text,
    count_words,
    estimate_reading_time,
    hostname_of,
    is_valid_url,
    make_excerpt,
)

logger = get_logger(__name__)

XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
SITE_NAME_META = (
    '//meta[@property="og:site_name"]/@content',
    '//meta[@name="og:site_name"]/@content',
    '//meta[@name="application-name"]/@content',
)


@dataclass
class ReadabilityResult:
    """What a readability heuristic found in a document.

    Attributes:
        title: Article title
        content: Main content region as HTML (unsanitized)
        text_content: Plain text of the content region
        excerpt: Summary/description, if the page provides one
        byline: Author line
        site_name: Publishing site name
        language: Language code
        published_date: Publication date string
    """

    title: str | None
    content: str
    text_content: str
    excerpt: str | None = None
    byline: str | None = None
    site_name: str | None = None
    language: str | None = None
    published_date: str | None = None


def declared_site_name(html: str) -> str | None:
    """Site name the page itself declares in its meta tags, if any.

    trafilatura derives a sitename from the URL or canonical link when the
    page declares none; only an explicit declaration is used here.
    """
    try:
        root = lxml.html.document_fromstring(html)
    except (etree.ParserError, ValueError):
        return None

    for query in SITE_NAME_META:
        for value in root.xpath(query):
            if value.strip():
                return value.strip()
    return None


# A heuristic maps (html, url) to a result, or None when it finds no article.
Heuristic = Callable[[str, str], ReadabilityResult | None]


def trafilatura_heuristic(html: str, url: str) -> ReadabilityResult | None:
    """Extract the main content region and metadata with trafilatura."""
    content_html = trafilatura.extract(
        html,
        url=url,
        output_format="html",
        include_comments=False,
        include_tables=True,
        include_images=True,
        include_links=True,
        include_formatting=True,
        favor_recall=True,
    )
    if not content_html:
        return None

    metadata = trafilatura.extract_metadata(html, default_url=url)
    text = html_to_text(content_html)
    if not text:
        return None

    return ReadabilityResult(
        title=getattr(metadata, "title", None),
        content=content_html,
        text_content=text,
        excerpt=getattr(metadata, "description", None),
        byline=getattr(metadata, "author", None),
        site_name=declared_site_name(html),
        language=getattr(metadata, "language", None),
        published_date=getattr(metadata, "date", None),
    )


def newspaper_heuristic(html: str, url: str) -> ReadabilityResult | None:
    """Extract the article body and metadata with newspaper4k."""
    article = Article(url, keep_article_html=True)
    article.set_html(html)
    article.parse()

    if not article.text:
        return None

    content_html = getattr(article, "article_html", "") or "".join(
        f"<p>{escape(paragraph)}</p>" for paragraph in article.text.split("\n\n")
    )

    return ReadabilityResult(
        title=article.title or None,
        content=content_html,
        text_content=article.text,
        excerpt=getattr(article, "meta_description", None) or None,
        byline=", ".join(article.authors) if article.authors else None,
        site_name=getattr(article, "meta_site_name", None) or None,
        language=article.meta_lang or None,
        published_date=article.publish_date.isoformat() if article.publish_date else None,
    )


DEFAULT_HEURISTICS: tuple[Heuristic, ...] = (trafilatura_heuristic, newspaper_heuristic)


class HTMLExtractor:
    """Turn fetched HTML into a sanitized canonical article.

    Design Decision: Two-tier readability strategy
    - Primary: trafilatura (highest accuracy, rich metadata)
    - Fallback: newspaper4k (when trafilatura finds no article)

    Whatever the heuristics return is sanitized against an allow-list
    before it leaves this class.
    """

    def __init__(
        self,
        heuristics: Sequence[Heuristic] | None = None,
        excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
        words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
    ) -> None:
        self.heuristics = tuple(heuristics) if heuristics is not None else DEFAULT_HEURISTICS
        self.excerpt_length = excerpt_length
        self.words_per_minute = words_per_minute

    def can_extract(self, source_type: SourceType) -> bool:
        """Check if this extractor handles the source type."""
        return source_type == SourceType.WEB

    def extract_article(self, html: str | bytes, origin_url: str) -> ExtractedArticle:
        """Extract an article from HTML.

        Args:
            html: Raw HTML as string or bytes
            origin_url: URL the HTML was fetched from

        Returns:
            ExtractedArticle with sanitized HTML content

        Raises:
            ValidationError: If origin_url is not a valid absolute URL
            ReadabilityError: If no heuristic finds an article
        """
        if not is_valid_url(origin_url):
            raise ValidationError("Invalid URL provided")

        if isinstance(html, bytes):
            html = html.decode("utf-8", errors="replace")

        document = self._build_document(html, origin_url)
        result, method = self._run_heuristics(document, origin_url)

        content = sanitize_html(result.content)
        text = clean_text(result.text_content) or html_to_text(content)
        word_count = count_words(text)

        excerpt = (result.excerpt or "").strip()
        if not excerpt:
            excerpt = make_excerpt(text, self.excerpt_length)
        elif len(excerpt) > self.excerpt_length:
            excerpt = make_excerpt(excerpt, self.excerpt_length)

        return ExtractedArticle(
            title=(result.title or "").strip(),
            content=content,
            excerpt=excerpt,
            source_type=SourceType.WEB,
            estimated_read_time=estimate_reading_time(text, self.words_per_minute),
            author=result.byline or None,
            site_name=result.site_name or hostname_of(origin_url),
            language=result.language or None,
            published_date=result.published_date or None,
            url=origin_url,
            markdown=html_to_markdown(content),
            word_count=word_count,
            metadata={"extraction_method": method},
        )

    def _build_document(self, html: str, origin_url: str) -> str:
        """Parse HTML into a DOM scoped to origin_url and resolve relative links."""
        try:
            root = lxml.html.document_fromstring(XML_DECLARATION.sub("", html), base_url=origin_url)
            root.make_links_absolute(origin_url, handle_failures="discard")
        except (etree.ParserError, ValueError) as e:
            raise ReadabilityError(f"Readability failed: could not parse document ({e})") from e
        return lxml.html.tostring(root, encoding="unicode")

    def _run_heuristics(self, html: str, url: str) -> tuple[ReadabilityResult, str]:
        """Try heuristics in order; return the first result and its name."""
        last_error: Exception | None = None

        for heuristic in self.heuristics:
            name = getattr(heuristic, "__name__", repr(heuristic)).removesuffix("_heuristic")
            try:
                result = heuristic(html, url)
            except Exception as e:
                logger.warning("readability_heuristic_failed", heuristic=name, error=str(e))
                last_error = e
                continue

            if result is not None and result.content:
                return result, name
            logger.info("readability_heuristic_empty", heuristic=name, url=url)

        if last_error is not None:
            raise ReadabilityError(f"Readability failed: {last_error}") from last_error
        raise ReadabilityError("Readability returned null")
