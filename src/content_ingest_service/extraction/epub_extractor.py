"""EPUB metadata, cover and text extraction using ebooklib."""

import os
import posixpath
import tempfile
import time
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from typing import Any
from urllib.parse import unquote

import ebooklib
from bs4 import BeautifulSoup
from ebooklib import epub
from lxml import etree

from content_ingest_service.logging_config import get_logger

from .base import BaseExtractor, ExtractedArticle
from .content_type import EPUB_MIMETYPE, SourceType
from .exceptions import EpubExtractionError
from .sanitizer import html_to_text
from .utils import (
    DEFAULT_EXCERPT_LENGTH,
    DEFAULT_WORDS_PER_MINUTE,
    clean_text,
    count_words,
    estimate_reading_time,
    make_excerpt,
    to_data_url,
)

logger = get_logger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown Author"
DC_NAMESPACE = "http://purl.org/dc/elements/1.1/"

_XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


class CoverSource(str, Enum):
    """Which tier produced the cover image."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    ABSENT = "absent"


@dataclass
class EpubMetadata:
    """Package metadata of an EPUB book."""

    title: str = UNKNOWN_TITLE
    author: str = UNKNOWN_AUTHOR
    publisher: str | None = None
    description: str | None = None
    language: str | None = None
    published_date: str | None = None
    cover: str | None = None
    cover_source: CoverSource = CoverSource.ABSENT
    extraction_method: str = "ebooklib"


def validate_epub_structure(content: bytes) -> bool:
    """Check the mandatory EPUB container entries.

    Requires a ``mimetype`` entry containing exactly ``application/epub+zip``
    and a ``META-INF/container.xml`` entry. Never raises.

    Args:
        content: EPUB bytes

    Returns:
        True if both entries are present and valid
    """
    try:
        with zipfile.ZipFile(BytesIO(content)) as archive:
            names = set(archive.namelist())
            if "mimetype" not in names or CONTAINER_PATH not in names:
                return False
            return archive.read("mimetype") == EPUB_MIMETYPE
    except (zipfile.BadZipFile, KeyError, OSError, RuntimeError, ValueError, TypeError):
        return False


def _package_document(archive: zipfile.ZipFile) -> tuple[str, Any] | None:
    """Follow container.xml to the package document; return (path, root element)."""
    container = etree.fromstring(archive.read(CONTAINER_PATH), _XML_PARSER)
    rootfile = container.find(".//{*}rootfile")
    if rootfile is None or not rootfile.get("full-path"):
        return None

    opf_path = rootfile.get("full-path")
    return opf_path, etree.fromstring(archive.read(opf_path), _XML_PARSER)


def _archive_path(opf_path: str, href: str) -> str:
    """Resolve a manifest href against the package document's directory."""
    return posixpath.normpath(posixpath.join(posixpath.dirname(opf_path), unquote(href)))


def find_cover_in_archive(content: bytes) -> tuple[bytes, str] | None:
    """Locate the cover image by reading container.xml and the package document.

    Follows ``<meta name="cover" content="...">`` to its manifest item, or an
    item declaring the ``cover-image`` property. The item ``href`` is resolved
    against the package document's directory.

    Args:
        content: EPUB bytes

    Returns:
        (image bytes, media type), or None if the package declares no cover
    """
    with zipfile.ZipFile(BytesIO(content)) as archive:
        found = _package_document(archive)
        if found is None:
            return None
        opf_path, package = found

        cover_id = next(
            (
                meta.get("content")
                for meta in package.iter("{*}meta")
                if meta.get("name") == "cover"
            ),
            None,
        )

        cover_item = None
        for item in package.iter("{*}item"):
            if cover_id and item.get("id") == cover_id:
                cover_item = item
                break
            if cover_item is None and "cover-image" in (item.get("properties") or "").split():
                cover_item = item

        if cover_item is None or not cover_item.get("href"):
            return None

        media_type = cover_item.get("media-type") or "image/jpeg"
        return archive.read(_archive_path(opf_path, cover_item.get("href"))), media_type


def read_package_metadata(content: bytes, include_text: bool = True) -> tuple[EpubMetadata, str]:
    """Read metadata and spine text straight from the package document.

    Manifest entries missing from the archive are skipped, so a book with a
    broken resource still yields its metadata. The cover is left unset.

    Args:
        content: EPUB bytes
        include_text: Also collect the spine text

    Returns:
        (metadata, plain text of the readable spine documents)

    Raises:
        EpubExtractionError: If container.xml names no package document
    """
    with zipfile.ZipFile(BytesIO(content)) as archive:
        found = _package_document(archive)
        if found is None:
            raise EpubExtractionError("container.xml does not declare a package document")
        opf_path, package = found

        def dc_value(name: str) -> str | None:
            for element in package.iter(f"{{{DC_NAMESPACE}}}{name}"):
                if element.text and element.text.strip():
                    return element.text.strip()
            return None

        metadata = EpubMetadata(
            title=dc_value("title") or UNKNOWN_TITLE,
            author=dc_value("creator") or UNKNOWN_AUTHOR,
            publisher=dc_value("publisher"),
            description=dc_value("description"),
            language=dc_value("language"),
            published_date=_choose_published_date(
                [(e.text, dict(e.attrib)) for e in package.iter(f"{{{DC_NAMESPACE}}}date")],
                [(e.text, dict(e.attrib)) for e in package.iter("{*}meta")],
            ),
        )
        if not include_text:
            return metadata, ""

        manifest = {item.get("id"): item for item in package.iter("{*}item")}
        names = set(archive.namelist())
        parts: list[str] = []
        for itemref in package.iter("{*}itemref"):
            item = manifest.get(itemref.get("idref"))
            if item is None or "html" not in (item.get("media-type") or ""):
                continue
            path = _archive_path(opf_path, item.get("href") or "")
            if path not in names:
                logger.warning("epub_spine_item_missing", path=path)
                continue
            text = _document_text(archive.read(path))
            if text:
                parts.append(text)

    return metadata, clean_text("\n\n".join(parts))


def _document_text(markup: bytes) -> str:
    soup = BeautifulSoup(markup, "html.parser")
    return soup.get_text("\n", strip=True)


def _choose_published_date(
    dates: list[tuple[Any, dict]], metas: list[tuple[Any, dict]]
) -> str | None:
    """Publication event date, else dcterms:modified, else the first date."""
    for value, attributes in dates:
        events = [v for k, v in attributes.items() if k.endswith("event")]
        if value and "publication" in events:
            return value.strip()

    for value, attributes in metas:
        if value and value.strip() and attributes.get("property") == "dcterms:modified":
            return value.strip()

    return next((value.strip() for value, _ in dates if value and value.strip()), None)


def _metadata_values(
    book: epub.EpubBook, namespace: str, name: str | None
) -> list[tuple[Any, dict]]:
    try:
        return book.get_metadata(namespace, name) or []
    except KeyError:
        return []


def _first_value(book: epub.EpubBook, name: str) -> str | None:
    for value, _attributes in _metadata_values(book, "DC", name):
        if value and value.strip():
            return value.strip()
    return None


class EPUBExtractor(BaseExtractor):
    """Extract metadata, cover and text from EPUB books.

    Design Decision: Two-tier cover extraction
    - Primary: ebooklib cover item lookup
    - Fallback: manual container.xml -> package document -> manifest walk,
      used when the primary tier raises or finds nothing
    - Neither works: the cover is omitted, metadata is still returned

    If ebooklib cannot load the book at all (e.g. a manifest item missing from
    the archive), metadata and readable spine text come straight from the
    package document instead. Only when that also fails does the call raise.

    The ebooklib reader is torn down after every call, success or failure.
    """

    def __init__(
        self,
        excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
        words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
    ) -> None:
        self.excerpt_length = excerpt_length
        self.words_per_minute = words_per_minute

    def can_extract(self, source_type: SourceType) -> bool:
        """Check if this extractor handles the source type."""
        return source_type == SourceType.EPUB

    def extract_metadata(self, content: bytes) -> EpubMetadata:
        """Extract package metadata and cover.

        Args:
            content: EPUB bytes

        Returns:
            EpubMetadata (cover omitted if both tiers fail)

        Raises:
            EpubExtractionError: If the book cannot be opened at all
        """
        metadata, _text = self._read(content, include_text=False)
        return metadata

    def extract(self, content: bytes, original_url: str | None = None) -> ExtractedArticle:
        """Extract an article record from an EPUB.

        Args:
            content: EPUB bytes
            original_url: Source URL or filename

        Returns:
            ExtractedArticle with the spine text as plain-text content

        Raises:
            EpubExtractionError: If the book cannot be opened at all
        """
        start_time = time.perf_counter()
        metadata, text = self._read(content, include_text=True)

        description = html_to_text(metadata.description) if metadata.description else ""

        return ExtractedArticle(
            title=metadata.title,
            content=text,
            excerpt=make_excerpt(description or text, self.excerpt_length),
            source_type=SourceType.EPUB,
            estimated_read_time=estimate_reading_time(text, self.words_per_minute),
            author=metadata.author,
            language=metadata.language,
            published_date=metadata.published_date,
            cover=metadata.cover,
            url=original_url,
            word_count=count_words(text),
            metadata={
                "extraction_method": metadata.extraction_method,
                "publisher": metadata.publisher,
                "description": metadata.description,
                "cover_source": metadata.cover_source.value,
                "extraction_time_ms": (time.perf_counter() - start_time) * 1000,
            },
        )

    def _read(self, content: bytes, include_text: bool) -> tuple[EpubMetadata, str]:
        try:
            with self._open_book(content) as book:
                metadata = EpubMetadata(
                    title=_first_value(book, "title") or UNKNOWN_TITLE,
                    author=_first_value(book, "creator") or UNKNOWN_AUTHOR,
                    publisher=_first_value(book, "publisher"),
                    description=_first_value(book, "description"),
                    language=_first_value(book, "language"),
                    published_date=self._published_date(book),
                )
                metadata.cover, metadata.cover_source = self._resolve_cover(book, content)
                text = self._spine_text(book) if include_text else ""
        except Exception as e:
            logger.warning("epub_reader_failed", error=str(e))
            return self._read_package(content, include_text)

        return metadata, text

    def _read_package(self, content: bytes, include_text: bool) -> tuple[EpubMetadata, str]:
        """Read the package document directly when ebooklib cannot load the book."""
        try:
            metadata, text = read_package_metadata(content, include_text)
        except Exception as e:
            logger.error("epub_extraction_failed", error=str(e))
            raise EpubExtractionError(f"EPUB parsing failed: {e}") from e

        metadata.extraction_method = "package"
        metadata.cover, metadata.cover_source = self._archive_cover(content)
        return metadata, text

    @contextmanager
    def _open_book(self, content: bytes) -> Iterator[epub.EpubBook]:
        """Open the book with ebooklib; always release the archive and temp file."""
        # ebooklib reads from a path
        with tempfile.NamedTemporaryFile(suffix=".epub", delete=False) as tmp:
            tmp.write(content)
            tmp_path = tmp.name

        reader: epub.EpubReader | None = None
        try:
            reader = epub.EpubReader(tmp_path, {"ignore_ncx": True})
            book = reader.load()
            reader.process()
            yield book
        finally:
            archive = getattr(reader, "zf", None)
            if archive is not None:
                archive.close()
            os.unlink(tmp_path)

    def _published_date(self, book: epub.EpubBook) -> str | None:
        return _choose_published_date(
            _metadata_values(book, "DC", "date"), _metadata_values(book, "OPF", "meta")
        )

    def _resolve_cover(self, book: epub.EpubBook, content: bytes) -> tuple[str | None, CoverSource]:
        try:
            cover = self._cover_from_book(book)
        except Exception as e:
            logger.warning("epub_cover_primary_failed", error=str(e))
            cover = None
        if cover:
            return cover, CoverSource.PRIMARY

        return self._archive_cover(content)

    def _archive_cover(self, content: bytes) -> tuple[str | None, CoverSource]:
        try:
            found = find_cover_in_archive(content)
        except Exception as e:
            logger.warning("epub_cover_fallback_failed", error=str(e))
            found = None
        if found:
            logger.info("epub_cover_fallback_used")
            return to_data_url(*found), CoverSource.FALLBACK

        return None, CoverSource.ABSENT

    def _cover_from_book(self, book: epub.EpubBook) -> str | None:
        """Ask ebooklib for the cover image item."""
        for item in book.get_items_of_type(ebooklib.ITEM_COVER):
            if (item.media_type or "").startswith("image/"):
                return to_data_url(item.get_content(), item.media_type)

        # <meta name="cover" content="item-id"/> is kept under the generic "meta" key
        for _value, attributes in _metadata_values(book, "OPF", "meta"):
            if attributes.get("name") != "cover":
                continue
            item = book.get_item_with_id(attributes.get("content", ""))
            if item is not None and (item.media_type or "").startswith("image/"):
                return to_data_url(item.get_content(), item.media_type)

        return None

    def _spine_text(self, book: epub.EpubBook) -> str:
        """Plain text of the spine documents in reading order."""
        parts: list[str] = []
        for idref, _linear in book.spine:
            item = book.get_item_with_id(idref)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            text = _document_text(item.get_content())
            if text:
                parts.append(text)
        return clean_text("\n\n".join(parts))
