"""Source type detection utilities."""

import zipfile
from enum import Enum
from io import BytesIO
from pathlib import PurePosixPath


class SourceType(str, Enum):
    """Supported source types."""

    WEB = "web"
    PDF = "pdf"
    EPUB = "epub"


EPUB_MIMETYPE = b"application/epub+zip"


def detect_source_type_from_bytes(content: bytes) -> SourceType | None:
    """Detect source type by inspecting content bytes.

    Detection strategy:
    1. ``%PDF`` magic header
    2. Zip archive whose ``mimetype`` entry declares EPUB
    3. HTML markers in the first 1KB

    Args:
        content: Content bytes to inspect

    Returns:
        Detected SourceType, or None if unrecognized
    """
    if content.startswith(b"%PDF"):
        return SourceType.PDF

    if content.startswith(b"PK"):
        try:
            with zipfile.ZipFile(BytesIO(content)) as archive:
                if archive.read("mimetype").strip() == EPUB_MIMETYPE:
                    return SourceType.EPUB
        except (zipfile.BadZipFile, KeyError):
            pass  # Not an EPUB container
        return None

    preview = content[:1024].lower()
    if b"<!doctype html" in preview or b"<html" in preview:
        return SourceType.WEB

    return None


def detect_source_type_from_filename(filename: str) -> SourceType | None:
    """Detect source type from a file extension."""
    suffix = PurePosixPath(filename).suffix.lower()
    if suffix == ".pdf":
        return SourceType.PDF
    if suffix == ".epub":
        return SourceType.EPUB
    if suffix in (".html", ".htm"):
        return SourceType.WEB
    return None


def detect_source_type(content: bytes, filename: str | None = None) -> SourceType | None:
    """Detect source type from bytes, falling back to the filename.

    Magic bytes take precedence over the extension.
    """
    detected = detect_source_type_from_bytes(content)
    if detected is None and filename:
        detected = detect_source_type_from_filename(filename)
    return detected
