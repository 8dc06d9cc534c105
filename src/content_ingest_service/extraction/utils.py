"""Content cleaning and processing utilities."""

import base64
import math
import re
import unicodedata
from urllib.parse import urlparse, urlunparse

DEFAULT_WORDS_PER_MINUTE = 200
DEFAULT_EXCERPT_LENGTH = 280


def clean_text(text: str | None) -> str:
    """Clean and normalize extracted text.

    - Normalizes Unicode
    - Removes excessive whitespace
    - Removes control characters
    - Normalizes line endings

    Args:
        text: Raw extracted text

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    # Unicode normalization (NFC form)
    text = unicodedata.normalize("NFC", text)

    # Remove control characters except newlines and tabs
    text = "".join(char for char in text if unicodedata.category(char) != "Cc" or char in "\n\t")

    text = normalize_whitespace(text)

    return text.strip()


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace in text.

    - Replaces multiple spaces with single space
    - Replaces multiple newlines with double newline (paragraph break)
    - Removes trailing whitespace from lines

    Args:
        text: Text to normalize

    Returns:
        Text with normalized whitespace
    """
    text = text.replace("\r\n", "\n").replace("\t", " ")

    lines = [line.rstrip() for line in text.split("\n")]
    text = "\n".join(lines)

    text = re.sub(r" +", " ", text)

    # Replace 3+ newlines with double newline
    text = re.sub(r"\n{3,}", "\n\n", text)

    return text


def count_words(text: str) -> int:
    """Count whitespace-separated tokens."""
    return len(text.split())


def estimate_reading_time(text: str, wpm: int = DEFAULT_WORDS_PER_MINUTE) -> int:
    """Estimate reading time in minutes.

    Rounds up and never returns less than one minute.

    Args:
        text: Content text
        wpm: Words per minute (default 200)

    Returns:
        Estimated reading time in minutes
    """
    return max(1, math.ceil(count_words(text) / wpm))


def make_excerpt(text: str, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """Build an excerpt from plain text.

    Takes at most ``max_length`` characters, cut back to the last word
    boundary when the text is longer, and suffixes an ellipsis.

    Args:
        text: Plain text content
        max_length: Maximum characters before the ellipsis

    Returns:
        Excerpt string (empty if text is empty)
    """
    collapsed = " ".join(text.split())
    if not collapsed:
        return ""

    cut = collapsed[:max_length]
    if len(collapsed) > max_length:
        boundary = cut.rfind(" ")
        if boundary > 0:
            cut = cut[:boundary]
    return f"{cut.rstrip(' ,;:.')}..."


def is_valid_url(url: str | None) -> bool:
    """Check that a URL is absolute and uses http or https."""
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def normalize_url(url: str) -> str:
    """Normalize a URL: trim, lowercase scheme/host, default path to '/'.

    Fragments are dropped since they never change the fetched document.
    """
    parsed = urlparse(url.strip())
    path = parsed.path or "/"
    return urlunparse(
        (parsed.scheme.lower(), parsed.netloc.lower(), path, parsed.params, parsed.query, "")
    )


def hostname_of(url: str) -> str | None:
    """Return the hostname of a URL, or None if it has none."""
    return urlparse(url).hostname


def to_data_url(data: bytes, media_type: str) -> str:
    """Encode bytes as a base64 data URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{media_type};base64,{encoded}"
