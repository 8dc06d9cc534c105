"""Custom exceptions for content extraction."""

from typing import Any


class ExtractionError(Exception):
    """Base exception for extraction errors."""

    pass


class ValidationError(ExtractionError):
    """Malformed input detected before any I/O (bad URL, wrong scheme)."""

    pass


class ContentTypeError(ExtractionError):
    """Unable to determine or handle content type."""

    pass


class ContentTooLargeError(ExtractionError):
    """Content exceeds maximum size limit."""

    pass


class NetworkError(ExtractionError):
    """Network-related errors (timeout, connection refused)."""

    pass


class FetchError(NetworkError):
    """Every direct and proxy fetch attempt failed.

    Attributes:
        attempts: Ordered FetchAttempt records for the failed call
        cause: Failure cause of the last attempt ("network", "timeout", ...)
    """

    def __init__(
        self,
        message: str,
        attempts: list[Any] | None = None,
        cause: str | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts or []
        self.cause = cause


class FetchTimeoutError(FetchError):
    """Fetch chain exhausted and the terminal attempt timed out."""

    pass


class ReadabilityError(ExtractionError):
    """Readability heuristics found no article or failed internally."""

    pass


class PdfParseError(ExtractionError):
    """The PDF container could not be opened."""

    pass


class EpubStructuralError(ExtractionError):
    """EPUB archive is missing mandatory entries."""

    pass


class EpubExtractionError(ExtractionError):
    """EPUB package metadata could not be produced."""

    pass
