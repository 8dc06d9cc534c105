"""Pydantic schemas for API request/response validation."""

from .extraction import ExtractedArticleResponse, ExtractUrlRequest, SourceTypeLiteral
from .health import HealthResponse

__all__ = [
    # Health
    "HealthResponse",
    # Extraction
    "ExtractUrlRequest",
    "ExtractedArticleResponse",
    "SourceTypeLiteral",
]
