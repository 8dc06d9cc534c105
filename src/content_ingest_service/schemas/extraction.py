"""Extraction request/response schemas for API contract."""

from typing import Any, Literal

from pydantic import BaseModel, Field, HttpUrl, field_validator

from content_ingest_service.extraction import ExtractedArticle

SourceTypeLiteral = Literal["web", "pdf", "epub"]


class ExtractUrlRequest(BaseModel):
    """Request schema for extracting an article from a URL.

    Design Decision: URL Validation
    --------------------------------
    Pydantic's HttpUrl rejects malformed URLs with a 422 before the
    pipeline runs; the pipeline re-validates for non-HTTP callers.
    """

    url: HttpUrl = Field(
        ...,
        description="URL of the article to extract",
        examples=["https://example.com/article"],
    )

    @field_validator("url")
    @classmethod
    def validate_url_scheme(cls, v: HttpUrl) -> HttpUrl:
        """Ensure URL uses http or https scheme."""
        if v.scheme not in ("http", "https"):
            raise ValueError("URL must use http or https scheme")
        return v


class ExtractedArticleResponse(BaseModel):
    """Canonical article record returned by every extraction endpoint."""

    title: str = Field(..., description="Title (empty if the source has none)")
    content: str = Field(..., description="Sanitized HTML (web) or plain text (pdf/epub)")
    excerpt: str = Field(..., description="Short summary, at most ~280 characters")
    source_type: SourceTypeLiteral = Field(..., description="Source type")
    estimated_read_time: int = Field(..., ge=1, description="Reading time in minutes")
    author: str | None = Field(None, description="Author or byline")
    site_name: str | None = Field(None, description="Publishing site (web only)")
    language: str | None = Field(None, description="Language code")
    published_date: str | None = Field(None, description="Publication date")
    page_count: int | None = Field(None, description="Number of pages (pdf only)")
    cover: str | None = Field(None, description="Cover image data URL (epub only)")
    url: str | None = Field(None, description="Normalized origin URL or filename")
    markdown: str | None = Field(None, description="Markdown rendition (web only)")
    word_count: int = Field(0, description="Word count of the plain text")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Extraction details")

    @classmethod
    def from_article(cls, article: ExtractedArticle) -> "ExtractedArticleResponse":
        """Build a response from an extraction record."""
        return cls(
            title=article.title,
            content=article.content,
            excerpt=article.excerpt,
            source_type=article.source_type.value,
            estimated_read_time=article.estimated_read_time,
            author=article.author,
            site_name=article.site_name,
            language=article.language,
            published_date=article.published_date,
            page_count=article.page_count,
            cover=article.cover,
            url=article.url,
            markdown=article.markdown,
            word_count=article.word_count,
            metadata=article.metadata,
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Test Article",
                    "content": "<p>Article body</p>",
                    "excerpt": "Article body...",
                    "source_type": "web",
                    "estimated_read_time": 3,
                    "author": "Jane Doe",
                    "site_name": "example.com",
                    "url": "https://example.com/article",
                    "word_count": 512,
                    "metadata": {"extraction_method": "trafilatura"},
                }
            ]
        }
    }
