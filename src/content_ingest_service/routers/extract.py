"""Extraction endpoints."""

from functools import lru_cache

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from content_ingest_service.config import settings
from content_ingest_service.extraction import (
    ContentTooLargeError,
    ContentTypeError,
    EpubExtractionError,
    EpubStructuralError,
    ExtractionError,
    ExtractionPipeline,
    FetchError,
    FetchTimeoutError,
    PdfParseError,
    PipelineConfig,
    ReadabilityError,
    ValidationError,
)
from content_ingest_service.logging_config import get_logger
from content_ingest_service.schemas import ExtractedArticleResponse, ExtractUrlRequest

logger = get_logger(__name__)

router = APIRouter(
    prefix=f"{settings.api_v1_prefix}/extract",
    tags=["extraction"],
)

# Most specific classes first (FetchTimeoutError before FetchError).
ERROR_STATUS: list[tuple[type[ExtractionError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ContentTypeError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (ContentTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (ReadabilityError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PdfParseError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (EpubStructuralError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (EpubExtractionError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (FetchTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (FetchError, status.HTTP_502_BAD_GATEWAY),
]


@lru_cache
def get_pipeline() -> ExtractionPipeline:
    """Shared pipeline built from application settings."""
    return ExtractionPipeline(PipelineConfig.from_settings(settings))


def to_http_exception(error: ExtractionError) -> HTTPException:
    """Map a typed extraction error to an HTTP error carrying its message."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error) or "Extraction failed",
    )


@router.post(
    "/url",
    response_model=ExtractedArticleResponse,
    status_code=status.HTTP_200_OK,
    summary="Extract article from URL",
    description="Fetch a web page (direct, then via proxies) and extract a sanitized article.",
    responses={
        200: {"description": "Article extracted"},
        400: {"description": "Invalid URL"},
        413: {"description": "Page too large"},
        422: {"description": "No readable article found"},
        502: {"description": "All fetch attempts failed"},
        504: {"description": "Fetch timed out"},
    },
)
async def extract_url(
    data: ExtractUrlRequest,
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> ExtractedArticleResponse:
    """Extract an article from a web URL.

    Args:
        data: Request with the article URL
        pipeline: Extraction pipeline (injected)

    Returns:
        Canonical article record

    Raises:
        HTTPException: Status and message derived from the extraction error
    """
    try:
        article = await pipeline.extract_url(str(data.url))
    except ExtractionError as e:
        logger.warning("extract_url_failed", url=str(data.url), error=str(e))
        raise to_http_exception(e) from e

    return ExtractedArticleResponse.from_article(article)


@router.post(
    "/upload",
    response_model=ExtractedArticleResponse,
    status_code=status.HTTP_200_OK,
    summary="Extract article from uploaded file",
    description="Upload a PDF or EPUB file and extract text and metadata.",
    responses={
        200: {"description": "Document extracted"},
        400: {"description": "Validation error"},
        413: {"description": "File too large"},
        415: {"description": "Unsupported file type"},
        422: {"description": "Document could not be parsed"},
    },
)
async def extract_upload(
    file: UploadFile = File(..., description="PDF or EPUB file"),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> ExtractedArticleResponse:
    """Extract an article from an uploaded PDF or EPUB.

    Args:
        file: Uploaded file
        pipeline: Extraction pipeline (injected)

    Returns:
        Canonical article record

    Raises:
        HTTPException: 400/413/415 for upload validation, otherwise derived
            from the extraction error
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )

    file_content = await file.read()

    max_size = settings.max_upload_size_mb * 1024 * 1024
    if len(file_content) > max_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB",
        )

    if not file_content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )

    try:
        article = await pipeline.extract_file(file_content, file.filename)
    except ExtractionError as e:
        logger.warning("extract_upload_failed", filename=file.filename, error=str(e))
        raise to_http_exception(e) from e

    return ExtractedArticleResponse.from_article(article)
