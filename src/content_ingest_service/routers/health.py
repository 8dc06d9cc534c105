"""Health check endpoints."""

from fastapi import APIRouter, Depends, status

from content_ingest_service.config import settings
from content_ingest_service.extraction import ExtractionPipeline
from content_ingest_service.schemas.health import HealthResponse

from .extract import get_pipeline

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    description=(
        "Returns service health status including OCR availability. "
        "No authentication required. This endpoint does NOT use the /api/v1 prefix."
    ),
    responses={
        200: {
            "description": "Service is healthy or degraded",
            "content": {
                "application/json": {
                    "examples": {
                        "healthy": {
                            "summary": "All systems operational",
                            "value": {"status": "ok", "version": "0.1.0", "ocr": "available"},
                        },
                        "degraded": {
                            "summary": "OCR unavailable (image-only PDF pages yield no text)",
                            "value": {
                                "status": "degraded",
                                "version": "0.1.0",
                                "ocr": "unavailable",
                            },
                        },
                    }
                }
            },
        }
    },
)
async def health_check(
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> HealthResponse:
    """Health check endpoint.

    Design Decision: Graceful degradation instead of failing hard.
    Web and text-layer extraction work without Tesseract, so a missing OCR
    engine reports "degraded" with a 200 rather than an error.

    Args:
        pipeline: Extraction pipeline (injected)

    Returns:
        HealthResponse with current service status
    """
    is_available = getattr(pipeline.ocr_engine, "is_available", None)
    ocr_status = "available" if is_available is None or is_available() else "unavailable"

    return HealthResponse(
        status="ok" if ocr_status == "available" else "degraded",
        version=settings.app_version,
        ocr=ocr_status,
    )
