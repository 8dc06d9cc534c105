"""Health check response schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response.

    Design Decision: Using Literal types for status enums. FastAPI's OpenAPI
    generation translates Literal to enum constraints in the schema.
    """

    status: Literal["ok", "degraded", "error"] = Field(
        ...,
        description="Service health status",
        examples=["ok"],
    )
    version: str = Field(
        ...,
        description="API version",
        examples=["0.1.0"],
    )
    ocr: Literal["available", "unavailable"] = Field(
        ...,
        description="Whether Tesseract OCR can be used for image-only PDF pages",
        examples=["available"],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "ok",
                    "version": "0.1.0",
                    "ocr": "available",
                }
            ]
        }
    }
