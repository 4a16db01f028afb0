"""Pydantic request and response models for the imagegate API.

Models
------
GenerateImageRequest
    Payload for ``POST /api/generate-image``.
GenerateImageResponse
    Success body for ``POST /api/generate-image``.
ErrorResponse
    Body of every error response.
HealthResponse
    Body of ``GET /api/health``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class GenerateImageRequest(BaseModel):
    """Request body for the ``POST /api/generate-image`` endpoint.

    ``prompt`` is deliberately untyped here: a missing or non-string prompt
    must come back as a 400 with the gateway's message, not as a 422 from
    request parsing.

    Attributes:
        prompt: Natural-language description of the image.
    """

    prompt: Any = Field(
        default=None,
        description="Text prompt, 3-500 characters.",
    )


class GenerateImageResponse(BaseModel):
    """Success body for ``POST /api/generate-image``.

    Attributes:
        success: Always ``True``.
        image: ``data:`` URI holding the base64-encoded image.
        prompt: The prompt exactly as submitted.
    """

    success: bool = Field(default=True)
    image: str = Field(..., description="data URI with the base64-encoded image.")
    prompt: str = Field(..., description="The prompt exactly as submitted.")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Human-readable error message.")


class HealthResponse(BaseModel):
    """Body of ``GET /api/health``."""

    status: str = Field(default="OK")
    timestamp: str = Field(..., description="Current server time, ISO 8601.")
    environment: str = Field(..., description="Deployment environment name.")
