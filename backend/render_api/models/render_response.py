"""Pydantic models for render responses."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class RenderMetadata(BaseModel):
    """Render timing and output shape."""

    render_time_ms: int = Field(
        ...,
        alias="renderTimeMs",
        description="Milliseconds from request arrival to response",
    )
    format: Literal["pdf", "png", "jpeg", "webp"] = Field(
        ...,
        description="Output format",
    )
    page_count: Optional[int] = Field(None, alias="pageCount")
    width: Optional[int] = Field(None, description="Viewport width (images)")
    height: Optional[int] = Field(None, description="Viewport height (images)")

    model_config = {"populate_by_name": True}


class RenderSuccessResponse(BaseModel):
    """
    Response body for a successful POST /render/pdf or /render/image.

    Exactly one of ``url`` (uploaded, with ``expires_at``) or ``data_url``
    (inline base64) is set.
    """

    success: Literal[True] = True
    job_id: str = Field(..., alias="jobId")
    url: Optional[str] = Field(None, description="Signed download URL")
    data_url: Optional[str] = Field(
        None,
        alias="dataUrl",
        description="Base64 data URL when storage upload was not requested",
    )
    filename: str = Field(..., description="Output filename")
    file_size: int = Field(..., alias="fileSize", description="Output size in bytes")
    expires_at: Optional[str] = Field(
        None,
        alias="expiresAt",
        description="Signed URL expiry (ISO 8601)",
    )
    metadata: RenderMetadata

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "success": True,
                    "jobId": "550e8400-e29b-41d4-a716-446655440000",
                    "url": "https://storage.example.com/renders/invoice-123.pdf?X-Amz-Signature=...",
                    "filename": "invoice-123.pdf",
                    "fileSize": 48213,
                    "expiresAt": "2026-01-01T12:00:00.000Z",
                    "metadata": {"renderTimeMs": 1840, "format": "pdf"},
                }
            ]
        },
    }

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class RenderErrorResponse(BaseModel):
    """Response body for any failed request."""

    success: Literal[False] = False
    error: str = Field(..., description="Stable error code")
    message: str = Field(..., description="Human-readable message")
    job_id: Optional[str] = Field(None, alias="jobId")
    details: Optional[dict] = None

    model_config = {"populate_by_name": True}
