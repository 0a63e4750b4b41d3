"""Pydantic models for API request/response schemas."""

from .health_response import HealthResponse, JobDetail, JobsSummary
from .render_request import ImageRenderRequest, PageMargins, PdfRenderRequest
from .render_response import RenderErrorResponse, RenderMetadata, RenderSuccessResponse

__all__ = [
    "PdfRenderRequest",
    "ImageRenderRequest",
    "PageMargins",
    "RenderSuccessResponse",
    "RenderErrorResponse",
    "RenderMetadata",
    "HealthResponse",
    "JobsSummary",
    "JobDetail",
]
