"""
Render endpoints.

Provides POST /render/pdf and POST /render/image. Both require the shared
API key and are subject to the concurrency ceiling.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from render_api.middleware.auth import require_api_key
from render_api.models import RenderErrorResponse, RenderSuccessResponse
from render_api.services.orchestrator import RenderOrchestrator, RenderOutcome, get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_api_key)])

_ERROR_RESPONSES = {
    400: {"model": RenderErrorResponse, "description": "VALIDATION_FAILED"},
    401: {"model": RenderErrorResponse, "description": "UNAUTHORIZED"},
    403: {"model": RenderErrorResponse, "description": "FORBIDDEN"},
    408: {"model": RenderErrorResponse, "description": "READY_FLAG_TIMEOUT or NAVIGATION_TIMEOUT"},
    500: {"model": RenderErrorResponse, "description": "RENDER_FAILED, STORAGE_FAILED or INTERNAL_ERROR"},
    503: {"model": RenderErrorResponse, "description": "CONCURRENCY_LIMIT"},
}


def _to_response(outcome: RenderOutcome) -> JSONResponse:
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


@router.post(
    "/pdf",
    summary="Render Page to PDF",
    description="""
Render a page of the configured application to PDF.

The page is loaded in an isolated browser context, must set
`window.__RENDER_READY__ = true` once its content is complete, and is then
printed with the requested paper size, orientation and margins.

With `uploadToStorage: true` (default) the PDF is uploaded and a signed URL
is returned; otherwise the PDF is returned inline as a base64 `dataUrl`.
""",
    response_model=RenderSuccessResponse,
    responses=_ERROR_RESPONSES,
)
async def render_pdf(
    payload: dict[str, Any] = Body(..., examples=[{"url": "/render/a4/invoice-123"}]),
    orchestrator: RenderOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """
    Render a URL to PDF.

    Args:
        payload: Raw request body, validated by the orchestrator
        orchestrator: Request-scoped render orchestrator

    Returns:
        JSONResponse with the success or error body and its status code
    """
    outcome = await orchestrator.render_pdf(payload)
    return _to_response(outcome)


@router.post(
    "/image",
    summary="Render Page to Image",
    description="""
Render a page of the configured application to PNG, JPEG or WebP.

The viewport is exactly `width` x `height` CSS pixels at the requested device
`scale`. Animations are disabled through reduced-motion emulation.
""",
    response_model=RenderSuccessResponse,
    responses=_ERROR_RESPONSES,
)
async def render_image(
    payload: dict[str, Any] = Body(..., examples=[{"url": "/render/social/post-123", "format": "png"}]),
    orchestrator: RenderOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Render a URL to an image (PNG/JPEG/WebP)."""
    outcome = await orchestrator.render_image(payload)
    return _to_response(outcome)
