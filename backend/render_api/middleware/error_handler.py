"""
Centralized error handling for the render API.

Defines the error taxonomy returned to clients, the error code to HTTP status
mapping, and the handlers that turn exceptions into consistent JSON bodies:

    {"success": false, "error": "<CODE>", "message": "...", "jobId": "...", "details": {...}}
"""

import logging
from typing import Any, Iterable, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from render_engine.exceptions import RenderEngineError

logger = logging.getLogger(__name__)

# HTTP status is derived from the error code only
ERROR_STATUS_CODES: dict[str, int] = {
    "VALIDATION_FAILED": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "CONCURRENCY_LIMIT": 503,
    "READY_FLAG_TIMEOUT": 408,
    "NAVIGATION_TIMEOUT": 408,
    "STORAGE_FAILED": 500,
    "RENDER_FAILED": 500,
    "INTERNAL_ERROR": 500,
}

GENERIC_RENDER_MESSAGE = "Render failed"
GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred"

# Client-facing messages for engine conditions that never expose internals
_ENGINE_MESSAGES = {
    "READY_FLAG_TIMEOUT": "Page did not signal render ready in time. Ensure __RENDER_READY__ is set.",
    "NAVIGATION_TIMEOUT": "Page navigation timed out",
}


def status_for_code(error_code: str) -> int:
    """HTTP status for an error code (500 for anything unknown)."""
    return ERROR_STATUS_CODES.get(error_code, 500)


class RenderError(Exception):
    """Base exception for errors returned to API clients."""

    error_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Any = None,
        job_id: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details
        self.job_id = job_id
        if error_code is not None:
            self.error_code = error_code
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return status_for_code(self.error_code)


class ValidationFailedError(RenderError):
    """Raised when a request body fails validation. Carries every violation."""

    error_code = "VALIDATION_FAILED"

    def __init__(self, errors: list[dict], job_id: Optional[str] = None):
        super().__init__(
            message="Invalid request data",
            details={"errors": errors},
            job_id=job_id,
        )

    @classmethod
    def from_pydantic(
        cls, errors: Iterable[dict], job_id: Optional[str] = None
    ) -> "ValidationFailedError":
        return cls(summarize_validation_errors(errors), job_id=job_id)


class UnauthorizedError(RenderError):
    """Raised when no API key is presented."""

    error_code = "UNAUTHORIZED"

    def __init__(self):
        super().__init__(
            message="API key required. Provide via X-API-Key header or Authorization: Bearer <key>",
        )


class ForbiddenError(RenderError):
    """Raised when the presented API key does not match."""

    error_code = "FORBIDDEN"

    def __init__(self):
        super().__init__(message="Invalid API key")


class ConcurrencyLimitError(RenderError):
    """Raised when the in-flight job count has reached the admission ceiling."""

    error_code = "CONCURRENCY_LIMIT"

    def __init__(self, active_jobs: int, max_concurrent: int):
        super().__init__(
            message=(
                f"Server is at capacity. Max {max_concurrent} concurrent jobs allowed. "
                "Please retry later."
            ),
            details={"activeJobs": active_jobs, "maxConcurrent": max_concurrent},
        )


class StorageFailedError(RenderError):
    """Raised when uploading or signing a rendered file fails."""

    error_code = "STORAGE_FAILED"

    def __init__(self, message: str, job_id: Optional[str] = None):
        super().__init__(message=message, job_id=job_id)


class InternalServerError(RenderError):
    """Unclassified failure."""

    error_code = "INTERNAL_ERROR"


def summarize_validation_errors(errors: Iterable[dict]) -> list[dict]:
    """
    Flatten pydantic error dicts into ``{field, message, type}`` entries.

    The leading ``body`` segment FastAPI adds to request errors is dropped.
    """
    summary = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] == "body":
            loc = loc[1:]
        summary.append(
            {
                "field": ".".join(loc),
                "message": error.get("msg", ""),
                "type": error.get("type", ""),
            }
        )
    return summary


def classify_exception(
    exc: BaseException,
    job_id: Optional[str] = None,
    redact: bool = False,
) -> RenderError:
    """
    Convert any pipeline failure into exactly one client-facing RenderError.

    Classification uses the error code carried by the exception class; the
    message text is never inspected.

    Args:
        exc: The failure raised inside the render pipeline
        job_id: Job the failure belongs to
        redact: Hide internal messages (production)
    """
    if isinstance(exc, RenderError):
        if exc.job_id is None:
            exc.job_id = job_id
        return exc

    if isinstance(exc, RenderEngineError):
        message = _ENGINE_MESSAGES.get(exc.error_code)
        if message is None:
            message = GENERIC_RENDER_MESSAGE if redact else exc.message
        return RenderError(
            message=message,
            details=None if redact else exc.details,
            job_id=job_id,
            error_code=exc.error_code,
        )

    return InternalServerError(
        message=GENERIC_INTERNAL_MESSAGE if redact else str(exc) or GENERIC_INTERNAL_MESSAGE,
        job_id=job_id,
    )


def format_error_response(error: RenderError) -> dict:
    """
    Format a consistent error response body.

    Args:
        error: Classified error

    Returns:
        dict: ``{success, error, message}`` plus ``jobId``/``details`` when present
    """
    response = {
        "success": False,
        "error": error.error_code,
        "message": error.message,
    }
    if error.job_id:
        response["jobId"] = error.job_id
    if error.details:
        response["details"] = error.details
    return response


def error_json_response(error: RenderError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=format_error_response(error))


async def render_error_handler(request: Request, exc: RenderError) -> JSONResponse:
    """Exception handler for RenderError raised by dependencies or routes."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"{exc.error_code}: {exc.message}",
        extra={"path": request.url.path, "job_id": exc.job_id},
    )
    return error_json_response(exc)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body that FastAPI could not parse at all (e.g. not a JSON object)."""
    error = ValidationFailedError.from_pydantic(exc.errors())
    logger.warning(f"Request validation failed: {error.details}")
    return error_json_response(error)


async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    error = RenderError(
        message=f"Route {request.method} {request.url.path} not found",
        error_code="NOT_FOUND",
    )
    return error_json_response(error)


async def method_not_allowed_handler(request: Request, exc: Exception) -> JSONResponse:
    error = RenderError(
        message=f"Method {request.method} not allowed for {request.url.path}",
        error_code="METHOD_NOT_ALLOWED",
    )
    response = error_json_response(error)
    allow = getattr(exc, "headers", None) or {}
    if "Allow" in allow:
        response.headers["Allow"] = allow["Allow"]
    return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches unhandled exceptions and returns consistent error responses.
    """

    def __init__(self, app, redact_errors: bool = False):
        super().__init__(app)
        self.redact_errors = redact_errors

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response

        except RenderError as e:
            logger.error(
                f"RenderError: {e.message}",
                extra={"status_code": e.status_code, "details": e.details},
            )
            return error_json_response(e)

        except Exception as e:
            # Log full stack trace for unexpected errors
            logger.exception(f"Unhandled exception: {str(e)}")
            return error_json_response(classify_exception(e, redact=self.redact_errors))
