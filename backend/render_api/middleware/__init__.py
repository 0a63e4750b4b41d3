"""FastAPI middleware and dependencies for request/response processing."""

from .auth import require_api_key
from .error_handler import (
    ERROR_STATUS_CODES,
    ConcurrencyLimitError,
    ErrorHandlerMiddleware,
    ForbiddenError,
    InternalServerError,
    RenderError,
    StorageFailedError,
    UnauthorizedError,
    ValidationFailedError,
    classify_exception,
    format_error_response,
    status_for_code,
)
from .request_logging import RequestLoggingMiddleware

__all__ = [
    "ERROR_STATUS_CODES",
    "ErrorHandlerMiddleware",
    "RequestLoggingMiddleware",
    "RenderError",
    "ValidationFailedError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConcurrencyLimitError",
    "StorageFailedError",
    "InternalServerError",
    "classify_exception",
    "format_error_response",
    "status_for_code",
    "require_api_key",
]
