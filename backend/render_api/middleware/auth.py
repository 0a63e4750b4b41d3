"""
API key authentication for render endpoints.

The shared secret is accepted from either location:
- Header: X-API-Key: <key>
- Header: Authorization: Bearer <key>
"""

import hmac
import logging
from typing import Optional

from fastapi import Request, Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from render_api.config import settings

from .error_handler import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


async def require_api_key(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
    bearer: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> str:
    """
    FastAPI dependency that enforces the shared API key.

    X-API-Key takes precedence over the Authorization header.

    Returns:
        str: The accepted key

    Raises:
        UnauthorizedError: 401 if no key is presented
        ForbiddenError: 403 if the key does not match
    """
    provided_key = api_key or (bearer.credentials if bearer else None)
    client_ip = request.client.host if request.client else None

    if not provided_key:
        logger.warning(
            "Request rejected: No API key provided",
            extra={"ip": client_ip, "path": request.url.path},
        )
        raise UnauthorizedError()

    if not hmac.compare_digest(provided_key.encode(), settings.API_KEY.encode()):
        logger.warning(
            "Request rejected: Invalid API key",
            extra={"ip": client_ip, "path": request.url.path},
        )
        raise ForbiddenError()

    return provided_key
