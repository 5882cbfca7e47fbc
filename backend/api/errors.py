"""
Error responses for the API.

Routes catch module exceptions and re-raise them as HTTPException with
the exception's ``to_dict()`` as the detail.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from shared.exceptions import (
    PortalError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from modules.identity.exceptions import IdentityError, RateLimitedError

logger = logging.getLogger(__name__)


def status_for(error: PortalError) -> int:
    """Map a module exception onto an HTTP status code."""
    if isinstance(error, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(error, AuthorizationError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(error, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, RateLimitedError):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if isinstance(error, ExternalServiceError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(error, (ValidationError, IdentityError)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def http_error(error: PortalError, headers: Optional[dict[str, str]] = None) -> HTTPException:
    """Build the HTTPException a route should raise for a module error."""
    status_code = status_for(error)
    if status_code >= 500:
        logger.error(f"{error.code}: {error.message}")
    if status_code == status.HTTP_401_UNAUTHORIZED and headers is None:
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(status_code=status_code, detail=error.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Catch module errors a route did not translate itself.

    The response body matches what ``http_error`` produces.
    """

    @app.exception_handler(PortalError)
    async def handle_portal_error(request: Request, exc: PortalError) -> JSONResponse:
        status_code = status_for(exc)
        logger.warning(
            f"Unhandled {exc.code} on {request.url.path}",
            extra={"path": request.url.path, "status_code": status_code},
        )
        headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()}, headers=headers)
