"""
Bearer-token authentication dependencies.

Thin FastAPI adapters over the session role gate: the gate decides,
these turn its exceptions into 401/403 responses.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.dependencies import get_role_gate
from api.errors import http_error
from modules.auth import ADMIN_ROLE, ISessionRoleGate
from shared.exceptions import AuthenticationError, AuthorizationError
from shared.models import AuthenticatedUser

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


class AuthError(HTTPException):
    """Authentication error with consistent format."""
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Raw bearer token from the Authorization header, if any."""
    if credentials is None:
        return None
    return credentials.credentials


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    gate: ISessionRoleGate = Depends(get_role_gate),
) -> AuthenticatedUser:
    """
    Dependency that requires authentication.

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    if not token:
        raise AuthError("Missing authorization header")

    try:
        return await gate.validate_token(token)
    except AuthenticationError as e:
        raise http_error(e)


async def get_optional_user(
    token: Optional[str] = Depends(get_bearer_token),
    gate: ISessionRoleGate = Depends(get_role_gate),
) -> Optional[AuthenticatedUser]:
    """
    Dependency that optionally extracts user if authenticated.

    An invalid token is treated the same as no token.
    """
    if not token:
        return None

    try:
        return await gate.validate_token(token)
    except AuthenticationError:
        return None


async def require_admin(
    token: Optional[str] = Depends(get_bearer_token),
    gate: ISessionRoleGate = Depends(get_role_gate),
) -> AuthenticatedUser:
    """Dependency that requires a valid token carrying the admin role."""
    if not token:
        raise AuthError("Missing authorization header")

    try:
        return await gate.authorize(token, required_role=ADMIN_ROLE)
    except (AuthenticationError, AuthorizationError) as e:
        raise http_error(e)
