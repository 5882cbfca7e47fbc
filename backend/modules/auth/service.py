"""
Session role gate implementation.

Validates Supabase JWT tokens and gates admin-only operations on the
role claim.
"""

from datetime import datetime, timezone
from typing import Optional
import jwt

from shared.config import get_settings
from shared.models import AuthenticatedUser

from .interfaces import ISessionRoleGate
from .models import JWTPayload
from .exceptions import (
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
    InsufficientPermissionsError,
)

ADMIN_ROLE = "admin"


class SessionRoleGate(ISessionRoleGate):
    """
    Implementation of the session role gate.

    Tokens are verified locally with the project's JWT secret, so a role
    change is only visible once the client refreshes its token.
    """

    def __init__(self):
        settings = get_settings()
        self._jwt_secret = settings.supabase_jwt_secret
        self._audience = settings.supabase_jwt_audience

    async def validate_token(self, token: Optional[str]) -> AuthenticatedUser:
        """Validate a JWT token and return the authenticated user."""
        if not token:
            raise MissingTokenError()

        if not self._jwt_secret:
            raise InvalidTokenError("Server authentication not configured")

        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=["HS256"],
                audience=self._audience,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e))

        jwt_payload = JWTPayload(**payload)
        last_sign_in = (
            datetime.fromtimestamp(jwt_payload.iat, tz=timezone.utc)
            if jwt_payload.iat
            else None
        )

        return AuthenticatedUser(
            id=jwt_payload.sub,
            email=jwt_payload.email or "",
            phone_number=jwt_payload.phone or None,
            email_verified=jwt_payload.email_verified,
            role=jwt_payload.portal_role,
            last_sign_in=last_sign_in,
        )

    async def authorize(
        self,
        token: Optional[str],
        required_role: Optional[str] = None,
    ) -> AuthenticatedUser:
        """Validate the token, then check the role claim if one is required."""
        user = await self.validate_token(token)
        if required_role is not None and user.role != required_role:
            raise InsufficientPermissionsError(required_role, user.role)
        return user

    def can_act_on(self, user: AuthenticatedUser, subject_id: str) -> bool:
        """Owners may always act on their own record; admins on any."""
        return user.id == subject_id or user.role == ADMIN_ROLE
