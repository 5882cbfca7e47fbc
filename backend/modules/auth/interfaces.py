"""
Authentication module interface.

Routes and other modules should depend on ISessionRoleGate, not the
concrete implementation. This enables testing with mocks.
"""

from typing import Protocol, Optional, runtime_checkable

from shared.models import AuthenticatedUser


@runtime_checkable
class ISessionRoleGate(Protocol):
    """
    Interface for server-side session checks.

    Distinguishes "no/invalid token" (401) from "valid token, wrong
    role" (403).
    """

    async def validate_token(self, token: Optional[str]) -> AuthenticatedUser:
        """
        Validate a bearer token and return its claims.

        Raises:
            MissingTokenError: If token is empty
            InvalidTokenError: If token is invalid or expired
        """
        ...

    async def authorize(
        self,
        token: Optional[str],
        required_role: Optional[str] = None,
    ) -> AuthenticatedUser:
        """
        Validate a bearer token and optionally require a role.

        Raises:
            MissingTokenError: If token is empty
            InvalidTokenError: If token is invalid or expired
            InsufficientPermissionsError: If the role claim does not match
        """
        ...

    def can_act_on(self, user: AuthenticatedUser, subject_id: str) -> bool:
        """Return whether the user may act on the subject's record."""
        ...
