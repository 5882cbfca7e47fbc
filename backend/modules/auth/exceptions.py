"""
Authentication module exceptions.

These exceptions are raised by the auth module and can be caught
by API error handlers to return appropriate HTTP responses:
AuthenticationError subclasses map to 401, AuthorizationError to 403.
"""

from shared.exceptions import AuthenticationError, AuthorizationError


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT token is invalid or malformed."""

    def __init__(self, message: str = "Invalid authentication token", code: str = "INVALID_TOKEN"):
        super().__init__(message, code=code)


class ExpiredTokenError(InvalidTokenError):
    """Raised when a JWT token has expired."""

    def __init__(self, message: str = "Authentication token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class MissingTokenError(AuthenticationError):
    """Raised when no authentication token is provided."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="MISSING_TOKEN")


class InsufficientPermissionsError(AuthorizationError):
    """Raised when a valid token lacks the required role."""

    def __init__(self, required_role: str, user_role: str):
        super().__init__(
            f"Insufficient permissions. Required: {required_role}, has: {user_role}",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required_role": required_role, "user_role": user_role},
        )


class SubjectAccessDeniedError(AuthorizationError):
    """Raised when a non-admin acts on another subject's record."""

    def __init__(self, subject_id: str, user_id: str):
        super().__init__(
            f"Access denied to profile: {subject_id}",
            code="SUBJECT_ACCESS_DENIED",
            details={"subject_id": subject_id, "user_id": user_id},
        )
