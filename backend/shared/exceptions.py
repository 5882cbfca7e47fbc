"""
Base exception classes for the Campus Portal backend.

Modules raise subclasses of these; ``api.errors`` maps each base onto an
HTTP status, so a new module error only has to pick the right parent.
"""

from typing import Optional, Any


class PortalError(Exception):
    """
    Root of every error the backend raises on purpose.

    ``code`` is the machine-readable identifier clients switch on;
    ``message`` is safe to show to end users.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Body used as the ``detail`` of error responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class NotFoundError(PortalError):
    """The addressed record does not exist."""


class ValidationError(PortalError):
    """Caller input was rejected before reaching a backend."""


class ConflictError(PortalError):
    """A write collided with an existing unique value."""

    def __init__(
        self,
        message: str,
        field: str = "",
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.field = field
        if field:
            self.details.setdefault("field", field)


class AuthenticationError(PortalError):
    """No usable credentials: missing, malformed, expired or wrong."""


class AuthorizationError(PortalError):
    """Credentials are valid but do not permit the operation."""


class ExternalServiceError(PortalError):
    """A dependency (identity provider, profile store) failed or is unreachable."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
