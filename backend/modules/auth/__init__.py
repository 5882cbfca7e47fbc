"""
Authentication module.

Handles JWT validation and role gating for privileged requests.

Public API:
- ISessionRoleGate: Interface for token and role checks
- SessionRoleGate: Supabase JWT implementation
- JWTPayload: Decoded token payload
- Auth exceptions: InvalidTokenError, ExpiredTokenError, etc.
"""

from .interfaces import ISessionRoleGate
from .models import JWTPayload
from .service import SessionRoleGate, ADMIN_ROLE
from .exceptions import (
    InvalidTokenError,
    ExpiredTokenError,
    MissingTokenError,
    InsufficientPermissionsError,
    SubjectAccessDeniedError,
)

__all__ = [
    # Interface
    "ISessionRoleGate",
    # Implementation
    "SessionRoleGate",
    "ADMIN_ROLE",
    # Models
    "JWTPayload",
    # Exceptions
    "InvalidTokenError",
    "ExpiredTokenError",
    "MissingTokenError",
    "InsufficientPermissionsError",
    "SubjectAccessDeniedError",
]
