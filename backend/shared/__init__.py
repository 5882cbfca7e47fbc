"""
Shared infrastructure for the Campus Portal backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- logging: Root logger setup

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import (
    get_supabase_client,
    get_supabase_auth_client,
    get_supabase_user_client,
    reset_client_cache,
)
from .exceptions import (
    PortalError,
    NotFoundError,
    ValidationError,
    ConflictError,
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
)
from .models import AuthenticatedUser, IdentitySession

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "get_supabase_auth_client",
    "get_supabase_user_client",
    "reset_client_cache",
    "PortalError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "AuthenticationError",
    "AuthorizationError",
    "ExternalServiceError",
    "AuthenticatedUser",
    "IdentitySession",
]
