"""
Identity module.

Bridges the external identity provider and the profile store: every
established session is reconciled into a profile, sign-out marks the
profile inactive, and session transitions reach subscribers.

Public API:
- IdentitySessionBridge: sign-up/in/out, subscriptions, profile fields
- PhoneVerificationFlow / normalize_phone_number: SMS sign-in
- IIdentityProvider / SupabaseIdentityProvider: provider boundary
- Identity exceptions
"""

from .interfaces import IIdentityProvider
from .models import (
    AuthResult,
    PendingVerification,
    SessionEvent,
    VerificationState,
)
from .phone import PhoneVerificationFlow, normalize_phone_number
from .bridge import IdentitySessionBridge
from .supabase_provider import SupabaseIdentityProvider, map_auth_error
from .exceptions import (
    IdentityError,
    AccountExistsError,
    ChallengeUnavailableError,
    CodeExpiredError,
    IdentityProviderError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidPhoneNumberError,
    NoActiveSessionError,
    RateLimitedError,
    VerificationStateError,
    WeakPasswordError,
)

__all__ = [
    # Interface
    "IIdentityProvider",
    # Models
    "AuthResult",
    "PendingVerification",
    "SessionEvent",
    "VerificationState",
    # Implementation
    "IdentitySessionBridge",
    "PhoneVerificationFlow",
    "normalize_phone_number",
    "SupabaseIdentityProvider",
    "map_auth_error",
    # Exceptions
    "IdentityError",
    "AccountExistsError",
    "ChallengeUnavailableError",
    "CodeExpiredError",
    "IdentityProviderError",
    "InvalidCodeError",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "InvalidPhoneNumberError",
    "NoActiveSessionError",
    "RateLimitedError",
    "VerificationStateError",
    "WeakPasswordError",
]
