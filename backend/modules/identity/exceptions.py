"""
Identity module exceptions.

Messages are written for end users; routes pass them through as-is.
"""

from typing import Optional

from shared.exceptions import (
    PortalError,
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    ValidationError,
)


class IdentityError(PortalError):
    """Base exception for identity-flow errors."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when email/password (or a federated token) is rejected."""

    def __init__(self, message: str = "Incorrect email or password."):
        super().__init__(message, code="INVALID_CREDENTIALS")


class AccountExistsError(ConflictError):
    """Raised when signing up with an email that is already registered."""

    def __init__(self, message: str = "This email is already registered."):
        super().__init__(message, field="email", code="ACCOUNT_EXISTS")


class InvalidEmailError(ValidationError):
    def __init__(self, message: str = "Please enter a valid email address."):
        super().__init__(message, code="INVALID_EMAIL")


class WeakPasswordError(ValidationError):
    def __init__(self, message: str = "Password should be at least 6 characters."):
        super().__init__(message, code="WEAK_PASSWORD")


class InvalidPhoneNumberError(ValidationError):
    """Raised when a phone number is missing or not a valid E.164 number."""

    def __init__(self, phone_number: str = "", message: str = "Phone number is invalid."):
        super().__init__(
            message,
            code="INVALID_PHONE_NUMBER",
            details={"phone_number": phone_number},
        )


class RateLimitedError(IdentityError):
    """Raised when the provider throttles sign-in or SMS requests."""

    def __init__(
        self,
        message: str = "Too many attempts. Try again later.",
        retry_after: Optional[int] = None,
    ):
        super().__init__(
            message,
            code="RATE_LIMITED",
            details={"retry_after": retry_after} if retry_after else {},
        )


class ChallengeUnavailableError(IdentityError):
    """Raised when no valid human-presence proof could be obtained."""

    def __init__(self, reason: str = ""):
        super().__init__(
            "Verification challenge is not ready. Please try again.",
            code="CHALLENGE_UNAVAILABLE",
            details={"reason": reason} if reason else {},
        )


class InvalidCodeError(ValidationError):
    """Raised when the submitted one-time code is wrong or empty."""

    def __init__(self, message: str = "The verification code is invalid."):
        super().__init__(message, code="INVALID_CODE")


class CodeExpiredError(IdentityError):
    """Raised when the one-time code expired; a new code must be requested."""

    def __init__(self):
        super().__init__(
            "The verification code has expired. Please request a new one.",
            code="CODE_EXPIRED",
        )


class VerificationStateError(IdentityError):
    """Raised when a phone-flow step is called out of order."""

    def __init__(self, state: str, operation: str):
        super().__init__(
            f"Cannot {operation} while verification is {state}",
            code="VERIFICATION_STATE",
            details={"state": state, "operation": operation},
        )


class NoActiveSessionError(AuthenticationError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(self):
        super().__init__("No user is signed in.", code="NO_ACTIVE_SESSION")


class IdentityProviderError(ExternalServiceError):
    """Raised for provider failures that have no more specific mapping."""

    def __init__(
        self,
        message: str = "Something went wrong. Please try again.",
        provider_code: Optional[str] = None,
    ):
        super().__init__(
            message,
            service="identity_provider",
            code="IDENTITY_PROVIDER_ERROR",
            details={"provider_code": provider_code} if provider_code else {},
        )
