"""
Profile module exceptions.
"""

from shared.exceptions import (
    PortalError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,
)


class ProfileError(PortalError):
    """Base exception for profile-related errors."""

    pass


class MissingSubjectIdError(ValidationError):
    """
    Raised when a session or request carries no subject ID.

    For an authenticated session this indicates a provider bug.
    """

    def __init__(self):
        super().__init__(
            "Missing subjectId",
            code="MISSING_SUBJECT_ID",
        )


class MissingContactError(ValidationError):
    """Raised when a profile write carries neither an email nor a phone number."""

    def __init__(self, subject_id: str):
        super().__init__(
            "Missing email or phone number",
            code="MISSING_CONTACT",
            details={"subject_id": subject_id},
        )


class ProfileNotFoundError(NotFoundError):
    """Raised when no profile exists for a subject."""

    def __init__(self, subject_id: str):
        super().__init__(
            f"Profile not found: {subject_id}",
            code="PROFILE_NOT_FOUND",
            details={"subject_id": subject_id},
        )


class ProfileConflictError(ConflictError):
    """Raised when a write violates a unique constraint."""

    def __init__(self, field: str, value: str = ""):
        super().__init__(
            f"A profile with this {field} already exists",
            field=field,
            code="PROFILE_CONFLICT",
            details={"value": value},
        )


class PersistenceUnavailableError(ExternalServiceError):
    """Raised when the profile store cannot be reached."""

    def __init__(self, reason: str = ""):
        super().__init__(
            "Profile store is unavailable",
            service="profile_store",
            code="PERSISTENCE_UNAVAILABLE",
            details={"reason": reason},
        )
