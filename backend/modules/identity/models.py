"""
Identity module data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from shared.models import IdentitySession
from modules.profiles.models import ProfileFields, ProfileRecord


class SessionEvent(str, Enum):
    """Session transitions delivered to subscribers."""

    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    TOKEN_REFRESHED = "token_refreshed"
    USER_UPDATED = "user_updated"


class VerificationState(str, Enum):
    """Phone verification flow states."""

    IDLE = "idle"
    AWAITING_PROOF = "awaiting_proof"
    AWAITING_CODE = "awaiting_code"
    VERIFIED = "verified"
    FAILED = "failed"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthResult(BaseModel):
    """A session plus the profile reconciled from it, if reconciliation succeeded."""

    session: IdentitySession
    profile: Optional[ProfileRecord] = None


class PendingVerification(_CamelModel):
    """
    Reference to an SMS code that has been sent.

    Serializable so it can round-trip through the client between the
    code request and the code submission.
    """

    phone_number: str = Field(..., description="Normalized E.164 number the code went to")
    requested_at: datetime = Field(..., description="When the code was requested")

    @field_validator("requested_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Timestamps without an offset are taken to be UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# -----------------------------------------------------------------------------
# HTTP payloads
# -----------------------------------------------------------------------------


class PasswordSignInRequest(_CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignUpRequest(PasswordSignInRequest):
    profile: Optional[ProfileFields] = None


class FederatedSignInRequest(_CamelModel):
    provider: str = Field(default="google")
    id_token: str = Field(..., min_length=1)
    nonce: Optional[str] = None


class PhoneCodeRequest(_CamelModel):
    phone_number: str = Field(..., min_length=1)
    challenge_token: str = Field(..., min_length=1)


class PhoneVerifyRequest(_CamelModel):
    pending: PendingVerification
    code: str


class SessionResponse(_CamelModel):
    """Session handed back to the client after a successful sign-in."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_at: Optional[int] = None
    subject_id: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    display_name: Optional[str] = None
    role: str = "user"
    profile: Optional[ProfileRecord] = None

    @classmethod
    def from_result(cls, result: AuthResult) -> "SessionResponse":
        session = result.session
        return cls(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=session.expires_at,
            subject_id=session.subject_id,
            email=session.email,
            phone_number=session.phone_number,
            display_name=session.display_name,
            role=session.role,
            profile=result.profile,
        )


class SignOutResponse(_CamelModel):
    status: str = "signed_out"
