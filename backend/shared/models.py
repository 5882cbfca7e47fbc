"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    This model is populated from verified JWT claims and made available
    to route handlers via dependency injection.

    Phone-only identities carry no email, so ``email`` may be empty.
    """

    id: str = Field(..., description="Subject ID from the identity provider")
    email: str = Field(default="", description="User's email address, if any")
    phone_number: Optional[str] = Field(None, description="Verified phone number, if any")
    email_verified: bool = Field(default=False, description="Whether email is verified")
    role: str = Field(default="user", description="Role claim from app_metadata")

    last_sign_in: Optional[datetime] = Field(None, description="Token issue time")

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",  # Ignore extra fields from JWT
    }

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class IdentitySession(BaseModel):
    """
    A live session issued by the identity provider.

    Owned by the provider; the backend only holds a transient reference.
    ``role`` mirrors the app_metadata role claim at the time the token
    was issued and can lag the stored profile by one refresh.
    """

    subject_id: str = Field(..., description="Stable identity-provider user ID")
    email: Optional[str] = Field(None, description="Primary email, absent for phone-only users")
    phone_number: Optional[str] = Field(None, description="Phone number in E.164 form")
    display_name: Optional[str] = Field(None, description="Provider-held display name")
    photo_url: Optional[str] = Field(None, description="Provider-held avatar URL")
    role: str = Field(default="user", description="Role claim from app_metadata")

    access_token: Optional[str] = Field(None, description="Short-lived bearer token")
    refresh_token: Optional[str] = Field(None, description="Token used to refresh the session")
    expires_at: Optional[int] = Field(None, description="Access token expiry (epoch seconds)")
