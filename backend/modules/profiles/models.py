"""
Profile module data models.

Storage uses snake_case columns; the HTTP API speaks camelCase. Both
spellings are accepted on input.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProfileRole(str, Enum):
    """Authorization role stored on the profile and mirrored as a claim."""

    USER = "user"
    ADMIN = "admin"


class ProfileStatus(str, Enum):
    """Whether the subject currently holds a live session."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ProfileFields(_CamelModel):
    """
    A partial set of profile values.

    Used both as explicit input to reconciliation and as the body of
    profile writes. ``None`` means "not provided".
    """

    email: Optional[str] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None

    first_name: Optional[str] = None
    last_name: Optional[str] = None

    university: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    course: Optional[str] = None
    year_of_study: Optional[str] = None
    semester: Optional[str] = None
    unit: Optional[str] = None

    role: Optional[ProfileRole] = None
    status: Optional[ProfileStatus] = None

    def provided(self) -> dict:
        """Return the fields that carry a value (not None, not blank)."""
        values = self.model_dump(exclude_none=True, mode="json")
        return {
            key: value
            for key, value in values.items()
            if not (isinstance(value, str) and not value.strip())
        }


class ProfileRecord(_CamelModel):
    """A persisted profile, keyed by the identity provider's subject ID."""

    subject_id: str = Field(..., description="Identity-provider user ID")
    email: str = Field(..., description="Real or placeholder email, never empty")
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None

    first_name: Optional[str] = None
    last_name: Optional[str] = None

    university: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    course: Optional[str] = None
    year_of_study: Optional[str] = None
    semester: Optional[str] = None
    unit: Optional[str] = None

    role: ProfileRole = ProfileRole.USER
    status: ProfileStatus = ProfileStatus.ACTIVE
    deleted: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def greeting_name(self) -> str:
        """Name to greet the user with on the dashboard."""
        if self.first_name:
            return self.first_name
        if self.display_name:
            return self.display_name
        return self.email.split("@")[0] or "User"


class ProfileWriteRequest(ProfileFields):
    """Body of POST/PUT /profile: candidate fields plus the subject key."""

    subject_id: Optional[str] = None


class ProfileListResponse(_CamelModel):
    """Admin roster response."""

    profiles: list[ProfileRecord]
    total: int


class AdminVerification(_CamelModel):
    """Response of the admin verification endpoint."""

    is_admin: bool
    subject_id: str
    email: str
    name: str
    role: str
