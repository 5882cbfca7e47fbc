"""
Authentication module data models.
"""

from typing import Optional
from pydantic import BaseModel, Field


class JWTPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    The top-level ``role`` is Supabase's Postgres role ("authenticated");
    the portal role lives in ``app_metadata.role``.
    """

    sub: str = Field(..., description="Subject (user ID)")
    email: Optional[str] = Field(None, description="User's email")
    phone: Optional[str] = Field(None, description="User's phone number")
    exp: int = Field(..., description="Expiration timestamp")
    iat: Optional[int] = Field(None, description="Issued at timestamp")
    aud: str = Field(default="authenticated", description="Audience")
    role: str = Field(default="authenticated", description="Postgres role")

    app_metadata: dict = Field(default_factory=dict)
    user_metadata: dict = Field(default_factory=dict)

    @property
    def portal_role(self) -> str:
        return str(self.app_metadata.get("role") or "user")

    @property
    def email_verified(self) -> bool:
        return bool(self.user_metadata.get("email_verified", False))
