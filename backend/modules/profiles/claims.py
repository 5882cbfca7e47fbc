"""
Role claim side-channel backed by Supabase Auth admin.

Custom claims are stored in the user's ``app_metadata``, which only the
service role can write and which Supabase embeds in every access token.
"""

from typing import Any

from supabase import AuthError, Client

from shared.exceptions import ExternalServiceError


class SupabaseClaimsPublisher:
    """Writes custom claims onto Supabase users."""

    def __init__(self, db: Client) -> None:
        self._db = db

    async def set_custom_claims(self, subject_id: str, claims: dict[str, Any]) -> None:
        try:
            self._db.auth.admin.update_user_by_id(subject_id, {"app_metadata": claims})
        except AuthError as e:
            raise ExternalServiceError(
                f"Failed to update claims: {e.message}",
                service="identity_provider",
                code="CLAIMS_UPDATE_FAILED",
                details={"subject_id": subject_id},
            ) from e
