"""
Profile module interfaces.

Other modules should depend on IProfileReconciler, not the concrete
service. The identity bridge only needs reconcile and status updates.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from shared.models import IdentitySession

from .models import ProfileFields, ProfileRecord, ProfileStatus


@runtime_checkable
class IProfileStore(Protocol):
    """Document-store boundary for profile records."""

    async def find_by_subject_id(self, subject_id: str) -> Optional[ProfileRecord]:
        """Return the record keyed by subject_id, or None."""
        ...

    async def upsert_by_subject_id(
        self,
        subject_id: str,
        fields: dict[str, Any],
    ) -> ProfileRecord:
        """
        Insert the record if absent, otherwise update only the given fields.

        Raises:
            PersistenceUnavailableError: If the store cannot be reached
            ProfileConflictError: On a unique-constraint violation
        """
        ...

    async def soft_delete(self, subject_id: str) -> Optional[ProfileRecord]:
        """Set the deleted flag. Returns None if no record exists."""
        ...

    async def list_all(self, include_deleted: bool = False) -> list[ProfileRecord]:
        """Return every record, newest first."""
        ...


@runtime_checkable
class IClaimsPublisher(Protocol):
    """Administrative side-channel that writes claims onto the identity."""

    async def set_custom_claims(self, subject_id: str, claims: dict[str, Any]) -> None:
        """
        Replace the subject's custom claims.

        Claims become visible to the client after its next forced
        token refresh.
        """
        ...


@runtime_checkable
class IProfileReconciler(Protocol):
    """
    Interface for keeping the stored profile in step with a session.

    Implementations must be idempotent and safe to call more than once
    for the same subject.
    """

    async def reconcile(
        self,
        session: IdentitySession,
        explicit_fields: Optional[ProfileFields] = None,
        status: Optional[ProfileStatus] = None,
    ) -> ProfileRecord:
        """
        Merge-upsert the subject's profile from session and explicit input.

        Args:
            session: The session that was just established or changed
            explicit_fields: Values that win over the session's
            status: Lifecycle status implied by the calling context

        Returns:
            The stored profile after the merge

        Raises:
            MissingSubjectIdError: If the session has no subject ID
            PersistenceUnavailableError: If the store cannot be reached
        """
        ...

    async def update_status(self, subject_id: str, status: ProfileStatus) -> ProfileRecord:
        """
        Set the lifecycle status on an existing profile.

        Raises:
            ProfileNotFoundError: If the subject has no profile
        """
        ...
