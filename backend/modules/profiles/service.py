"""
Profile service: reconciliation and profile administration.

Reconciliation runs after every session-establishing event. It
merge-upserts the stored profile from the session and any explicit
input, then pushes role changes to the identity provider as a claim.
"""

import hashlib
import logging
from typing import Any, Optional

from shared.models import IdentitySession

from .interfaces import IClaimsPublisher, IProfileReconciler, IProfileStore
from .models import (
    ProfileFields,
    ProfileRecord,
    ProfileRole,
    ProfileStatus,
    ProfileWriteRequest,
)
from .exceptions import MissingContactError, MissingSubjectIdError, ProfileNotFoundError

logger = logging.getLogger(__name__)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def placeholder_email(subject_id: str, domain: str) -> str:
    """
    Deterministic stand-in email for identities that have none.

    The local part is the full SHA-256 of the subject ID, so it is stable
    per subject and distinct across subjects.
    """
    digest = hashlib.sha256(subject_id.encode("utf-8")).hexdigest()
    return f"{digest}@{domain}"


def merge_profile(existing: dict[str, Any], candidate: dict[str, Any]) -> dict[str, Any]:
    """
    Merge candidate values over stored ones.

    Missing, None and blank candidate values never replace stored values.
    When both name parts are known, the display name is derived from them.
    """
    merged = dict(existing)
    for key, value in candidate.items():
        if _present(value):
            merged[key] = value

    first_name = merged.get("first_name")
    last_name = merged.get("last_name")
    if _present(first_name) and _present(last_name):
        merged["display_name"] = f"{first_name.strip()} {last_name.strip()}"
    return merged


class ProfileService(IProfileReconciler):
    """
    Profile reconciliation and CRUD on top of an IProfileStore.

    Physically concurrent reconciliations for one subject resolve
    last-write-wins; each write only carries the fields it changes.
    """

    def __init__(
        self,
        store: IProfileStore,
        claims: Optional[IClaimsPublisher] = None,
        placeholder_domain: str = "phone.placeholder.invalid",
    ):
        self._store = store
        self._claims = claims
        self._placeholder_domain = placeholder_domain

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    async def reconcile(
        self,
        session: IdentitySession,
        explicit_fields: Optional[ProfileFields] = None,
        status: Optional[ProfileStatus] = None,
    ) -> ProfileRecord:
        """Merge-upsert the subject's profile from session and explicit input."""
        subject_id = (session.subject_id or "").strip()
        if not subject_id:
            raise MissingSubjectIdError()

        candidate = {
            "email": session.email,
            "display_name": session.display_name,
            "phone_number": session.phone_number,
            "photo_url": session.photo_url,
        }
        if explicit_fields is not None:
            candidate.update(explicit_fields.provided())
        if status is not None:
            candidate["status"] = status.value

        existing = await self._store.find_by_subject_id(subject_id)
        return await self._apply(subject_id, existing, candidate)

    async def submit(self, request: ProfileWriteRequest, privileged: bool = False) -> ProfileRecord:
        """
        Reconcile a profile from a client-submitted candidate.

        Role and status are only taken from privileged (admin) callers.

        Raises:
            MissingSubjectIdError: If the request has no subject ID
            MissingContactError: If it has neither email nor phone number
        """
        subject_id = (request.subject_id or "").strip()
        if not subject_id:
            raise MissingSubjectIdError()
        if not _present(request.email) and not _present(request.phone_number):
            raise MissingContactError(subject_id)

        fields = ProfileFields.model_validate(request.model_dump(exclude={"subject_id"}))
        if not privileged:
            fields = fields.model_copy(update={"role": None, "status": None})

        session = IdentitySession(
            subject_id=subject_id,
            email=request.email,
            phone_number=request.phone_number,
            display_name=request.display_name,
            photo_url=request.photo_url,
        )
        return await self.reconcile(session, fields)

    async def update_status(self, subject_id: str, status: ProfileStatus) -> ProfileRecord:
        """Set the lifecycle status on an existing profile."""
        return await self.update_profile(subject_id, ProfileFields(status=status))

    # -------------------------------------------------------------------------
    # Profile administration
    # -------------------------------------------------------------------------

    async def get_profile(self, subject_id: str) -> Optional[ProfileRecord]:
        return await self._store.find_by_subject_id(subject_id)

    async def update_profile(self, subject_id: str, fields: ProfileFields) -> ProfileRecord:
        """
        Merge fields into an existing profile.

        Raises:
            ProfileNotFoundError: If the subject has no profile
        """
        existing = await self._store.find_by_subject_id(subject_id)
        if existing is None:
            raise ProfileNotFoundError(subject_id)
        return await self._apply(subject_id, existing, fields.provided())

    async def soft_delete(self, subject_id: str) -> ProfileRecord:
        """
        Flag the profile as deleted. The record is kept.

        Raises:
            ProfileNotFoundError: If the subject has no profile
        """
        record = await self._store.soft_delete(subject_id)
        if record is None:
            raise ProfileNotFoundError(subject_id)
        logger.info(f"Soft-deleted profile {subject_id}", extra={"subject_id": subject_id})
        return record

    async def list_profiles(self, include_deleted: bool = False) -> list[ProfileRecord]:
        return await self._store.list_all(include_deleted=include_deleted)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _apply(
        self,
        subject_id: str,
        existing: Optional[ProfileRecord],
        candidate: dict[str, Any],
    ) -> ProfileRecord:
        stored = existing.model_dump(mode="json") if existing else {}
        merged = merge_profile(stored, candidate)

        if not _present(merged.get("email")):
            merged["email"] = placeholder_email(subject_id, self._placeholder_domain)

        if existing is None:
            merged.setdefault("role", ProfileRole.USER.value)
            merged.setdefault("status", ProfileStatus.ACTIVE.value)
            merged.setdefault("deleted", False)

        changes = {
            key: value
            for key, value in merged.items()
            if key not in ("subject_id", "created_at", "updated_at")
            and stored.get(key) != value
        }
        if existing is not None and not changes:
            return existing

        record = await self._store.upsert_by_subject_id(subject_id, changes)

        previous_role = existing.role if existing else ProfileRole.USER
        if record.role != previous_role:
            await self._propagate_role(subject_id, record.role)
        return record

    async def _propagate_role(self, subject_id: str, role: ProfileRole) -> None:
        if self._claims is None:
            return
        try:
            await self._claims.set_custom_claims(subject_id, {"role": role.value})
        except Exception:
            logger.warning(
                f"Role claim propagation failed for {subject_id}; "
                "claim will stay stale until the next role change",
                exc_info=True,
                extra={"subject_id": subject_id},
            )
