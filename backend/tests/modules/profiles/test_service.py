"""Tests for profile reconciliation and administration."""

import pytest
from unittest.mock import AsyncMock

from modules.profiles.exceptions import (
    MissingContactError,
    MissingSubjectIdError,
    PersistenceUnavailableError,
    ProfileConflictError,
    ProfileNotFoundError,
)
from modules.profiles.models import (
    ProfileFields,
    ProfileRole,
    ProfileStatus,
    ProfileWriteRequest,
)
from modules.profiles.service import ProfileService, merge_profile, placeholder_email
from shared.models import IdentitySession


def session(subject_id: str = "uid-1", **fields) -> IdentitySession:
    return IdentitySession(subject_id=subject_id, **fields)


class TestPlaceholderEmail:
    def test_deterministic(self):
        assert placeholder_email("uid-1", "example.invalid") == placeholder_email("uid-1", "example.invalid")

    def test_distinct_per_subject(self):
        assert placeholder_email("uid-1", "example.invalid") != placeholder_email("uid-2", "example.invalid")

    def test_shape(self):
        email = placeholder_email("uid-1", "example.invalid")
        local, domain = email.split("@")
        assert len(local) == 64
        assert domain == "example.invalid"


class TestMergeProfile:
    def test_absent_values_do_not_erase(self):
        merged = merge_profile({"university": "A"}, {"university": None, "course": ""})
        assert merged["university"] == "A"
        assert "course" not in merged

    def test_display_name_from_name_parts(self):
        merged = merge_profile(
            {"display_name": "Old Name", "first_name": "Jane"},
            {"last_name": "Doe"},
        )
        assert merged["display_name"] == "Jane Doe"


class TestReconcile:
    @pytest.mark.asyncio
    async def test_creates_with_defaults(self, profile_service):
        record = await profile_service.reconcile(session(email="jane@example.com"))

        assert record.subject_id == "uid-1"
        assert record.role == ProfileRole.USER
        assert record.status == ProfileStatus.ACTIVE
        assert record.deleted is False
        assert record.created_at is not None

    @pytest.mark.asyncio
    async def test_missing_subject_id(self, profile_service):
        with pytest.raises(MissingSubjectIdError):
            await profile_service.reconcile(session(subject_id="  "))

    @pytest.mark.asyncio
    async def test_idempotent(self, profile_service, profile_store):
        first = await profile_service.reconcile(session(email="jane@example.com", display_name="Jane"))
        profile_store.upsert_by_subject_id = AsyncMock()

        second = await profile_service.reconcile(session(email="jane@example.com", display_name="Jane"))

        assert second == first
        profile_store.upsert_by_subject_id.assert_not_awaited()
        assert len(await profile_store.list_all()) == 1

    @pytest.mark.asyncio
    async def test_phone_only_gets_placeholder(self, profile_service):
        record = await profile_service.reconcile(session(phone_number="+712345678"))

        assert record.email == placeholder_email("uid-1", "phone.placeholder.invalid")
        assert record.phone_number == "+712345678"

    @pytest.mark.asyncio
    async def test_placeholder_never_replaces_stored_email(self, profile_service):
        await profile_service.reconcile(session(email="jane@example.com"))

        record = await profile_service.reconcile(session(phone_number="+712345678"))

        assert record.email == "jane@example.com"

    @pytest.mark.asyncio
    async def test_explicit_fields_win_over_session(self, profile_service):
        record = await profile_service.reconcile(
            session(email="session@example.com", display_name="From Session"),
            ProfileFields(email="explicit@example.com", display_name="Explicit"),
        )

        assert record.email == "explicit@example.com"
        assert record.display_name == "Explicit"

    @pytest.mark.asyncio
    async def test_merge_keeps_stored_values(self, profile_service):
        await profile_service.reconcile(
            session(email="jane@example.com"), ProfileFields(university="A")
        )

        record = await profile_service.reconcile(
            session(email="jane@example.com"), ProfileFields(course="Law")
        )

        assert record.university == "A"
        assert record.course == "Law"

    @pytest.mark.asyncio
    async def test_name_parts_override_display_name(self, profile_service):
        await profile_service.reconcile(session(email="jane@example.com", display_name="JD"))

        record = await profile_service.reconcile(
            session(email="jane@example.com"),
            ProfileFields(first_name="Jane", last_name="Doe"),
        )

        assert record.display_name == "Jane Doe"

    @pytest.mark.asyncio
    async def test_session_role_is_ignored(self, profile_service, claims_publisher):
        """A stale role claim on the session never changes the stored role."""
        await profile_service.reconcile(session(email="a@example.com"), ProfileFields(role=ProfileRole.ADMIN))
        claims_publisher.calls.clear()

        record = await profile_service.reconcile(session(email="a@example.com", role="user"))

        assert record.role == ProfileRole.ADMIN
        assert claims_publisher.calls == []

    @pytest.mark.asyncio
    async def test_status_argument(self, profile_service):
        record = await profile_service.reconcile(
            session(email="jane@example.com"), status=ProfileStatus.INACTIVE
        )
        assert record.status == ProfileStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_reconcile_leaves_deleted_flag(self, profile_service):
        await profile_service.reconcile(session(email="jane@example.com"))
        await profile_service.soft_delete("uid-1")

        record = await profile_service.reconcile(session(email="jane@example.com", display_name="Back"))

        assert record.deleted is True

    @pytest.mark.asyncio
    async def test_conflict(self, profile_service):
        await profile_service.reconcile(session("uid-1", email="jane@example.com"))

        with pytest.raises(ProfileConflictError) as exc_info:
            await profile_service.reconcile(session("uid-2", email="jane@example.com"))
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_store_unavailable(self, profile_service, profile_store):
        profile_store.find_by_subject_id = AsyncMock(side_effect=PersistenceUnavailableError("timeout"))

        with pytest.raises(PersistenceUnavailableError):
            await profile_service.reconcile(session(email="jane@example.com"))


class TestRolePropagation:
    @pytest.mark.asyncio
    async def test_promotion_propagates_once(self, profile_service, claims_publisher):
        await profile_service.reconcile(session(email="a@example.com"))

        record = await profile_service.reconcile(
            session(email="a@example.com"), ProfileFields(role=ProfileRole.ADMIN)
        )

        assert record.role == ProfileRole.ADMIN
        assert claims_publisher.calls == [("uid-1", {"role": "admin"})]

    @pytest.mark.asyncio
    async def test_default_role_not_propagated(self, profile_service, claims_publisher):
        await profile_service.reconcile(session(email="a@example.com"))

        assert claims_publisher.calls == []

    @pytest.mark.asyncio
    async def test_new_admin_record_propagates(self, profile_service, claims_publisher):
        await profile_service.reconcile(session(email="a@example.com"), ProfileFields(role=ProfileRole.ADMIN))

        assert claims_publisher.calls == [("uid-1", {"role": "admin"})]

    @pytest.mark.asyncio
    async def test_propagation_failure_is_not_raised(self, profile_store, failing_claims):
        claims = failing_claims
        service = ProfileService(store=profile_store, claims=claims)
        await service.reconcile(session(email="a@example.com"))

        record = await service.reconcile(session(email="a@example.com"), ProfileFields(role=ProfileRole.ADMIN))

        assert record.role == ProfileRole.ADMIN
        assert claims.calls == 1


class TestSubmit:
    @pytest.mark.asyncio
    async def test_requires_subject_id(self, profile_service):
        with pytest.raises(MissingSubjectIdError):
            await profile_service.submit(ProfileWriteRequest(email="a@example.com"))

    @pytest.mark.asyncio
    async def test_requires_contact(self, profile_service):
        with pytest.raises(MissingContactError):
            await profile_service.submit(ProfileWriteRequest(subject_id="uid-1", first_name="Jane"))

    @pytest.mark.asyncio
    async def test_unprivileged_role_is_ignored(self, profile_service):
        record = await profile_service.submit(
            ProfileWriteRequest(subject_id="uid-1", email="a@example.com", role=ProfileRole.ADMIN)
        )
        assert record.role == ProfileRole.USER

    @pytest.mark.asyncio
    async def test_privileged_role_is_applied(self, profile_service):
        record = await profile_service.submit(
            ProfileWriteRequest(subject_id="uid-1", email="a@example.com", role=ProfileRole.ADMIN),
            privileged=True,
        )
        assert record.role == ProfileRole.ADMIN


class TestAdministration:
    @pytest.mark.asyncio
    async def test_update_missing_profile(self, profile_service):
        with pytest.raises(ProfileNotFoundError):
            await profile_service.update_profile("nobody", ProfileFields(course="Law"))

    @pytest.mark.asyncio
    async def test_update_status(self, profile_service):
        await profile_service.reconcile(session(email="a@example.com"))

        record = await profile_service.update_status("uid-1", ProfileStatus.INACTIVE)

        assert record.status == ProfileStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_soft_delete_keeps_record(self, profile_service):
        await profile_service.reconcile(session(email="a@example.com"))

        record = await profile_service.soft_delete("uid-1")

        assert record.deleted is True
        assert (await profile_service.get_profile("uid-1")).deleted is True

    @pytest.mark.asyncio
    async def test_soft_delete_missing(self, profile_service):
        with pytest.raises(ProfileNotFoundError):
            await profile_service.soft_delete("nobody")

    @pytest.mark.asyncio
    async def test_list_profiles(self, profile_service):
        await profile_service.reconcile(session("uid-1", email="a@example.com"))
        await profile_service.reconcile(session("uid-2", email="b@example.com"))
        await profile_service.soft_delete("uid-1")

        active = await profile_service.list_profiles()
        everyone = await profile_service.list_profiles(include_deleted=True)

        assert [p.subject_id for p in active] == ["uid-2"]
        assert len(everyone) == 2
