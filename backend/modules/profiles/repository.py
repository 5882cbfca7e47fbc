"""
Profile repository for database access.

Encapsulates the Supabase queries for the ``profiles`` table and an
in-memory store with the same contract for local development.
"""

import re
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Optional

from postgrest.exceptions import APIError
from supabase import Client

from shared.exceptions import ExternalServiceError, PortalError
from shared.repository import BaseRepository, StoreError
from .models import ProfileRecord
from .exceptions import PersistenceUnavailableError, ProfileConflictError

UNIQUE_VIOLATION = "23505"
_CONFLICT_KEY = re.compile(r"Key \((?P<field>[^)]+)\)=\((?P<value>[^)]*)\)")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def conflict_from_api_error(error: APIError) -> ProfileConflictError:
    """Build a conflict error naming the column from a postgres 23505 detail."""
    match = _CONFLICT_KEY.search(str(error.details or error.message or ""))
    if match is None:
        return ProfileConflictError("subject_id")
    return ProfileConflictError(match.group("field"), match.group("value"))


class SupabaseProfileRepository(BaseRepository[ProfileRecord]):
    """
    Repository for profile data access.

    Upserts rely on PostgREST's merge-duplicates resolution: only the
    columns present in the payload are written on conflict, so a partial
    payload never erases other stored columns.

    Note: This repository does NOT perform authorization checks.
    """

    service_name = "profile_store"

    def __init__(self, db: Client, table: str = "profiles") -> None:
        super().__init__(db, table)

    def _translate_error(self, error: StoreError) -> PortalError:
        if not isinstance(error, APIError):
            return PersistenceUnavailableError(str(error))
        if error.code == UNIQUE_VIOLATION:
            return conflict_from_api_error(error)
        return ExternalServiceError(
            error.message or "Profile store request failed",
            service=self.service_name,
            code="PROFILE_STORE_ERROR",
            details={"postgres_code": error.code},
        )

    async def find_by_subject_id(self, subject_id: str) -> Optional[ProfileRecord]:
        result = self._execute(
            lambda: self._rows()
            .select("*")
            .eq("subject_id", subject_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return ProfileRecord.model_validate(result.data[0])

    async def upsert_by_subject_id(
        self,
        subject_id: str,
        fields: dict[str, Any],
    ) -> ProfileRecord:
        row = {**fields, "subject_id": subject_id, "updated_at": _now()}
        result = self._execute(
            lambda: self._rows()
            .upsert(row, on_conflict="subject_id")
            .execute()
        )
        return ProfileRecord.model_validate(result.data[0])

    async def soft_delete(self, subject_id: str) -> Optional[ProfileRecord]:
        result = self._execute(
            lambda: self._rows()
            .update({"deleted": True, "updated_at": _now()})
            .eq("subject_id", subject_id)
            .execute()
        )
        if not result.data:
            return None
        return ProfileRecord.model_validate(result.data[0])

    async def list_all(self, include_deleted: bool = False) -> list[ProfileRecord]:
        def query():
            builder = self._rows().select("*")
            if not include_deleted:
                builder = builder.eq("deleted", False)
            return builder.order("created_at", desc=True).execute()

        result = self._execute(query)
        return [ProfileRecord.model_validate(row) for row in result.data]


class InMemoryProfileRepository:
    """
    Process-local profile store.

    Selected with PROFILE_STORE_BACKEND=memory. Enforces the same unique
    email constraint as the ``profiles`` table.
    """

    def __init__(self, unique_fields: tuple[str, ...] = ("email",)) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        self._unique_fields = unique_fields

    def _check_unique(self, subject_id: str, row: dict[str, Any]) -> None:
        for field in self._unique_fields:
            value = row.get(field)
            if value in (None, ""):
                continue
            for other_id, other in self._rows.items():
                if other_id != subject_id and other.get(field) == value:
                    raise ProfileConflictError(field, str(value))

    async def find_by_subject_id(self, subject_id: str) -> Optional[ProfileRecord]:
        row = self._rows.get(subject_id)
        return ProfileRecord.model_validate(row) if row else None

    async def upsert_by_subject_id(
        self,
        subject_id: str,
        fields: dict[str, Any],
    ) -> ProfileRecord:
        now = _now()
        existing = self._rows.get(subject_id)
        row = deepcopy(existing) if existing else {"subject_id": subject_id, "created_at": now}
        row.update(fields)
        row["subject_id"] = subject_id
        row["updated_at"] = now
        self._check_unique(subject_id, row)
        self._rows[subject_id] = row
        return ProfileRecord.model_validate(row)

    async def soft_delete(self, subject_id: str) -> Optional[ProfileRecord]:
        row = self._rows.get(subject_id)
        if row is None:
            return None
        row["deleted"] = True
        row["updated_at"] = _now()
        return ProfileRecord.model_validate(row)

    async def list_all(self, include_deleted: bool = False) -> list[ProfileRecord]:
        rows = sorted(self._rows.values(), key=lambda r: r["created_at"], reverse=True)
        return [
            ProfileRecord.model_validate(row)
            for row in rows
            if include_deleted or not row.get("deleted")
        ]
