"""
Profile API endpoints.

Mounted at /api/profile. Reads are open, writes are gated by the
session role gate.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_profile_service, get_role_gate
from api.errors import http_error
from api.middleware.auth import get_current_user, get_optional_user, require_admin
from modules.auth import ISessionRoleGate, SubjectAccessDeniedError
from shared.exceptions import PortalError
from shared.models import AuthenticatedUser

from .models import ProfileRecord, ProfileWriteRequest
from .service import ProfileService

router = APIRouter()


@router.post("", response_model=ProfileRecord)
async def submit_profile(
    request: ProfileWriteRequest,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileRecord:
    """
    Create or merge a profile.

    ``role`` and ``status`` in the body are ignored unless the caller
    presents an admin token.

    An unreachable profile store answers 503.
    """
    try:
        return await service.submit(request, privileged=bool(user and user.is_admin))
    except PortalError as e:
        raise http_error(e)


@router.get("", response_model=Optional[ProfileRecord])
async def get_profile(
    subject_id: str = Query(..., alias="subjectId", min_length=1),
    service: ProfileService = Depends(get_profile_service),
) -> Optional[ProfileRecord]:
    """Return the subject's profile, or null if there is none."""
    try:
        return await service.get_profile(subject_id)
    except PortalError as e:
        raise http_error(e)


@router.put("", response_model=ProfileRecord)
async def update_profile(
    request: ProfileWriteRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    gate: ISessionRoleGate = Depends(get_role_gate),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileRecord:
    """
    Update a profile.

    Owners may update their own profile; admins may update any profile
    and are the only callers allowed to change a role. ``subjectId``
    defaults to the caller.
    """
    subject_id = request.subject_id or user.id
    if not gate.can_act_on(user, subject_id):
        raise http_error(SubjectAccessDeniedError(subject_id, user.id))

    try:
        if request.role is not None and not user.is_admin:
            existing = await service.get_profile(subject_id)
            if existing is not None and existing.role != request.role:
                raise HTTPException(status_code=403, detail="Only admins can change roles")
        return await service.update_profile(subject_id, request)
    except PortalError as e:
        raise http_error(e)


@router.delete("", response_model=ProfileRecord)
async def delete_profile(
    subject_id: str = Query(..., alias="subjectId", min_length=1),
    admin: AuthenticatedUser = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileRecord:
    """Soft-delete a profile. The record is kept with ``deleted`` set."""
    try:
        return await service.soft_delete(subject_id)
    except PortalError as e:
        raise http_error(e)
