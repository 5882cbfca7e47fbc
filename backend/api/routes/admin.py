"""
Admin endpoints.

Every route here requires a token whose role claim is ``admin``.
"""

from fastapi import APIRouter, Depends, Query

from shared.exceptions import PortalError
from shared.models import AuthenticatedUser
from modules.profiles.models import AdminVerification, ProfileListResponse
from modules.profiles.service import ProfileService
from ..dependencies import get_profile_service
from ..errors import http_error
from ..middleware.auth import require_admin

router = APIRouter()


@router.get("/verify", response_model=AdminVerification)
async def verify_admin(
    admin: AuthenticatedUser = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service),
) -> AdminVerification:
    """
    Confirm the caller is an admin.

    The name comes from the stored profile when there is one.
    """
    try:
        profile = await service.get_profile(admin.id)
    except PortalError as e:
        raise http_error(e)

    if profile is not None:
        name = profile.greeting_name
        email = admin.email or profile.email
    else:
        name = admin.email.split("@")[0] if admin.email else "Admin"
        email = admin.email

    return AdminVerification(
        is_admin=True,
        subject_id=admin.id,
        email=email,
        name=name,
        role=admin.role,
    )


@router.get("/profiles", response_model=ProfileListResponse)
async def list_profiles(
    include_deleted: bool = Query(default=False, alias="includeDeleted"),
    admin: AuthenticatedUser = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileListResponse:
    """List all profiles, newest first."""
    try:
        profiles = await service.list_profiles(include_deleted=include_deleted)
    except PortalError as e:
        raise http_error(e)
    return ProfileListResponse(profiles=profiles, total=len(profiles))
