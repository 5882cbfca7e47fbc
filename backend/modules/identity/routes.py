"""
Identity API endpoints.

Sign-up, sign-in (password, federated, phone) and sign-out. Each
sign-in response carries the session tokens and the reconciled profile.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import BridgeFactory, get_challenge_host, get_identity_bridge_factory
from api.errors import http_error
from api.middleware.auth import get_bearer_token, get_current_user
from modules.challenge import SubmittedTokenChallengeHost
from shared.exceptions import PortalError
from shared.models import AuthenticatedUser

from .models import (
    AuthResult,
    FederatedSignInRequest,
    PasswordSignInRequest,
    PendingVerification,
    PhoneCodeRequest,
    PhoneVerifyRequest,
    SessionResponse,
    SignOutResponse,
    SignUpRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sign-up", response_model=SessionResponse, status_code=201)
async def sign_up(
    request: SignUpRequest,
    bridge_factory: BridgeFactory = Depends(get_identity_bridge_factory),
) -> SessionResponse:
    """Create an email/password account and its profile."""
    profile = None
    if request.profile is not None:
        # Role and status are never self-assigned at sign-up
        profile = request.profile.model_copy(update={"role": None, "status": None})
    try:
        result = await bridge_factory().sign_up_with_password(
            request.email, request.password, profile
        )
    except PortalError as e:
        raise http_error(e)
    return SessionResponse.from_result(result)


@router.post("/sign-in", response_model=SessionResponse)
async def sign_in(
    request: PasswordSignInRequest,
    bridge_factory: BridgeFactory = Depends(get_identity_bridge_factory),
) -> SessionResponse:
    try:
        result = await bridge_factory().sign_in_with_password(request.email, request.password)
    except PortalError as e:
        raise http_error(e)
    return SessionResponse.from_result(result)


@router.post("/federated", response_model=SessionResponse)
async def federated_sign_in(
    request: FederatedSignInRequest,
    bridge_factory: BridgeFactory = Depends(get_identity_bridge_factory),
) -> SessionResponse:
    """Exchange a federated ID token (Google by default) for a session."""
    try:
        result = await bridge_factory().sign_in_with_federated_provider(
            request.provider, request.id_token, request.nonce
        )
    except PortalError as e:
        raise http_error(e)
    return SessionResponse.from_result(result)


@router.post("/phone/code", response_model=PendingVerification)
async def request_phone_code(
    request: PhoneCodeRequest,
    host: SubmittedTokenChallengeHost = Depends(get_challenge_host),
    bridge_factory: BridgeFactory = Depends(get_identity_bridge_factory),
) -> PendingVerification:
    """
    Send an SMS code.

    ``challengeToken`` is the token the browser's challenge widget
    produced; it is mounted on the flow's anchor for this request only.
    """
    bridge = bridge_factory(host=host)
    host.mount(bridge.anchor_id, request.challenge_token)
    try:
        flow = bridge.sign_in_with_phone()
        return await flow.request_code(request.phone_number)
    except PortalError as e:
        raise http_error(e)
    finally:
        host.unmount(bridge.anchor_id)


@router.post("/phone/verify", response_model=SessionResponse)
async def verify_phone_code(
    request: PhoneVerifyRequest,
    host: SubmittedTokenChallengeHost = Depends(get_challenge_host),
    bridge_factory: BridgeFactory = Depends(get_identity_bridge_factory),
) -> SessionResponse:
    """Exchange the SMS code for a session."""
    flow = bridge_factory(host=host).sign_in_with_phone()
    try:
        session = await flow.submit_code(request.pending, request.code)
    except PortalError as e:
        raise http_error(e)

    return SessionResponse.from_result(AuthResult(session=session, profile=flow.reconciled))


@router.post("/sign-out", response_model=SignOutResponse)
async def sign_out(
    user: AuthenticatedUser = Depends(get_current_user),
    token: Optional[str] = Depends(get_bearer_token),
    bridge_factory: BridgeFactory = Depends(get_identity_bridge_factory),
) -> SignOutResponse:
    """Mark the caller's profile inactive and end the session."""
    try:
        await bridge_factory(access_token=token).sign_out()
    except PortalError as e:
        raise http_error(e)
    logger.info(f"Sign-out requested by {user.id}", extra={"subject_id": user.id})
    return SignOutResponse()
