"""
Supabase Auth implementation of the identity provider.

Each instance wraps one anon-key client, which holds at most one user
session. Create one per end-user interaction.
"""

import logging
from datetime import datetime, timezone
from typing import Any, NoReturn, Optional

from supabase import AuthApiError, AuthError, Client

from shared.models import IdentitySession
from modules.challenge.models import ChallengeProof

from .exceptions import (
    AccountExistsError,
    ChallengeUnavailableError,
    CodeExpiredError,
    IdentityProviderError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidEmailError,
    InvalidPhoneNumberError,
    NoActiveSessionError,
    RateLimitedError,
    WeakPasswordError,
)
from .interfaces import SessionStateCallback, Unsubscribe
from .models import PendingVerification, SessionEvent

logger = logging.getLogger(__name__)

_EVENT_MAP = {
    "SIGNED_IN": SessionEvent.SIGNED_IN,
    "SIGNED_OUT": SessionEvent.SIGNED_OUT,
    "TOKEN_REFRESHED": SessionEvent.TOKEN_REFRESHED,
    "USER_UPDATED": SessionEvent.USER_UPDATED,
}


def session_from_supabase(session: Any, user: Any = None) -> IdentitySession:
    """Build an IdentitySession from a gotrue session and/or user."""
    user = user or getattr(session, "user", None)
    if user is None:
        raise NoActiveSessionError()

    metadata = user.user_metadata or {}
    app_metadata = user.app_metadata or {}
    phone = user.phone or None
    if phone and not phone.startswith("+"):
        phone = f"+{phone}"

    return IdentitySession(
        subject_id=user.id,
        email=user.email or None,
        phone_number=phone,
        display_name=metadata.get("display_name") or metadata.get("full_name") or metadata.get("name"),
        photo_url=metadata.get("photo_url") or metadata.get("avatar_url"),
        role=app_metadata.get("role") or "user",
        access_token=getattr(session, "access_token", None),
        refresh_token=getattr(session, "refresh_token", None),
        expires_at=getattr(session, "expires_at", None),
    )


def map_auth_error(error: AuthError, pending: Optional[PendingVerification] = None,
                   otp_expiry_seconds: int = 600) -> Exception:
    """Translate a Supabase auth error into an identity exception."""
    code = getattr(error, "code", None) or ""
    status = getattr(error, "status", None)

    if code in ("user_already_exists", "email_exists"):
        return AccountExistsError()
    if code in ("email_address_invalid", "email_address_not_authorized", "validation_failed"):
        return InvalidEmailError()
    if code in ("invalid_credentials", "user_not_found", "bad_jwt"):
        return InvalidCredentialsError()
    if code == "weak_password":
        return WeakPasswordError()
    if code.startswith("over_") or status == 429:
        return RateLimitedError()
    if code == "otp_expired":
        # Supabase reports both wrong and stale codes as otp_expired
        if pending is not None:
            age = (datetime.now(timezone.utc) - pending.requested_at).total_seconds()
            if age > otp_expiry_seconds:
                return CodeExpiredError()
        return InvalidCodeError()
    if code == "captcha_failed":
        return ChallengeUnavailableError(error.message)
    if code in ("phone_not_confirmed", "sms_send_failed", "phone_provider_disabled"):
        return InvalidPhoneNumberError(message="Phone number is invalid.")
    if code == "session_not_found":
        return NoActiveSessionError()
    return IdentityProviderError(provider_code=code or None)


class SupabaseIdentityProvider:
    """Identity provider backed by a Supabase anon-key client."""

    def __init__(self, client: Client, otp_expiry_seconds: int = 600) -> None:
        self._client = client
        self._otp_expiry_seconds = otp_expiry_seconds

    def _raise(self, error: AuthError, pending: Optional[PendingVerification] = None) -> NoReturn:
        mapped = map_auth_error(error, pending, self._otp_expiry_seconds)
        if isinstance(mapped, IdentityProviderError):
            logger.error(f"Unmapped identity provider error: {error.message}")
        raise mapped from error

    async def create_account(self, email: str, password: str) -> IdentitySession:
        try:
            response = self._client.auth.sign_up({"email": email, "password": password})
        except AuthError as e:
            self._raise(e)
        if response.user is None:
            raise IdentityProviderError("Sign-up did not return a user.")
        return session_from_supabase(response.session, response.user)

    async def verify_password(self, email: str, password: str) -> IdentitySession:
        try:
            response = self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            self._raise(e)
        return session_from_supabase(response.session, response.user)

    async def federated_sign_in(
        self,
        provider: str,
        id_token: str,
        nonce: Optional[str] = None,
    ) -> IdentitySession:
        credentials: dict[str, Any] = {"provider": provider, "token": id_token}
        if nonce:
            credentials["nonce"] = nonce
        try:
            response = self._client.auth.sign_in_with_id_token(credentials)
        except AuthError as e:
            self._raise(e)
        return session_from_supabase(response.session, response.user)

    async def send_otp(
        self,
        phone_number: str,
        proof: ChallengeProof,
    ) -> PendingVerification:
        captcha_token = proof.consume()
        try:
            self._client.auth.sign_in_with_otp(
                {"phone": phone_number, "options": {"captcha_token": captcha_token}}
            )
        except AuthError as e:
            self._raise(e)
        return PendingVerification(
            phone_number=phone_number,
            requested_at=datetime.now(timezone.utc),
        )

    async def confirm_otp(
        self,
        pending: PendingVerification,
        code: str,
    ) -> IdentitySession:
        try:
            response = self._client.auth.verify_otp(
                {"phone": pending.phone_number, "token": code, "type": "sms"}
            )
        except AuthError as e:
            self._raise(e, pending)
        return session_from_supabase(response.session, response.user)

    async def refresh_claims(self, force_refresh: bool = True) -> IdentitySession:
        try:
            if force_refresh:
                response = self._client.auth.refresh_session()
                return session_from_supabase(response.session, response.user)
            session = self._client.auth.get_session()
        except AuthError as e:
            self._raise(e)
        if session is None:
            raise NoActiveSessionError()
        return session_from_supabase(session)

    async def update_user(
        self,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> IdentitySession:
        data = {}
        if display_name is not None:
            data["display_name"] = display_name
        if photo_url is not None:
            data["photo_url"] = photo_url
        try:
            if data:
                self._client.auth.update_user({"data": data})
            session = self._client.auth.get_session()
        except AuthError as e:
            self._raise(e)
        if session is None:
            raise NoActiveSessionError()
        return session_from_supabase(session)

    async def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except AuthApiError as e:
            # The session is already gone on the server side
            if e.code != "session_not_found":
                self._raise(e)

    def subscribe_session_state(self, callback: SessionStateCallback) -> Unsubscribe:
        def on_change(event: str, session: Any) -> None:
            mapped = _EVENT_MAP.get(str(getattr(event, "value", event)))
            if mapped is None:
                return
            identity = session_from_supabase(session) if session is not None else None
            callback(mapped, identity)

        subscription = self._client.auth.on_auth_state_change(on_change)
        return subscription.unsubscribe

    async def current_session(self) -> Optional[IdentitySession]:
        try:
            session = self._client.auth.get_session()
        except AuthError as e:
            self._raise(e)
        if session is None:
            return None
        return session_from_supabase(session)
