"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test
modules: JWT minting, a role gate bound to the test secret, and
in-memory stand-ins for the identity provider and the challenge host.
"""

import pytest
from datetime import datetime, timezone, timedelta
from typing import Optional
from unittest.mock import patch
import jwt  # PyJWT

from api.dependencies import reset_container
from modules.auth.service import SessionRoleGate
from modules.challenge import ChallengeWidgetManager, SubmittedTokenChallengeHost
from modules.challenge.models import ChallengeProof
from modules.identity.bridge import IdentitySessionBridge
from modules.identity.exceptions import (
    InvalidCodeError,
    InvalidCredentialsError,
    AccountExistsError,
    NoActiveSessionError,
)
from modules.identity.models import PendingVerification, SessionEvent
from modules.profiles.repository import InMemoryProfileRepository
from modules.profiles.service import ProfileService
from shared.models import IdentitySession


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    role: Optional[str] = None,
    expired: bool = False,
    phone: str = "",
) -> str:
    """
    Create a test JWT token shaped like a Supabase access token.

    Args:
        user_id: Subject ID to include in the token
        email: Email to include in the token
        role: Portal role placed in app_metadata, omitted when None
        expired: If True, creates an expired token
        phone: Phone number claim

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "phone": phone,
        "aud": "authenticated",
        "role": "authenticated",
        "app_metadata": {"provider": "email", "role": role} if role else {"provider": "email"},
        "user_metadata": {"email_verified": True},
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset the service container before and after each test."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
def role_gate() -> SessionRoleGate:
    """A role gate that verifies tokens signed with the test secret."""
    with patch("modules.auth.service.get_settings") as mock_settings:
        mock_settings.return_value.supabase_jwt_secret = TEST_JWT_SECRET
        mock_settings.return_value.supabase_jwt_audience = "authenticated"
        return SessionRoleGate()


@pytest.fixture
def user_headers() -> dict[str, str]:
    """Authorization headers for a regular user."""
    return {"Authorization": f"Bearer {create_test_token()}"}


@pytest.fixture
def make_headers():
    """Build authorization headers for arbitrary token claims."""
    def build(**claims) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_test_token(**claims)}"}
    return build


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Authorization headers for an admin."""
    token = create_test_token(user_id="admin-1", email="admin@example.com", role="admin")
    return {"Authorization": f"Bearer {token}"}


# -----------------------------------------------------------------------------
# Fakes
# -----------------------------------------------------------------------------


class FakeIdentityProvider:
    """
    In-memory identity provider.

    Accounts are keyed by email; phone codes are accepted when they equal
    ``valid_code``. Session transitions are emitted to the attached
    listener the way the Supabase client emits auth state changes.
    """

    def __init__(self, valid_code: str = "123456"):
        self.valid_code = valid_code
        self.accounts: dict[str, tuple[str, IdentitySession]] = {}
        self.session: Optional[IdentitySession] = None
        self.sent_codes: list[tuple[str, str]] = []
        self.signed_out = 0
        self.listeners: list = []
        self.detached = 0

    def add_account(self, email: str, password: str, subject_id: str, **fields) -> IdentitySession:
        session = IdentitySession(subject_id=subject_id, email=email, access_token=f"token-{subject_id}", **fields)
        self.accounts[email] = (password, session)
        return session

    def _emit(self, event: SessionEvent, session: Optional[IdentitySession]) -> None:
        for listener in list(self.listeners):
            listener(event, session)

    def _establish(self, session: IdentitySession) -> IdentitySession:
        self.session = session
        self._emit(SessionEvent.SIGNED_IN, session)
        return session

    async def create_account(self, email: str, password: str) -> IdentitySession:
        if email in self.accounts:
            raise AccountExistsError()
        subject_id = f"uid-{len(self.accounts) + 1}"
        return self._establish(self.add_account(email, password, subject_id))

    async def verify_password(self, email: str, password: str) -> IdentitySession:
        stored = self.accounts.get(email)
        if stored is None or stored[0] != password:
            raise InvalidCredentialsError()
        return self._establish(stored[1])

    async def federated_sign_in(self, provider: str, id_token: str, nonce: Optional[str] = None) -> IdentitySession:
        if not id_token.startswith("google:"):
            raise InvalidCredentialsError("Google sign-in failed.")
        email = id_token.split(":", 1)[1]
        session = IdentitySession(
            subject_id=f"google-{email}",
            email=email,
            display_name="Google User",
            access_token="google-access",
        )
        return self._establish(session)

    async def send_otp(self, phone_number: str, proof: ChallengeProof) -> PendingVerification:
        token = proof.consume()
        self.sent_codes.append((phone_number, token))
        return PendingVerification(phone_number=phone_number, requested_at=datetime.now(timezone.utc))

    async def confirm_otp(self, pending: PendingVerification, code: str) -> IdentitySession:
        if code != self.valid_code:
            raise InvalidCodeError()
        session = IdentitySession(
            subject_id=f"phone-{pending.phone_number.lstrip('+')}",
            phone_number=pending.phone_number,
            access_token="phone-access",
        )
        return self._establish(session)

    async def refresh_claims(self, force_refresh: bool = True) -> IdentitySession:
        if self.session is None:
            raise NoActiveSessionError()
        if force_refresh:
            self._emit(SessionEvent.TOKEN_REFRESHED, self.session)
        return self.session

    async def update_user(self, display_name: Optional[str] = None, photo_url: Optional[str] = None) -> IdentitySession:
        if self.session is None:
            raise NoActiveSessionError()
        update = {}
        if display_name is not None:
            update["display_name"] = display_name
        if photo_url is not None:
            update["photo_url"] = photo_url
        self.session = self.session.model_copy(update=update)
        self._emit(SessionEvent.USER_UPDATED, self.session)
        return self.session

    async def sign_out(self) -> None:
        self.signed_out += 1
        self.session = None
        self._emit(SessionEvent.SIGNED_OUT, None)

    def subscribe_session_state(self, callback):
        self.listeners.append(callback)

        def detach() -> None:
            self.detached += 1
            if callback in self.listeners:
                self.listeners.remove(callback)

        return detach

    async def current_session(self) -> Optional[IdentitySession]:
        return self.session


class FailingClaimsPublisher:
    """Claims side-channel that always fails."""

    def __init__(self):
        self.calls = 0

    async def set_custom_claims(self, subject_id: str, claims: dict) -> None:
        self.calls += 1
        raise RuntimeError("identity provider unreachable")


class RecordingClaimsPublisher:
    """Claims side-channel that records every call."""

    def __init__(self):
        self.calls: list[tuple[str, dict]] = []

    async def set_custom_claims(self, subject_id: str, claims: dict) -> None:
        self.calls.append((subject_id, claims))


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def profile_store() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def claims_publisher() -> RecordingClaimsPublisher:
    return RecordingClaimsPublisher()


@pytest.fixture
def profile_service(profile_store, claims_publisher) -> ProfileService:
    return ProfileService(
        store=profile_store,
        claims=claims_publisher,
        placeholder_domain="phone.placeholder.invalid",
    )


@pytest.fixture
def challenge_host() -> SubmittedTokenChallengeHost:
    host = SubmittedTokenChallengeHost()
    host.mount("phone-sign-in", "captcha-token")
    return host


@pytest.fixture
def bridge(identity_provider, profile_service, challenge_host) -> IdentitySessionBridge:
    return IdentitySessionBridge(
        provider=identity_provider,
        reconciler=profile_service,
        challenges=ChallengeWidgetManager(challenge_host),
        anchor_id="phone-sign-in",
    )


@pytest.fixture
def failing_claims() -> FailingClaimsPublisher:
    return FailingClaimsPublisher()
