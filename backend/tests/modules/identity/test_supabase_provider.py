"""Tests for the Supabase identity provider adapter."""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from supabase import AuthApiError

from modules.challenge.exceptions import ChallengeFailedError
from modules.challenge.models import ChallengeProof
from modules.identity.exceptions import (
    AccountExistsError,
    ChallengeUnavailableError,
    CodeExpiredError,
    IdentityProviderError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidEmailError,
    NoActiveSessionError,
    RateLimitedError,
    WeakPasswordError,
)
from modules.identity.models import PendingVerification, SessionEvent
from modules.identity.supabase_provider import (
    SupabaseIdentityProvider,
    map_auth_error,
    session_from_supabase,
)


def make_user(**overrides) -> MagicMock:
    user = MagicMock()
    user.id = overrides.get("id", "uid-1")
    user.email = overrides.get("email", "jane@example.com")
    user.phone = overrides.get("phone", "")
    user.user_metadata = overrides.get("user_metadata", {"full_name": "Jane Doe"})
    user.app_metadata = overrides.get("app_metadata", {"provider": "email"})
    return user


def make_response(user=None) -> MagicMock:
    response = MagicMock()
    response.user = user or make_user()
    response.session.access_token = "access"
    response.session.refresh_token = "refresh"
    response.session.expires_at = 1893456000
    response.session.user = response.user
    return response


def make_proof(token: str = "captcha") -> ChallengeProof:
    return ChallengeProof(
        token=token,
        anchor_id="phone-sign-in",
        widget_id="w1",
        issued_at=datetime.now(timezone.utc),
        is_live=lambda: True,
    )


def api_error(code: str, status: int = 400) -> AuthApiError:
    return AuthApiError("provider said no", status, code)


class TestSessionConversion:
    def test_session_from_supabase(self):
        response = make_response(make_user(phone="254712345678", app_metadata={"role": "admin"}))

        session = session_from_supabase(response.session, response.user)

        assert session.subject_id == "uid-1"
        assert session.display_name == "Jane Doe"
        assert session.phone_number == "+254712345678"
        assert session.role == "admin"
        assert session.access_token == "access"

    def test_no_user(self):
        with pytest.raises(NoActiveSessionError):
            session_from_supabase(None, None)


class TestErrorMapping:
    @pytest.mark.parametrize(
        "code,expected",
        [
            ("user_already_exists", AccountExistsError),
            ("email_exists", AccountExistsError),
            ("email_address_invalid", InvalidEmailError),
            ("invalid_credentials", InvalidCredentialsError),
            ("weak_password", WeakPasswordError),
            ("over_sms_send_rate_limit", RateLimitedError),
            ("captcha_failed", ChallengeUnavailableError),
            ("otp_expired", InvalidCodeError),
            ("something_new", IdentityProviderError),
        ],
    )
    def test_codes(self, code, expected):
        assert isinstance(map_auth_error(api_error(code)), expected)

    def test_status_429(self):
        assert isinstance(map_auth_error(api_error("", status=429)), RateLimitedError)

    def test_stale_code_is_expired(self):
        pending = PendingVerification(
            phone_number="+712345678",
            requested_at=datetime.now(timezone.utc) - timedelta(hours=1),
        )
        assert isinstance(map_auth_error(api_error("otp_expired"), pending), CodeExpiredError)

    def test_naive_requested_at_is_utc(self):
        pending = PendingVerification.model_validate(
            {"phoneNumber": "+712345678", "requestedAt": "2026-01-01T08:00:00"}
        )
        assert pending.requested_at == datetime(2026, 1, 1, 8, tzinfo=timezone.utc)

    def test_friendly_messages(self):
        assert map_auth_error(api_error("weak_password")).message == (
            "Password should be at least 6 characters."
        )
        assert map_auth_error(api_error("over_request_rate_limit")).message == (
            "Too many attempts. Try again later."
        )


class TestProviderCalls:
    @pytest.fixture
    def client(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def provider(self, client) -> SupabaseIdentityProvider:
        return SupabaseIdentityProvider(client)

    @pytest.mark.asyncio
    async def test_create_account(self, provider, client):
        client.auth.sign_up.return_value = make_response()

        session = await provider.create_account("jane@example.com", "secret1")

        client.auth.sign_up.assert_called_once_with(
            {"email": "jane@example.com", "password": "secret1"}
        )
        assert session.subject_id == "uid-1"

    @pytest.mark.asyncio
    async def test_verify_password_maps_errors(self, provider, client):
        client.auth.sign_in_with_password.side_effect = api_error("invalid_credentials")

        with pytest.raises(InvalidCredentialsError):
            await provider.verify_password("jane@example.com", "wrong")

    @pytest.mark.asyncio
    async def test_federated_sign_in(self, provider, client):
        client.auth.sign_in_with_id_token.return_value = make_response()

        await provider.federated_sign_in("google", "id-token", nonce="n")

        client.auth.sign_in_with_id_token.assert_called_once_with(
            {"provider": "google", "token": "id-token", "nonce": "n"}
        )

    @pytest.mark.asyncio
    async def test_send_otp_consumes_proof(self, provider, client):
        proof = make_proof()

        pending = await provider.send_otp("+712345678", proof)

        client.auth.sign_in_with_otp.assert_called_once_with(
            {"phone": "+712345678", "options": {"captcha_token": "captcha"}}
        )
        assert proof.consumed
        assert pending.phone_number == "+712345678"

    @pytest.mark.asyncio
    async def test_confirm_otp(self, provider, client):
        client.auth.verify_otp.return_value = make_response(make_user(email="", phone="712345678"))
        pending = PendingVerification(phone_number="+712345678", requested_at=datetime.now(timezone.utc))

        session = await provider.confirm_otp(pending, "123456")

        client.auth.verify_otp.assert_called_once_with(
            {"phone": "+712345678", "token": "123456", "type": "sms"}
        )
        assert session.email is None
        assert session.phone_number == "+712345678"

    @pytest.mark.asyncio
    async def test_wrong_code_without_timezone(self, provider, client):
        """A client-supplied requestedAt without an offset still maps to InvalidCodeError."""
        client.auth.verify_otp.side_effect = api_error("otp_expired", status=403)
        naive = datetime.now(timezone.utc).replace(tzinfo=None)
        pending = PendingVerification.model_validate(
            {"phoneNumber": "+712345678", "requestedAt": naive.isoformat()}
        )

        with pytest.raises(InvalidCodeError):
            await provider.confirm_otp(pending, "000000")

    @pytest.mark.asyncio
    async def test_send_otp_with_spent_proof(self, provider, client):
        proof = make_proof()
        proof.consume()

        with pytest.raises(ChallengeFailedError):
            await provider.send_otp("+712345678", proof)
        client.auth.sign_in_with_otp.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_user(self, provider, client):
        client.auth.get_session.return_value = make_response().session

        await provider.update_user(display_name="Jane")

        client.auth.update_user.assert_called_once_with({"data": {"display_name": "Jane"}})

    @pytest.mark.asyncio
    async def test_current_session_none(self, provider, client):
        client.auth.get_session.return_value = None

        assert await provider.current_session() is None

    @pytest.mark.asyncio
    async def test_sign_out_ignores_missing_session(self, provider, client):
        client.auth.sign_out.side_effect = api_error("session_not_found", status=404)

        await provider.sign_out()

    def test_subscribe_session_state(self, provider, client):
        subscription = MagicMock()
        client.auth.on_auth_state_change.return_value = subscription
        received = []

        unsubscribe = provider.subscribe_session_state(
            lambda event, session: received.append((event, session))
        )
        on_change = client.auth.on_auth_state_change.call_args.args[0]
        on_change("SIGNED_OUT", None)
        on_change("PASSWORD_RECOVERY", None)

        assert received == [(SessionEvent.SIGNED_OUT, None)]
        assert unsubscribe is subscription.unsubscribe
