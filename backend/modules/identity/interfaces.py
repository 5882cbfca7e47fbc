"""
Identity module interfaces.

The bridge depends on IIdentityProvider rather than on the Supabase
client, so flows can be exercised with an in-memory provider.
"""

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from shared.models import IdentitySession
from modules.challenge.models import ChallengeProof

from .models import PendingVerification, SessionEvent

SessionStateCallback = Callable[[SessionEvent, Optional[IdentitySession]], Any]
Unsubscribe = Callable[[], None]


@runtime_checkable
class IIdentityProvider(Protocol):
    """
    Interface to the external identity provider.

    Implementations translate provider-specific failures into identity
    exceptions (InvalidCredentialsError, RateLimitedError, ...).
    """

    async def create_account(self, email: str, password: str) -> IdentitySession:
        """
        Register a new email/password account.

        Raises:
            AccountExistsError: If the email is already registered
            InvalidEmailError: If the provider rejects the address
            WeakPasswordError: If the password is too weak
        """
        ...

    async def verify_password(self, email: str, password: str) -> IdentitySession:
        """
        Sign in with email and password.

        Raises:
            InvalidCredentialsError: If the credentials are wrong
            RateLimitedError: After too many attempts
        """
        ...

    async def federated_sign_in(
        self,
        provider: str,
        id_token: str,
        nonce: Optional[str] = None,
    ) -> IdentitySession:
        """Exchange a federated ID token (e.g. Google) for a session."""
        ...

    async def send_otp(
        self,
        phone_number: str,
        proof: ChallengeProof,
    ) -> PendingVerification:
        """
        Send an SMS code to a normalized phone number.

        The proof is consumed by this call.

        Raises:
            InvalidPhoneNumberError: If the provider rejects the number
            RateLimitedError: If SMS sending is throttled
            ChallengeUnavailableError: If the provider rejects the proof
        """
        ...

    async def confirm_otp(
        self,
        pending: PendingVerification,
        code: str,
    ) -> IdentitySession:
        """
        Exchange an SMS code for a session.

        Raises:
            InvalidCodeError: If the code does not match
            CodeExpiredError: If the code has expired
        """
        ...

    async def refresh_claims(self, force_refresh: bool = True) -> IdentitySession:
        """Return the current session, refreshing the token when asked."""
        ...

    async def update_user(
        self,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> IdentitySession:
        """Update provider-held display fields of the signed-in user."""
        ...

    async def sign_out(self) -> None:
        """End the provider session."""
        ...

    def subscribe_session_state(self, callback: SessionStateCallback) -> Unsubscribe:
        """Attach to the provider's session-state stream."""
        ...

    async def current_session(self) -> Optional[IdentitySession]:
        """Return the live session, or None when signed out."""
        ...
