"""
Phone-number sign-in.

A code can only be requested after a human-presence proof was obtained
on the flow's challenge anchor, and a session only results from a
matching code.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from shared.models import IdentitySession
from modules.challenge import ChallengeError, ChallengeHandle, ChallengeWidgetManager

from .exceptions import (
    ChallengeUnavailableError,
    CodeExpiredError,
    InvalidCodeError,
    InvalidPhoneNumberError,
    VerificationStateError,
)
from .interfaces import IIdentityProvider
from .models import PendingVerification, VerificationState

logger = logging.getLogger(__name__)

OnVerified = Callable[[IdentitySession], Awaitable[Any]]

_SEPARATORS = re.compile(r"[\s\-().]")
_E164 = re.compile(r"^\+[1-9]\d{6,14}$")


def normalize_phone_number(raw: Optional[str]) -> str:
    """
    Normalize a user-typed phone number to E.164.

    >>> normalize_phone_number("(555) 123-4567")
    '+5551234567'

    Raises:
        InvalidPhoneNumberError: If nothing is left or the shape is wrong
    """
    if not raw or not raw.strip():
        raise InvalidPhoneNumberError("", message="Please provide a phone number.")

    phone = _SEPARATORS.sub("", raw)
    if not phone.startswith("+"):
        phone = f"+{phone}"
    if not _E164.match(phone):
        raise InvalidPhoneNumberError(raw)
    return phone


class PhoneVerificationFlow:
    """
    One phone sign-in attempt.

    idle -> awaiting_proof -> awaiting_code -> verified, with failed
    reachable from any step. A failed flow can start over with
    request_code; a verified one cannot be reused.
    """

    def __init__(
        self,
        provider: IIdentityProvider,
        challenges: ChallengeWidgetManager,
        anchor_id: str,
        on_verified: Optional[OnVerified] = None,
        otp_expiry_seconds: int = 600,
    ):
        self._provider = provider
        self._challenges = challenges
        self._anchor_id = anchor_id
        self._on_verified = on_verified
        self._otp_expiry_seconds = otp_expiry_seconds
        self._state = VerificationState.IDLE
        self._pending: Optional[PendingVerification] = None
        self._handle: Optional[ChallengeHandle] = None
        self.reconciled: Any = None

    @property
    def state(self) -> VerificationState:
        return self._state

    @property
    def pending(self) -> Optional[PendingVerification]:
        return self._pending

    async def request_code(self, phone_number: str) -> PendingVerification:
        """
        Obtain a challenge proof and have the provider text a code.

        Raises:
            InvalidPhoneNumberError: If the number is malformed or rejected
            ChallengeUnavailableError: If no valid proof could be obtained
            RateLimitedError: If the provider throttles SMS sending
            VerificationStateError: If the flow is verified or mid-request
        """
        if self._state in (VerificationState.VERIFIED, VerificationState.AWAITING_PROOF):
            raise VerificationStateError(self._state.value, "request a code")

        phone = normalize_phone_number(phone_number)
        self._state = VerificationState.AWAITING_PROOF
        self._pending = None

        try:
            self._handle = await self._challenges.acquire(self._anchor_id)
            proof = await self._handle.get_proof()
            self._pending = await self._provider.send_otp(phone, proof)
        except ChallengeError as e:
            self._state = VerificationState.FAILED
            raise ChallengeUnavailableError(e.message) from e
        except Exception:
            self._state = VerificationState.FAILED
            raise
        finally:
            await self._release_handle()

        self._state = VerificationState.AWAITING_CODE
        logger.info(f"Verification code sent to {_mask(phone)}")
        return self._pending

    async def submit_code(
        self,
        pending: Optional[PendingVerification],
        code: str,
    ) -> IdentitySession:
        """
        Exchange the SMS code for a session.

        Pass ``pending`` when the code request happened in another
        flow instance (the stateless HTTP path); otherwise the flow's
        own pending request is used and must exist.

        Raises:
            InvalidCodeError: If the code is empty or wrong
            CodeExpiredError: If the code is too old
            VerificationStateError: If no code is awaited
        """
        if self._state == VerificationState.VERIFIED:
            raise VerificationStateError(self._state.value, "submit a code")
        if pending is None:
            if self._state != VerificationState.AWAITING_CODE or self._pending is None:
                raise VerificationStateError(self._state.value, "submit a code")
            pending = self._pending

        code = (code or "").strip()
        if not code:
            raise InvalidCodeError("Please enter the verification code.")

        try:
            if self._is_expired(pending):
                raise CodeExpiredError()
            session = await self._provider.confirm_otp(pending, code)
        except Exception:
            self._state = VerificationState.FAILED
            raise

        self._state = VerificationState.VERIFIED
        self._pending = None
        await self._release_handle()

        if self._on_verified is not None:
            try:
                self.reconciled = await self._on_verified(session)
            except Exception:
                logger.warning(
                    "Profile reconciliation after phone sign-in failed",
                    exc_info=True,
                    extra={"subject_id": session.subject_id},
                )
        return session

    async def close(self) -> None:
        """Release any widget still held by the flow."""
        await self._release_handle()

    def _is_expired(self, pending: PendingVerification) -> bool:
        age = (datetime.now(timezone.utc) - pending.requested_at).total_seconds()
        return age > self._otp_expiry_seconds

    async def _release_handle(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            await self._challenges.release(handle)


def _mask(phone: str) -> str:
    return f"{phone[:3]}***{phone[-2:]}"
