"""
Identity session bridge.

Sits between the identity provider and the rest of the backend. Every
session it establishes is reconciled into the profile store before the
call returns, and session transitions are fanned out to subscribers.
"""

import logging
from typing import Any, Optional

from shared.models import IdentitySession
from modules.challenge import ChallengeWidgetManager
from modules.profiles.interfaces import IProfileReconciler
from modules.profiles.models import ProfileFields, ProfileRecord, ProfileStatus

from .interfaces import IIdentityProvider, SessionStateCallback, Unsubscribe
from .models import AuthResult, SessionEvent
from .phone import PhoneVerificationFlow

logger = logging.getLogger(__name__)


class IdentitySessionBridge:
    """
    Identity operations with profile reconciliation attached.

    Identity success does not depend on reconciliation success: a
    failed reconcile is logged and the session is still returned, with
    ``profile`` left empty.
    """

    def __init__(
        self,
        provider: IIdentityProvider,
        reconciler: IProfileReconciler,
        challenges: Optional[ChallengeWidgetManager] = None,
        anchor_id: str = "phone-sign-in",
        otp_expiry_seconds: int = 600,
    ):
        self._provider = provider
        self._reconciler = reconciler
        self._challenges = challenges
        self._anchor_id = anchor_id
        self._otp_expiry_seconds = otp_expiry_seconds
        self._subscribers: list[tuple[object, SessionStateCallback]] = []
        self._detach: Optional[Unsubscribe] = None

    @property
    def anchor_id(self) -> str:
        """Challenge anchor the phone flow acquires its widget on."""
        return self._anchor_id

    # -------------------------------------------------------------------------
    # Sign-up / sign-in
    # -------------------------------------------------------------------------

    async def sign_up_with_password(
        self,
        email: str,
        password: str,
        profile: Optional[ProfileFields] = None,
    ) -> AuthResult:
        session = await self._provider.create_account(email, password)
        logger.info(f"Account created for {session.subject_id}")
        return await self._established(session, profile)

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        session = await self._provider.verify_password(email, password)
        return await self._established(session)

    async def sign_in_with_federated_provider(
        self,
        provider: str,
        id_token: str,
        nonce: Optional[str] = None,
    ) -> AuthResult:
        session = await self._provider.federated_sign_in(provider, id_token, nonce)
        return await self._established(session)

    def sign_in_with_phone(self) -> PhoneVerificationFlow:
        """
        Start a phone sign-in.

        The returned flow reconciles the profile once the code is
        confirmed; its ``reconciled`` attribute then holds the profile.
        """
        if self._challenges is None:
            raise RuntimeError("Phone sign-in needs a challenge widget manager")
        return PhoneVerificationFlow(
            provider=self._provider,
            challenges=self._challenges,
            anchor_id=self._anchor_id,
            on_verified=self._reconcile_active,
            otp_expiry_seconds=self._otp_expiry_seconds,
        )

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    async def sign_out(self) -> None:
        """
        Mark the profile inactive, then end the provider session.

        The status update happens first, while the session is still
        valid. Its failure does not block sign-out.
        """
        session = await self._provider.current_session()
        if session is not None:
            try:
                await self._reconciler.update_status(session.subject_id, ProfileStatus.INACTIVE)
            except Exception:
                logger.warning(
                    f"Could not mark profile {session.subject_id} inactive on sign-out",
                    exc_info=True,
                    extra={"subject_id": session.subject_id},
                )
        await self._provider.sign_out()
        if session is not None:
            logger.info(f"Signed out {session.subject_id}")

    async def refresh_claims(self, force_refresh: bool = True) -> IdentitySession:
        """Fetch the session again, forcing a token refresh by default."""
        return await self._provider.refresh_claims(force_refresh)

    async def current_session(self) -> Optional[IdentitySession]:
        return await self._provider.current_session()

    async def update_profile_fields(
        self,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
        **profile_fields: Any,
    ) -> ProfileRecord:
        """
        Update provider-held display fields, then reconcile the profile.

        Values left as None keep whatever the session already holds.
        Unlike sign-in, a reconciliation failure here is raised.
        """
        session = await self._provider.update_user(display_name, photo_url)
        fields = ProfileFields(
            display_name=display_name if display_name is not None else session.display_name,
            photo_url=photo_url if photo_url is not None else session.photo_url,
            **profile_fields,
        )
        return await self._reconciler.reconcile(session, fields)

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, callback: SessionStateCallback) -> Unsubscribe:
        """
        Deliver every session transition to ``callback``.

        Returns a function that removes the subscription; calling it
        more than once is harmless.
        """
        token = object()
        self._subscribers.append((token, callback))
        if self._detach is None:
            self._detach = self._provider.subscribe_session_state(self._dispatch)

        def unsubscribe() -> None:
            for index, (entry_token, _) in enumerate(self._subscribers):
                if entry_token is token:
                    del self._subscribers[index]
                    break
            else:
                return
            if not self._subscribers and self._detach is not None:
                detach, self._detach = self._detach, None
                detach()

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _dispatch(self, event: SessionEvent, session: Optional[IdentitySession]) -> None:
        for _, callback in list(self._subscribers):
            try:
                callback(event, session)
            except Exception:
                logger.warning(
                    f"Session subscriber failed on {event.value}",
                    exc_info=True,
                    extra={"event": event.value},
                )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _established(
        self,
        session: IdentitySession,
        profile: Optional[ProfileFields] = None,
    ) -> AuthResult:
        record = None
        try:
            record = await self._reconcile_active(session, profile)
        except Exception:
            logger.warning(
                f"Profile reconciliation failed for {session.subject_id}",
                exc_info=True,
                extra={"subject_id": session.subject_id},
            )
        return AuthResult(session=session, profile=record)

    async def _reconcile_active(
        self,
        session: IdentitySession,
        profile: Optional[ProfileFields] = None,
    ) -> ProfileRecord:
        return await self._reconciler.reconcile(session, profile, ProfileStatus.ACTIVE)
