"""
Challenge widget lifecycle.

Owns the registry of live widgets keyed by anchor ID and guarantees at
most one live widget per anchor.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from .exceptions import (
    AnchorNotFoundError,
    ChallengeError,
    ChallengeFailedError,
    WidgetBusyError,
)
from .interfaces import IChallengeHost, IChallengeWidget
from .models import ChallengeProof, WidgetSize

logger = logging.getLogger(__name__)


class ChallengeHandle:
    """A live widget on one anchor, as handed out by the manager."""

    def __init__(self, anchor_id: str, widget: IChallengeWidget, widget_id: str):
        self.anchor_id = anchor_id
        self.widget_id = widget_id
        self._widget = widget
        self._proof_issued = False
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    async def get_proof(self) -> ChallengeProof:
        """
        Run the challenge once and return its proof.

        Raises:
            ChallengeExpiredError: If the widget's challenge timed out
            ChallengeFailedError: For verifier errors, a released handle,
                or a second call on the same handle
        """
        if self._released:
            raise ChallengeFailedError(self.anchor_id, "Challenge widget was released")
        if self._proof_issued:
            raise ChallengeFailedError(self.anchor_id, "Challenge proof already issued")
        self._proof_issued = True

        try:
            token = await self._widget.execute()
        except ChallengeError:
            raise
        except Exception as e:
            raise ChallengeFailedError(self.anchor_id, str(e) or type(e).__name__) from e

        if not token:
            raise ChallengeFailedError(self.anchor_id, "Verifier returned an empty token")

        return ChallengeProof(
            token=token,
            anchor_id=self.anchor_id,
            widget_id=self.widget_id,
            issued_at=datetime.now(timezone.utc),
            is_live=lambda: not self._released,
        )

    async def _teardown(self) -> None:
        if self._released:
            return
        await self._widget.clear()
        self._released = True

    def _invalidate(self) -> None:
        self._released = True


class ChallengeWidgetManager:
    """
    Creates, tracks and tears down challenge widgets.

    One manager serves one host. The registry is instance state, so two
    managers never share widgets.
    """

    def __init__(self, host: IChallengeHost, size: WidgetSize = WidgetSize.INVISIBLE):
        self._host = host
        self._size = size
        self._handles: dict[str, ChallengeHandle] = {}
        self._lock = asyncio.Lock()

    def live_handle(self, anchor_id: str) -> Optional[ChallengeHandle]:
        """Return the live handle on an anchor, if any."""
        return self._handles.get(anchor_id)

    async def acquire(self, anchor_id: str) -> ChallengeHandle:
        """
        Bind a fresh widget to the anchor, replacing any live one.

        Raises:
            AnchorNotFoundError: If the anchor is not mounted
            WidgetBusyError: If the previous widget could not be torn down
            ChallengeFailedError: If the new widget failed to render
        """
        async with self._lock:
            if not self._host.anchor_exists(anchor_id):
                raise AnchorNotFoundError(anchor_id)

            stale = self._handles.get(anchor_id)
            if stale is not None:
                try:
                    await stale._teardown()
                except Exception as e:
                    raise WidgetBusyError(anchor_id, str(e)) from e
                del self._handles[anchor_id]
                logger.debug(f"Cleared stale challenge widget {stale.widget_id}")

            widget = self._host.create_widget(anchor_id, self._size)
            try:
                widget_id = await widget.render()
            except Exception as e:
                raise ChallengeFailedError(anchor_id, f"render failed: {e}") from e

            handle = ChallengeHandle(anchor_id, widget, widget_id)
            self._handles[anchor_id] = handle
            return handle

    async def release(self, handle: ChallengeHandle) -> None:
        """
        Tear the handle's widget down. Safe to call more than once.

        A teardown error still invalidates the handle; it is logged
        rather than raised.
        """
        async with self._lock:
            if self._handles.get(handle.anchor_id) is handle:
                del self._handles[handle.anchor_id]
            if handle.released:
                return
            try:
                await handle._teardown()
            except Exception:
                logger.warning(
                    f"Failed to clear challenge widget {handle.widget_id}",
                    exc_info=True,
                    extra={"anchor_id": handle.anchor_id},
                )
                handle._invalidate()

    async def release_all(self) -> None:
        """Tear down every live widget."""
        for handle in list(self._handles.values()):
            await self.release(handle)
