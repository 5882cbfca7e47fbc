"""
Challenge module data models.
"""

from datetime import datetime
from enum import Enum
from typing import Callable

from .exceptions import ChallengeExpiredError, ChallengeFailedError


class WidgetSize(str, Enum):
    """How the widget presents itself in its anchor."""

    INVISIBLE = "invisible"
    NORMAL = "normal"


class ChallengeProof:
    """
    Single-use proof that a human-presence check passed.

    The token can be consumed once, and only while the widget that
    produced it is still live.
    """

    def __init__(
        self,
        token: str,
        anchor_id: str,
        widget_id: str,
        issued_at: datetime,
        is_live: Callable[[], bool],
    ):
        self._token = token
        self._is_live = is_live
        self._consumed = False
        self.anchor_id = anchor_id
        self.widget_id = widget_id
        self.issued_at = issued_at

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self) -> str:
        """
        Hand the token over to the code-request step.

        Raises:
            ChallengeFailedError: If the proof was already used
            ChallengeExpiredError: If the owning widget was torn down
        """
        if self._consumed:
            raise ChallengeFailedError(self.anchor_id, "Challenge proof already used")
        if not self._is_live():
            raise ChallengeExpiredError(self.anchor_id)
        self._consumed = True
        return self._token

    def __repr__(self) -> str:
        return (
            f"ChallengeProof(anchor_id={self.anchor_id!r}, "
            f"widget_id={self.widget_id!r}, consumed={self._consumed})"
        )
