"""
Challenge module exceptions.
"""

from shared.exceptions import PortalError


class ChallengeError(PortalError):
    """Base exception for human-presence challenge errors."""

    pass


class AnchorNotFoundError(ChallengeError):
    """
    Raised when the anchor a widget should bind to is not mounted.

    Callers own the retry: the manager never polls for the anchor.
    """

    def __init__(self, anchor_id: str):
        super().__init__(
            f"Challenge anchor not found: {anchor_id}",
            code="ANCHOR_NOT_FOUND",
            details={"anchor_id": anchor_id},
        )


class WidgetBusyError(ChallengeError):
    """Raised when a stale widget on the anchor could not be torn down."""

    def __init__(self, anchor_id: str, reason: str = ""):
        super().__init__(
            f"Challenge widget on {anchor_id} could not be cleared",
            code="WIDGET_BUSY",
            details={"anchor_id": anchor_id, "reason": reason},
        )


class ChallengeExpiredError(ChallengeError):
    """Raised when the underlying challenge timed out before yielding a proof."""

    def __init__(self, anchor_id: str):
        super().__init__(
            "The verification challenge expired. Please solve it again.",
            code="CHALLENGE_EXPIRED",
            details={"anchor_id": anchor_id},
        )


class ChallengeFailedError(ChallengeError):
    """Raised for any verifier-reported error or misuse of a handle."""

    def __init__(self, anchor_id: str, reason: str):
        super().__init__(
            f"Verification challenge failed: {reason}",
            code="CHALLENGE_FAILED",
            details={"anchor_id": anchor_id, "reason": reason},
        )
