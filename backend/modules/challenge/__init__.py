"""
Human-presence challenge module.

Manages the lifecycle of challenge widgets bound to named anchors.
A proof from a widget is the prerequisite for sending an SMS code.

Public API:
- ChallengeWidgetManager / ChallengeHandle: acquire, prove, release
- IChallengeHost / IChallengeWidget: the environment boundary
- SubmittedTokenChallengeHost: host for browser-solved tokens
- Challenge exceptions
"""

from .interfaces import IChallengeHost, IChallengeWidget
from .models import ChallengeProof, WidgetSize
from .manager import ChallengeHandle, ChallengeWidgetManager
from .host import SubmittedTokenChallengeHost
from .exceptions import (
    ChallengeError,
    AnchorNotFoundError,
    WidgetBusyError,
    ChallengeExpiredError,
    ChallengeFailedError,
)

__all__ = [
    # Interfaces
    "IChallengeHost",
    "IChallengeWidget",
    # Models
    "ChallengeProof",
    "WidgetSize",
    # Implementation
    "ChallengeHandle",
    "ChallengeWidgetManager",
    "SubmittedTokenChallengeHost",
    # Exceptions
    "ChallengeError",
    "AnchorNotFoundError",
    "WidgetBusyError",
    "ChallengeExpiredError",
    "ChallengeFailedError",
]
