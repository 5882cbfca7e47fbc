"""
Challenge module interfaces.

The anti-automation algorithm itself is opaque to this system. A host
knows which anchors are mounted and how to build a widget on one; a
widget renders, runs its challenge and yields a proof token.
"""

from typing import Protocol, runtime_checkable

from .models import WidgetSize


@runtime_checkable
class IChallengeWidget(Protocol):
    """A challenge widget bound to one anchor."""

    async def render(self) -> str:
        """
        Render the widget into its anchor.

        Returns:
            Widget ID assigned by the host
        """
        ...

    async def execute(self) -> str:
        """
        Run the challenge and return the proof token.

        Raises:
            ChallengeExpiredError: If the challenge timed out
            Exception: Any verifier-reported error
        """
        ...

    async def clear(self) -> None:
        """Tear the widget down and detach it from its anchor."""
        ...


@runtime_checkable
class IChallengeHost(Protocol):
    """The environment widgets are mounted in."""

    def anchor_exists(self, anchor_id: str) -> bool:
        """Return whether the anchor is mounted right now."""
        ...

    def create_widget(self, anchor_id: str, size: WidgetSize) -> IChallengeWidget:
        """Build (but do not render) a widget on the given anchor."""
        ...
