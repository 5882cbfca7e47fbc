"""
Challenge host for tokens solved in the browser.

Over HTTP the widget runs client-side and the browser posts the token it
produced. The route mounts that token on an anchor; the widget built on
the anchor yields it exactly once.
"""

import uuid
from typing import Optional

from .exceptions import ChallengeExpiredError
from .models import WidgetSize


class SubmittedTokenWidget:
    """Widget whose challenge was already solved by the client."""

    def __init__(self, anchor_id: str, token: Optional[str], size: WidgetSize):
        self.anchor_id = anchor_id
        self.size = size
        self._token = token
        self._widget_id = ""

    async def render(self) -> str:
        self._widget_id = f"{self.anchor_id}:{uuid.uuid4().hex[:12]}"
        return self._widget_id

    async def execute(self) -> str:
        token, self._token = self._token, None
        if not token:
            raise ChallengeExpiredError(self.anchor_id)
        return token

    async def clear(self) -> None:
        self._token = None


class SubmittedTokenChallengeHost:
    """Tracks which anchors are mounted and the token submitted on each."""

    def __init__(self) -> None:
        self._anchors: dict[str, str] = {}

    def mount(self, anchor_id: str, token: str) -> None:
        self._anchors[anchor_id] = token

    def unmount(self, anchor_id: str) -> None:
        self._anchors.pop(anchor_id, None)

    def anchor_exists(self, anchor_id: str) -> bool:
        return anchor_id in self._anchors

    def create_widget(self, anchor_id: str, size: WidgetSize) -> SubmittedTokenWidget:
        return SubmittedTokenWidget(anchor_id, self._anchors.get(anchor_id), size)
