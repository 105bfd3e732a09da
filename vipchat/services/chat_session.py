"""
Chat Session

Client-side chat state for one signed-in UI. Everything it needs is passed in
(identity and log); nothing is global. Persistence only happens through an
explicit send(), never as a side effect of changing state.

Lifecycle:
    session = ChatSession(log, identity, on_update=render)
    session.open(peer_id="u2")
    await session.send("hi", to="u2")
    session.close()
"""

import logging
from typing import Optional

from vipchat.core.addressing import BROADCAST, Destination
from vipchat.core.projector import MessageStreamProjector, UpdateListener
from vipchat.core.router import MessageRouter
from vipchat.integrations.identity import IdentityProvider
from vipchat.integrations.log.base import MessageLog
from vipchat.models.message import SendReceipt, StreamViews

logger = logging.getLogger(__name__)


class ChatSession:
    """Router and projector sharing one identity and one log."""

    def __init__(
        self,
        log: MessageLog,
        identity: IdentityProvider,
        on_update: Optional[UpdateListener] = None,
    ):
        self.log = log
        self.identity = identity
        self.on_update = on_update
        self.router = MessageRouter(log, identity)
        self._projector: Optional[MessageStreamProjector] = None

    @property
    def is_open(self) -> bool:
        return self._projector is not None and self._projector.active

    @property
    def projector(self) -> Optional[MessageStreamProjector]:
        return self._projector

    def open(self, peer_id: Optional[str] = None) -> StreamViews:
        """Start streaming; returns the views right after the first delivery."""
        if self.is_open:
            self._projector.focus(peer_id)
        else:
            self._projector = MessageStreamProjector(
                self.log, self.identity, peer_id=peer_id, on_update=self.on_update
            ).start()
        return self._projector.views()

    def focus(self, peer_id: Optional[str]) -> None:
        if not self.is_open:
            raise RuntimeError("Chat session is not open")
        self._projector.focus(peer_id)

    def views(self) -> Optional[StreamViews]:
        return self._projector.views() if self._projector else None

    async def send(
        self,
        text: str = "",
        to: Destination = BROADCAST,
        attachment_url: Optional[str] = None,
    ) -> SendReceipt:
        return await self.router.send(to, text, attachment_url)

    def close(self) -> None:
        """Tear down the stream; in-flight sends still complete."""
        if self._projector is not None:
            self._projector.stop()
            logger.debug("Chat session closed")
