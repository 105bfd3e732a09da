"""
Chat Service

Server-side entry point used by the HTTP routes. Holds the shared message
log and access policy; every call receives the caller's identity explicitly,
so nothing about a previous caller survives between requests.

Use cases:
1. Send a message (broadcast or direct)
2. Read the broadcast, a direct or any permitted channel
3. List the caller's conversations (or every conversation for moderators)
4. Open a live projector for streaming
"""

import logging
from functools import lru_cache
from typing import List, Optional

from vipchat.config import get_settings
from vipchat.core.access import AccessPolicy
from vipchat.core.addressing import Destination, parse_channel
from vipchat.core.errors import AccessDeniedError, UnauthenticatedError
from vipchat.core.projector import (
    MessageStreamProjector,
    UpdateListener,
    list_all_conversations,
    list_conversations,
    project_any,
    project_broadcast,
    project_direct,
)
from vipchat.core.router import MessageRouter
from vipchat.integrations.identity import StaticIdentity
from vipchat.integrations.log import InMemoryMessageLog, MessageLog
from vipchat.models.message import ChannelView, ConversationSummary, SendReceipt
from vipchat.models.participant import ParticipantProfile

logger = logging.getLogger(__name__)


class ChatService:
    """Chat operations on behalf of an explicitly given participant."""

    def __init__(self, log: MessageLog, policy: Optional[AccessPolicy] = None):
        self.log = log
        self.policy = policy or AccessPolicy()

    def _snapshot(self):
        # One-shot read through the subscription interface
        captured = []
        unsubscribe = self.log.subscribe(captured.append)
        unsubscribe()
        return captured[-1] if captured else ()

    async def send(
        self,
        sender: Optional[ParticipantProfile],
        destination: Destination,
        text: str = "",
        attachment_url: Optional[str] = None,
    ) -> SendReceipt:
        router = MessageRouter(self.log, StaticIdentity(sender))
        return await router.send(destination, text, attachment_url)

    def community_view(self, viewer: Optional[ParticipantProfile]) -> ChannelView:
        return project_broadcast(self._snapshot(), viewer.id if viewer else None)

    def direct_view(self, viewer: Optional[ParticipantProfile], peer_id: str) -> ChannelView:
        return project_direct(self._snapshot(), viewer.id if viewer else None, peer_id)

    def channel_view(self, viewer: Optional[ParticipantProfile], channel_id: str) -> ChannelView:
        """Any channel the viewer may read (members, or moderators for direct channels)."""
        # Reject malformed ids before the policy check
        members = parse_channel(channel_id)
        if members is not None and viewer is None:
            raise UnauthenticatedError("Sign in to read direct messages")
        self.policy.require_read(viewer, channel_id)
        return project_any(self._snapshot(), viewer.id if viewer else None, channel_id)

    def conversations(
        self, viewer: Optional[ParticipantProfile], include_all: bool = False
    ) -> List[ConversationSummary]:
        if viewer is None:
            raise UnauthenticatedError("Sign in to list conversations")
        if include_all:
            if not self.policy.is_moderator(viewer):
                raise AccessDeniedError("Only moderators can list every conversation")
            return list_all_conversations(self._snapshot(), viewer.id)
        return list_conversations(self._snapshot(), viewer.id)

    def open_stream(
        self,
        viewer: Optional[ParticipantProfile],
        peer_id: Optional[str] = None,
        on_update: Optional[UpdateListener] = None,
    ) -> MessageStreamProjector:
        """Started projector for ``viewer``; the caller must stop() it."""
        projector = MessageStreamProjector(
            self.log, StaticIdentity(viewer), peer_id=peer_id, on_update=on_update
        )
        return projector.start()


@lru_cache
def get_chat_service() -> ChatService:
    """Process-wide service backed by the in-memory log."""
    settings = get_settings()
    logger.info(
        f"Creating chat service with {len(settings.moderator_ids)} configured moderators"
    )
    return ChatService(InMemoryMessageLog(), AccessPolicy(settings.moderator_ids))
