"""
Channel Access Policy

Who may read which channel. Layered on top of addressing:

- The broadcast channel is readable by everyone
- A direct channel is readable by its two members
- Moderators (configured ids or admin role) may read any direct channel
"""

import logging
from typing import Iterable, Optional

from vipchat.core.addressing import is_member
from vipchat.core.errors import AccessDeniedError
from vipchat.models.participant import ParticipantProfile

logger = logging.getLogger(__name__)


class AccessPolicy:
    """Read permissions for channels."""

    def __init__(self, moderator_ids: Iterable[str] = ()):
        self.moderator_ids = frozenset(moderator_ids)

    def is_moderator(self, viewer: Optional[ParticipantProfile]) -> bool:
        if viewer is None:
            return False
        return viewer.is_admin or viewer.id in self.moderator_ids

    def can_read(self, viewer: Optional[ParticipantProfile], channel_id: str) -> bool:
        if is_member(channel_id, viewer.id if viewer else None):
            return True
        return self.is_moderator(viewer)

    def require_read(self, viewer: Optional[ParticipantProfile], channel_id: str) -> None:
        if not self.can_read(viewer, channel_id):
            viewer_id = viewer.id if viewer else None
            logger.info(f"Denied read of channel {channel_id} to {viewer_id}")
            raise AccessDeniedError(f"Not allowed to read channel {channel_id}")
