"""
Message Models

One fixed record shape for every message in the log, regardless of channel.

- MessageRecord: what the router submits (camelCase on the wire)
- StoredMessage: the record plus log-assigned id, createdAt and sequence
- ProjectedMessage: a stored message as seen by one viewer (adds isMine)
- ChannelView: an ordered list of projected messages for one channel

``isMine`` is computed at projection time and never persisted.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    """camelCase aliases on the wire, snake_case attributes in Python."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class MessageRecord(_WireModel):
    """Record submitted to the log by the message router."""

    sender_id: str = Field(..., alias="senderId")
    channel_id: str = Field(..., alias="channelId")
    text: str = ""
    attachment_url: Optional[str] = Field(None, alias="attachmentUrl")

    # Display data copied from the sender profile at send time
    sender_name: Optional[str] = Field(None, alias="senderName")
    sender_avatar: Optional[str] = Field(None, alias="senderAvatar")

    # Submission order hint; the log's createdAt/sequence is authoritative
    client_seq: Optional[int] = Field(None, alias="clientSeq")

    def to_document(self) -> Dict[str, Any]:
        """Persisted form: camelCase keys, absent optional fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class StoredMessage(MessageRecord):
    """A record after the log accepted it."""

    id: str
    created_at: datetime = Field(..., alias="createdAt")
    sequence: int = 0


class ProjectedMessage(StoredMessage):
    """A stored message annotated for a specific viewer."""

    is_mine: bool = Field(False, alias="isMine")

    @classmethod
    def from_stored(
        cls, message: StoredMessage, viewer_id: Optional[str]
    ) -> "ProjectedMessage":
        data = message.model_dump(exclude={"is_mine"})
        return cls(**data, is_mine=viewer_id is not None and message.sender_id == viewer_id)


class AppendResult(_WireModel):
    """Acknowledgement returned by the log for a successful append."""

    id: str
    created_at: datetime = Field(..., alias="createdAt")
    sequence: int = 0


class SendReceipt(_WireModel):
    """Result of a successful send: what was submitted and where it landed."""

    channel_id: str = Field(..., alias="channelId")
    record: MessageRecord
    message_id: str = Field(..., alias="messageId")
    created_at: datetime = Field(..., alias="createdAt")


class ChannelKind(str, Enum):
    """Kind of channel a view was projected for."""

    BROADCAST = "broadcast"
    DIRECT = "direct"


class StreamState(str, Enum):
    """State of the log subscription behind a view."""

    WAITING = "waiting"  # subscribed, no snapshot yet
    LIVE = "live"
    LOST = "lost"  # stream ended; messages are the last snapshot seen
    CLOSED = "closed"  # unsubscribed by the owner


class ChannelView(_WireModel):
    """Ordered, viewer-relative messages of one channel."""

    channel_id: str = Field(..., alias="channelId")
    kind: ChannelKind
    peer_id: Optional[str] = Field(None, alias="peerId")
    state: StreamState = StreamState.LIVE
    messages: List[ProjectedMessage] = Field(default_factory=list)

    @property
    def is_stale(self) -> bool:
        return self.state is StreamState.LOST

    @property
    def message_count(self) -> int:
        return len(self.messages)


class ConversationSummary(_WireModel):
    """One row of a participant's inbox of direct conversations."""

    channel_id: str = Field(..., alias="channelId")
    participants: List[str]
    peer_id: Optional[str] = Field(None, alias="peerId")
    last_text: str = Field("", alias="lastText")
    last_sender_id: str = Field(..., alias="lastSenderId")
    last_at: datetime = Field(..., alias="lastAt")
    message_count: int = Field(0, alias="messageCount")


class StreamViews(_WireModel):
    """Everything a viewer's projector currently exposes."""

    viewer_id: Optional[str] = Field(None, alias="viewerId")
    state: StreamState
    broadcast: ChannelView
    direct: Optional[ChannelView] = None
    conversations: List[ConversationSummary] = Field(default_factory=list)
