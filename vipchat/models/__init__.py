# Shared data models
from vipchat.models.message import (
    AppendResult,
    ChannelKind,
    ChannelView,
    ConversationSummary,
    MessageRecord,
    ProjectedMessage,
    SendReceipt,
    StoredMessage,
    StreamState,
    StreamViews,
)
from vipchat.models.participant import ParticipantProfile, Role

__all__ = [
    "AppendResult",
    "ChannelKind",
    "ChannelView",
    "ConversationSummary",
    "MessageRecord",
    "ProjectedMessage",
    "SendReceipt",
    "StoredMessage",
    "StreamState",
    "StreamViews",
    "ParticipantProfile",
    "Role",
]
