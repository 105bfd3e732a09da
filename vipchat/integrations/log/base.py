"""
Message Log Interface

The log is the append-only, server-ordered sequence of every message across
all channels. It is owned by an external storage collaborator; the chat core
only appends through the router and reads snapshots through the projector.

Ordering contract for subscribers: every delivery is the full list of stored
messages sorted by server-assigned creation order (not a diff), so views can
always be rebuilt from scratch.
"""

from typing import Callable, Optional, Protocol, Sequence

from vipchat.core.errors import SubscriptionLostError
from vipchat.models.message import AppendResult, MessageRecord, StoredMessage

SnapshotListener = Callable[[Sequence[StoredMessage]], None]
ErrorListener = Callable[[SubscriptionLostError], None]
Unsubscribe = Callable[[], None]


class MessageLog(Protocol):
    """Interface of the log collaborator."""

    async def append(self, record: MessageRecord) -> AppendResult:
        """Persist ``record``; resolves once the store acknowledged it."""
        ...

    def subscribe(
        self,
        on_snapshot: SnapshotListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Unsubscribe:
        """Deliver the full ordered log on every change until unsubscribed."""
        ...
