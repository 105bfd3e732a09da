"""
In-Memory Message Log

Reference implementation of the log collaborator, used by the HTTP service and
the tests. Behaves like a realtime document query ordered by createdAt:

- append assigns id, createdAt and sequence, then fans out the full snapshot
- subscribe delivers the current snapshot immediately, then on every change
- close() terminates every open subscription with SubscriptionLostError

Not durable: contents live only as long as the process.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from vipchat.core.errors import SubscriptionLostError
from vipchat.integrations.log.base import ErrorListener, SnapshotListener, Unsubscribe
from vipchat.models.message import AppendResult, MessageRecord, StoredMessage

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryMessageLog:
    """Append-only message log with snapshot subscriptions."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or _utcnow
        self._messages: List[StoredMessage] = []
        self._subscribers: Dict[int, Tuple[SnapshotListener, Optional[ErrorListener]]] = {}
        self._next_token = 0
        self._closed: Optional[SubscriptionLostError] = None

    def __len__(self) -> int:
        return len(self._messages)

    def snapshot(self) -> Tuple[StoredMessage, ...]:
        """Current contents in creation order."""
        return tuple(self._messages)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def append(self, record: MessageRecord) -> AppendResult:
        if self._closed is not None:
            raise ConnectionError("Message log is closed")

        created_at = self._next_timestamp()
        sequence = len(self._messages)
        stored = StoredMessage(
            **record.model_dump(),
            id=uuid.uuid4().hex,
            created_at=created_at,
            sequence=sequence,
        )
        self._messages.append(stored)
        logger.debug(
            f"Appended message {stored.id} to channel {stored.channel_id} (seq={sequence})"
        )

        self._broadcast_snapshot()
        return AppendResult(id=stored.id, created_at=created_at, sequence=sequence)

    def subscribe(
        self,
        on_snapshot: SnapshotListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Unsubscribe:
        if self._closed is not None:
            if on_error is not None:
                on_error(self._closed)
            return lambda: None

        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = (on_snapshot, on_error)
        logger.debug(f"Log subscriber {token} attached ({len(self._subscribers)} total)")

        try:
            on_snapshot(self.snapshot())
        except Exception:
            # The caller never receives an unsubscribe, so detach here
            self._subscribers.pop(token, None)
            logger.debug(f"Log subscriber {token} detached after failed first delivery")
            raise

        def unsubscribe() -> None:
            if self._subscribers.pop(token, None) is not None:
                logger.debug(f"Log subscriber {token} detached")

        return unsubscribe

    def close(self, reason: str = "Message log stream terminated") -> None:
        """End every subscription with SubscriptionLostError and refuse new appends."""
        self._closed = SubscriptionLostError(reason)
        subscribers = list(self._subscribers.values())
        self._subscribers.clear()
        logger.warning(f"Closing message log: {reason} ({len(subscribers)} subscribers)")

        for _, on_error in subscribers:
            if on_error is not None:
                on_error(self._closed)

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if self._messages:
            last = self._messages[-1].created_at
            if now <= last:
                # createdAt must be strictly increasing even if the clock stalls
                now = last + timedelta(microseconds=1)
        return now

    def _broadcast_snapshot(self) -> None:
        snapshot = self.snapshot()
        for token, (on_snapshot, _) in list(self._subscribers.items()):
            try:
                on_snapshot(snapshot)
            except Exception:
                # One broken subscriber must not starve the others
                logger.exception(f"Log subscriber {token} failed to handle snapshot")
