"""
Message Stream Projector

Turns the single ordered message log into per-viewer channel views.

The projection functions are pure: given a snapshot and a viewer they always
return the same views. MessageStreamProjector owns the log and identity
subscriptions and keeps only two things between callbacks: the last snapshot
and the subscription state. Views are derived on every read from that
snapshot and the *current* identity, so a sign-out can never leak the
previous viewer's private view or isMine flags.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from vipchat.core.addressing import (
    BROADCAST_CHANNEL,
    address_channel,
    parse_channel,
    peer_of,
    validate_participant_id,
)
from vipchat.core.errors import (
    ChatInputError,
    SubscriptionLostError,
    UnauthenticatedError,
)
from vipchat.integrations.identity import IdentityProvider
from vipchat.integrations.log.base import MessageLog
from vipchat.models.message import (
    ChannelKind,
    ChannelView,
    ConversationSummary,
    ProjectedMessage,
    StoredMessage,
    StreamState,
    StreamViews,
)
from vipchat.models.participant import ParticipantProfile

logger = logging.getLogger(__name__)

Snapshot = Sequence[StoredMessage]
UpdateListener = Callable[[StreamViews], None]


# Pure projections


def _log_order(snapshot: Snapshot) -> List[StoredMessage]:
    # Stable sort: equal timestamps keep the log's sequence order
    return sorted(snapshot, key=lambda m: (m.created_at, m.sequence))


def project_channel(
    snapshot: Snapshot, viewer_id: Optional[str], channel_id: str
) -> List[ProjectedMessage]:
    """Messages of ``channel_id`` in log order, annotated for ``viewer_id``."""
    return [
        ProjectedMessage.from_stored(message, viewer_id)
        for message in _log_order(snapshot)
        if message.channel_id == channel_id
    ]


def project_broadcast(
    snapshot: Snapshot,
    viewer_id: Optional[str],
    state: StreamState = StreamState.LIVE,
) -> ChannelView:
    """The broadcast channel as seen by ``viewer_id`` (None when signed out)."""
    return ChannelView(
        channel_id=BROADCAST_CHANNEL,
        kind=ChannelKind.BROADCAST,
        state=state,
        messages=project_channel(snapshot, viewer_id, BROADCAST_CHANNEL),
    )


def project_direct(
    snapshot: Snapshot,
    viewer_id: Optional[str],
    peer_id: str,
    state: StreamState = StreamState.LIVE,
) -> ChannelView:
    """
    The direct channel between ``viewer_id`` and ``peer_id``.

    Raises:
        UnauthenticatedError: If there is no viewer
        InvalidParticipantError, SelfAddressedError: If the pair cannot be addressed
    """
    if viewer_id is None:
        raise UnauthenticatedError("Sign in to read direct messages")

    channel_id = address_channel(viewer_id, peer_id)
    return ChannelView(
        channel_id=channel_id,
        kind=ChannelKind.DIRECT,
        peer_id=peer_id,
        state=state,
        messages=project_channel(snapshot, viewer_id, channel_id),
    )


def project_any(
    snapshot: Snapshot,
    viewer_id: Optional[str],
    channel_id: str,
    state: StreamState = StreamState.LIVE,
) -> ChannelView:
    """
    Any channel by id. Does not check access; callers apply AccessPolicy.

    Raises:
        InvalidParticipantError: If ``channel_id`` is malformed
    """
    members = parse_channel(channel_id)
    if members is None:
        return project_broadcast(snapshot, viewer_id, state)

    return ChannelView(
        channel_id=channel_id,
        kind=ChannelKind.DIRECT,
        peer_id=peer_of(channel_id, viewer_id) if viewer_id else None,
        state=state,
        messages=project_channel(snapshot, viewer_id, channel_id),
    )


def _summaries(
    snapshot: Snapshot, viewer_id: Optional[str], everyone: bool
) -> List[ConversationSummary]:
    grouped: Dict[str, Tuple[StoredMessage, int, Tuple[str, str]]] = {}

    for message in _log_order(snapshot):
        channel_id = message.channel_id
        if channel_id == BROADCAST_CHANNEL:
            continue
        try:
            members = parse_channel(channel_id)
        except ChatInputError:
            logger.warning(f"Skipping message {message.id} with malformed channel {channel_id!r}")
            continue
        if not everyone and viewer_id not in members:
            continue

        count = grouped[channel_id][1] if channel_id in grouped else 0
        grouped[channel_id] = (message, count + 1, members)

    summaries = [
        ConversationSummary(
            channel_id=channel_id,
            participants=list(members),
            peer_id=peer_of(channel_id, viewer_id) if viewer_id else None,
            last_text=last.text,
            last_sender_id=last.sender_id,
            last_at=last.created_at,
            message_count=count,
        )
        for channel_id, (last, count, members) in grouped.items()
    ]
    summaries.sort(key=lambda s: s.last_at, reverse=True)
    return summaries


def list_conversations(
    snapshot: Snapshot, viewer_id: Optional[str]
) -> List[ConversationSummary]:
    """Direct conversations ``viewer_id`` takes part in, most recent first."""
    if viewer_id is None:
        return []
    return _summaries(snapshot, viewer_id, everyone=False)


def list_all_conversations(
    snapshot: Snapshot, viewer_id: Optional[str] = None
) -> List[ConversationSummary]:
    """Every direct conversation in the log (moderator inbox)."""
    return _summaries(snapshot, viewer_id, everyone=True)


# Subscription owner


class MessageStreamProjector:
    """
    Live channel views for the current viewer.

    Owns the log and identity subscriptions between start() and stop().
    Every log delivery replaces the stored snapshot wholesale, so feeding the
    same snapshot twice produces identical views and an overlapping delivery
    can never leave a half-applied update behind.

    Args:
        log: Log collaborator to subscribe to
        identity: Identity collaborator (current viewer)
        peer_id: Optional peer whose direct channel should be materialized
        on_update: Called with the fresh StreamViews after every change
    """

    def __init__(
        self,
        log: MessageLog,
        identity: IdentityProvider,
        peer_id: Optional[str] = None,
        on_update: Optional[UpdateListener] = None,
    ):
        self.log = log
        self.identity = identity
        self.on_update = on_update
        self._peer_id = validate_participant_id(peer_id) if peer_id is not None else None
        self._snapshot: Tuple[StoredMessage, ...] = ()
        self._state = StreamState.CLOSED
        self._error: Optional[SubscriptionLostError] = None
        self._unsubscribe_log: Optional[Callable[[], None]] = None
        self._unsubscribe_identity: Optional[Callable[[], None]] = None

    # Lifecycle

    @property
    def active(self) -> bool:
        return self._unsubscribe_log is not None

    def start(self) -> "MessageStreamProjector":
        if self.active:
            return self

        self._state = StreamState.WAITING
        self._error = None
        self._unsubscribe_identity = self.identity.subscribe(self._handle_identity)
        # Set before subscribing: the log may deliver synchronously
        self._unsubscribe_log = lambda: None
        try:
            self._unsubscribe_log = self.log.subscribe(self._handle_snapshot, self._handle_lost)
        except Exception:
            self.stop()
            raise
        logger.debug(f"Projector started for viewer {self.viewer_id} (peer={self._peer_id})")
        return self

    def stop(self) -> None:
        """Detach from the log and identity; no callbacks fire afterwards."""
        unsubscribe_log, self._unsubscribe_log = self._unsubscribe_log, None
        unsubscribe_identity, self._unsubscribe_identity = self._unsubscribe_identity, None

        if unsubscribe_log is not None:
            unsubscribe_log()
        if unsubscribe_identity is not None:
            unsubscribe_identity()

        if self._state is not StreamState.LOST:
            self._state = StreamState.CLOSED
        logger.debug(f"Projector stopped for viewer {self.viewer_id}")

    def __enter__(self) -> "MessageStreamProjector":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # Reads

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def error(self) -> Optional[SubscriptionLostError]:
        return self._error

    @property
    def viewer(self) -> Optional[ParticipantProfile]:
        return self.identity.current

    @property
    def viewer_id(self) -> Optional[str]:
        viewer = self.identity.current
        return viewer.id if viewer else None

    @property
    def peer_id(self) -> Optional[str]:
        return self._peer_id

    @property
    def broadcast(self) -> ChannelView:
        return project_broadcast(self._snapshot, self.viewer_id, self._state)

    @property
    def direct(self) -> Optional[ChannelView]:
        """Direct view with the focused peer, or None if the viewer is not a party."""
        viewer_id = self.viewer_id
        if viewer_id is None or self._peer_id is None or viewer_id == self._peer_id:
            return None
        return project_direct(self._snapshot, viewer_id, self._peer_id, self._state)

    @property
    def conversations(self) -> List[ConversationSummary]:
        return list_conversations(self._snapshot, self.viewer_id)

    def views(self) -> StreamViews:
        return StreamViews(
            viewer_id=self.viewer_id,
            state=self._state,
            broadcast=self.broadcast,
            direct=self.direct,
            conversations=self.conversations,
        )

    def focus(self, peer_id: Optional[str]) -> None:
        """Switch the materialized direct channel (None to close it)."""
        self._peer_id = validate_participant_id(peer_id) if peer_id is not None else None
        self._notify()

    # Callbacks

    def _handle_snapshot(self, messages: Snapshot) -> None:
        if not self.active:
            return
        self._snapshot = tuple(messages)
        self._state = StreamState.LIVE
        self._error = None
        logger.debug(f"Projector received snapshot of {len(self._snapshot)} messages")
        self._notify()

    def _handle_lost(self, error: SubscriptionLostError) -> None:
        if not self.active:
            return
        logger.warning(f"Message stream lost for viewer {self.viewer_id}: {error}")
        self._state = StreamState.LOST
        self._error = error
        self._notify()

    def _handle_identity(self, profile: Optional[ParticipantProfile]) -> None:
        if not self.active:
            return
        logger.debug(f"Projector viewer changed to {profile.id if profile else None}")
        self._notify()

    def _notify(self) -> None:
        if self.on_update is not None and self.active:
            self.on_update(self.views())
