"""
Identity Collaborators

The chat core never authenticates anyone. It reads "who is signed in" from an
identity collaborator and reacts when that changes.

- SessionIdentity: mutable, observable identity for a long-lived client session
- StaticIdentity: fixed identity for one server request
"""

import logging
from typing import Callable, List, Optional, Protocol

from vipchat.models.participant import ParticipantProfile

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Optional[ParticipantProfile]], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(Protocol):
    """Interface the router and projector expect from the identity collaborator."""

    @property
    def current(self) -> Optional[ParticipantProfile]: ...

    def subscribe(self, listener: IdentityListener) -> Unsubscribe: ...


class SessionIdentity:
    """Signed-in participant of one client session, with change notifications."""

    def __init__(self, profile: Optional[ParticipantProfile] = None):
        self._current = profile
        self._listeners: List[IdentityListener] = []

    @property
    def current(self) -> Optional[ParticipantProfile]:
        return self._current

    @property
    def current_id(self) -> Optional[str]:
        return self._current.id if self._current else None

    def sign_in(self, profile: ParticipantProfile) -> None:
        logger.info(f"Participant signed in: {profile.id}")
        self._set(profile)

    def sign_out(self) -> None:
        if self._current is not None:
            logger.info(f"Participant signed out: {self._current.id}")
        self._set(None)

    def subscribe(self, listener: IdentityListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, profile: Optional[ParticipantProfile]) -> None:
        if profile == self._current:
            return
        self._current = profile
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(profile)


class StaticIdentity:
    """Identity that never changes (one HTTP request, one test)."""

    def __init__(self, profile: Optional[ParticipantProfile] = None):
        self._profile = profile

    @property
    def current(self) -> Optional[ParticipantProfile]:
        return self._profile

    def subscribe(self, listener: IdentityListener) -> Unsubscribe:
        return lambda: None
