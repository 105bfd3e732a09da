"""
Shared fixtures for the chat test suite.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import datetime, timedelta, timezone

import pytest

from vipchat.integrations.identity import SessionIdentity
from vipchat.integrations.log.memory import InMemoryMessageLog
from vipchat.models.message import StoredMessage
from vipchat.models.participant import ParticipantProfile, Role

BASE_TIME = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock: every call advances one second."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


def stored(
    sender_id: str,
    channel_id: str,
    text: str = "",
    sequence: int = 0,
    seconds: int | None = None,
    message_id: str | None = None,
) -> StoredMessage:
    """Build a stored message directly, bypassing the log."""
    offset = sequence if seconds is None else seconds
    return StoredMessage(
        id=message_id or f"m{sequence}",
        sender_id=sender_id,
        channel_id=channel_id,
        text=text,
        created_at=BASE_TIME + timedelta(seconds=offset),
        sequence=sequence,
    )


@pytest.fixture
def alice():
    return ParticipantProfile(id="alice", display_name="Alice", avatar_url="https://cdn.example.com/alice.png")


@pytest.fixture
def bob():
    return ParticipantProfile(id="bob", display_name="Bob")


@pytest.fixture
def carol():
    return ParticipantProfile(id="carol", display_name="Carol")


@pytest.fixture
def admin():
    return ParticipantProfile(id="mateus", display_name="Mateus (Admin)", role=Role.ADMIN)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def log(clock):
    return InMemoryMessageLog(clock=clock)


@pytest.fixture
def identity(alice):
    return SessionIdentity(alice)
