"""
Channel Addressing

Maps a conversation's participants to a channel id without any directory or
"create conversation" step: both sides compute the same id offline.

- Broadcast channel: the fixed literal "community"
- Direct channel: the two participant ids, sorted and joined with ":"

Participant ids may not contain the separator or whitespace, so a direct id
always splits back into exactly its two members and can never equal the
broadcast literal.
"""

import re
from enum import Enum
from typing import Optional, Tuple, Union

from vipchat.core.errors import InvalidParticipantError, SelfAddressedError

BROADCAST_CHANNEL = "community"
DIRECT_SEPARATOR = ":"

_INVALID_ID_CHARS = re.compile(r"[:\s]")


class Audience(Enum):
    """Destination marker for messages that are not addressed to a peer."""

    BROADCAST = "broadcast"


BROADCAST = Audience.BROADCAST

Destination = Union[Audience, str]


def validate_participant_id(participant_id: Optional[str]) -> str:
    """
    Return ``participant_id`` if it can be used in a direct channel id.

    Raises:
        InvalidParticipantError: If the id is empty, contains the separator
            or whitespace, or equals the broadcast channel literal.
    """
    if not isinstance(participant_id, str) or not participant_id:
        raise InvalidParticipantError("Participant id must be a non-empty string")
    if participant_id == BROADCAST_CHANNEL:
        raise InvalidParticipantError(
            f"'{BROADCAST_CHANNEL}' is reserved for the broadcast channel"
        )
    if _INVALID_ID_CHARS.search(participant_id):
        raise InvalidParticipantError(
            f"Participant id {participant_id!r} contains '{DIRECT_SEPARATOR}' or whitespace"
        )
    return participant_id


def address_channel(*participants: str) -> str:
    """
    Compute the channel id for a set of participants.

    Examples:
        address_channel()            -> "community"
        address_channel("u2", "u1")  -> "u1:u2"
        address_channel("u1", "u2")  -> "u1:u2"

    Raises:
        InvalidParticipantError: For invalid ids or a participant count other than 0 or 2
        SelfAddressedError: If both ids are the same
    """
    if not participants:
        return BROADCAST_CHANNEL
    if len(participants) != 2:
        raise InvalidParticipantError(
            f"Direct channels take exactly two participants, got {len(participants)}"
        )

    first, second = (validate_participant_id(p) for p in participants)
    if first == second:
        raise SelfAddressedError(f"Participant {first!r} cannot message themself")

    low, high = sorted((first, second))
    return f"{low}{DIRECT_SEPARATOR}{high}"


def resolve_destination(sender_id: str, destination: Destination) -> str:
    """Channel id for a message sent by ``sender_id`` to ``destination``."""
    if isinstance(destination, Audience):
        return BROADCAST_CHANNEL
    return address_channel(sender_id, destination)


def parse_channel(channel_id: str) -> Optional[Tuple[str, str]]:
    """
    Return the two members of a direct channel id.

    Returns None for the broadcast channel.

    Raises:
        InvalidParticipantError: If ``channel_id`` is neither the broadcast
            literal nor a well-formed direct channel id.
    """
    if channel_id == BROADCAST_CHANNEL:
        return None

    parts = channel_id.split(DIRECT_SEPARATOR) if isinstance(channel_id, str) else []
    if len(parts) != 2:
        raise InvalidParticipantError(f"Not a channel id: {channel_id!r}")

    low, high = (validate_participant_id(p) for p in parts)
    if low >= high:
        # Canonical ids are strictly sorted
        raise InvalidParticipantError(f"Not a canonical channel id: {channel_id!r}")
    return low, high


def is_member(channel_id: str, participant_id: Optional[str]) -> bool:
    """True if ``participant_id`` can read ``channel_id`` by membership alone."""
    if channel_id == BROADCAST_CHANNEL:
        return True
    if not participant_id:
        return False
    try:
        members = parse_channel(channel_id)
    except InvalidParticipantError:
        return False
    return members is not None and participant_id in members


def peer_of(channel_id: str, participant_id: str) -> Optional[str]:
    """The other member of a direct channel, or None if not a member."""
    try:
        members = parse_channel(channel_id)
    except InvalidParticipantError:
        return None
    if members is None or participant_id not in members:
        return None
    low, high = members
    return high if participant_id == low else low
