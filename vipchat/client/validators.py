"""
Validation utilities for client-side input, run before any request is made.
"""
from typing import Optional

from vipchat.core.addressing import validate_participant_id
from vipchat.core.errors import InvalidParticipantError


def validate_peer_id(peer_id: Optional[str]) -> tuple[bool, str]:
    """
    Validate a peer participant id.

    Returns:
        tuple: (is_valid, message)
    """
    try:
        validate_participant_id(peer_id)
    except InvalidParticipantError as e:
        return False, e.message
    return True, "Valid participant id."


def validate_message(text: Optional[str], attachment_url: Optional[str]) -> tuple[bool, str]:
    """
    Validate that a message has content.

    Returns:
        tuple: (is_valid, message)
    """
    if not (text or "").strip() and not attachment_url:
        return False, "Message needs text or an attachment."
    return True, "Valid message."
