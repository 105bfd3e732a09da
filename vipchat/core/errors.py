"""
Chat Error Taxonomy

Every failure surfaced by the chat core is a ChatError carrying a stable
``kind`` string, so HTTP handlers and clients can map errors without
inspecting messages.

Input errors (ChatInputError) are detected synchronously and must never be
retried with the same input. DeliveryFailedError is transient and the caller
may retry the same send. SubscriptionLostError marks a dead log stream.
"""

from typing import Dict, Optional, Type


class ChatError(Exception):
    """Base class for all chat core errors."""

    kind: str = "ChatError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_detail(self) -> Dict[str, str]:
        """Serializable form used in API error bodies."""
        return {"kind": self.kind, "message": self.message}


class ChatInputError(ChatError):
    """
    Raised for caller input problems.
    This is a client error (4xx) - fix the input, do not retry.
    """

    kind = "ChatInputError"


class InvalidParticipantError(ChatInputError):
    """Participant id is empty, malformed or equal to the broadcast channel."""

    kind = "InvalidParticipant"


class SelfAddressedError(ChatInputError):
    """A participant tried to open a direct channel with themself."""

    kind = "SelfAddressed"


class UnauthenticatedError(ChatInputError):
    """An operation that needs a signed-in participant was called without one."""

    kind = "Unauthenticated"


class EmptyMessageError(ChatInputError):
    """Message has neither text nor an attachment."""

    kind = "EmptyMessage"


class AccessDeniedError(ChatInputError):
    """Viewer is not allowed to read the requested channel."""

    kind = "AccessDenied"


class DeliveryFailedError(ChatError):
    """
    Raised when the log rejects or fails an append.
    Transient - the caller may retry the same send.
    """

    kind = "DeliveryFailed"


class SubscriptionLostError(ChatError):
    """The log stream terminated unexpectedly."""

    kind = "SubscriptionLost"


_ERRORS_BY_KIND: Dict[str, Type[ChatError]] = {
    cls.kind: cls
    for cls in (
        InvalidParticipantError,
        SelfAddressedError,
        UnauthenticatedError,
        EmptyMessageError,
        AccessDeniedError,
        DeliveryFailedError,
        SubscriptionLostError,
    )
}


def error_from_kind(kind: Optional[str], message: str = "") -> ChatError:
    """Rebuild a typed error from its ``kind`` string (unknown kinds map to ChatError)."""
    cls = _ERRORS_BY_KIND.get(kind or "", ChatError)
    return cls(message)
