"""
Message Router

Validates an outgoing message, resolves its channel and appends it to the log.

Validation happens synchronously, before any log interaction:
1. Unauthenticated  - nobody is signed in
2. InvalidParticipant - the sender id itself is malformed
3. EmptyMessage     - blank text and no attachment
4. InvalidParticipant / SelfAddressed - destination cannot be addressed

The router never assigns the authoritative timestamp. It tags each record
with a submission counter (clientSeq) and lets the log stamp createdAt.
"""

import itertools
import logging
from typing import Optional, Tuple

from vipchat.core.addressing import (
    BROADCAST,
    Destination,
    resolve_destination,
    validate_participant_id,
)
from vipchat.core.errors import (
    ChatInputError,
    DeliveryFailedError,
    EmptyMessageError,
    UnauthenticatedError,
)
from vipchat.integrations.identity import IdentityProvider
from vipchat.integrations.log.base import MessageLog
from vipchat.models.message import MessageRecord, SendReceipt
from vipchat.models.participant import ParticipantProfile

logger = logging.getLogger(__name__)


class MessageRouter:
    """Turns "send this to that" into an appended log record."""

    def __init__(self, log: MessageLog, identity: IdentityProvider):
        self.log = log
        self.identity = identity
        self._submissions = itertools.count(1)

    def prepare(
        self,
        sender: Optional[ParticipantProfile],
        destination: Destination = BROADCAST,
        text: str = "",
        attachment_url: Optional[str] = None,
    ) -> Tuple[str, MessageRecord]:
        """
        Validate a send request and build the record to append.

        Args:
            sender: Current participant, None when signed out
            destination: BROADCAST or a peer participant id
            text: Message body
            attachment_url: Optional attachment URI

        Returns:
            (channel_id, record)

        Raises:
            UnauthenticatedError, EmptyMessageError,
            InvalidParticipantError, SelfAddressedError
        """
        if sender is None:
            raise UnauthenticatedError("Sign in to send messages")
        validate_participant_id(sender.id)

        text = text or ""
        attachment_url = attachment_url or None
        if not text.strip() and attachment_url is None:
            raise EmptyMessageError("Message needs text or an attachment")

        channel_id = resolve_destination(sender.id, destination)

        record = MessageRecord(
            sender_id=sender.id,
            channel_id=channel_id,
            text=text,
            attachment_url=attachment_url,
            sender_name=sender.display_name,
            sender_avatar=sender.avatar_url,
            client_seq=next(self._submissions),
        )
        return channel_id, record

    async def send(
        self,
        destination: Destination = BROADCAST,
        text: str = "",
        attachment_url: Optional[str] = None,
    ) -> SendReceipt:
        """
        Send a message as the current participant.

        Completes only once the log acknowledged the append.

        Raises:
            ChatInputError subclasses for invalid requests (no log call made)
            DeliveryFailedError: If the log failed the append
        """
        try:
            channel_id, record = self.prepare(
                self.identity.current, destination, text, attachment_url
            )
        except ChatInputError as e:
            logger.debug(f"Rejected send request: {e}")
            raise

        try:
            ack = await self.log.append(record)
        except Exception as e:
            logger.warning(
                f"Delivery to channel {channel_id} failed for {record.sender_id}: {e}"
            )
            raise DeliveryFailedError(f"Could not deliver message: {e}") from e

        logger.info(
            f"Message {ack.id} sent by {record.sender_id} to channel {channel_id}"
        )
        return SendReceipt(
            channel_id=channel_id,
            record=record,
            message_id=ack.id,
            created_at=ack.created_at,
        )
