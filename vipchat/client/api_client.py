"""
API client for the chat backend.
Makes real HTTP calls to the FastAPI routes in vipchat/api/routes/chat.py.

Error responses carry {"detail": {"kind", "message"}}; the client raises the
matching ChatError subclass so callers handle the same taxonomy locally and
remotely.
"""

from typing import Any, List, Optional
import requests
import logging

from vipchat.config import get_settings
from vipchat.core.errors import (
    ChatError,
    DeliveryFailedError,
    EmptyMessageError,
    InvalidParticipantError,
    UnauthenticatedError,
    error_from_kind,
)
from vipchat.client.validators import validate_message, validate_peer_id
from vipchat.models.message import ChannelView, ConversationSummary, SendReceipt
from vipchat.models.participant import ParticipantProfile

logger = logging.getLogger(__name__)


def _extract_error(e: requests.HTTPError) -> ChatError:
    """Turn an HTTPError response into the matching ChatError."""
    try:
        detail = e.response.json().get("detail")
    except Exception:
        detail = None

    if isinstance(detail, dict):
        return error_from_kind(detail.get("kind"), detail.get("message", ""))
    if e.response is not None and e.response.status_code == 401:
        return UnauthenticatedError(str(detail or e))
    return ChatError(str(detail or e))


class ChatApiClient:
    """Chat HTTP API as seen by one participant."""

    def __init__(
        self,
        participant: Optional[ParticipantProfile] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self.session = session or requests.Session()
        self.participant = participant

        if participant is not None:
            self.session.headers[settings.participant_header] = participant.id
            if participant.display_name:
                self.session.headers[settings.participant_name_header] = participant.display_name
            if participant.avatar_url:
                self.session.headers[settings.participant_avatar_header] = participant.avatar_url

    def _unreachable(self, e: requests.ConnectionError) -> DeliveryFailedError:
        logger.warning(f"Cannot reach chat backend at {self.base_url}: {e}")
        return DeliveryFailedError("Cannot connect to chat backend. Is it running?")

    def _get(self, endpoint: str, params: dict | None = None) -> Any:
        """Make a GET request and return the decoded JSON body."""
        url = f"{self.base_url}{endpoint}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise _extract_error(e) from e
        except requests.ConnectionError as e:
            raise self._unreachable(e) from e
        return resp.json()

    def send_message(
        self,
        text: str = "",
        to: Optional[str] = None,
        attachment_url: Optional[str] = None,
    ) -> SendReceipt:
        """
        Send a message; ``to=None`` posts to the community.

        Calls: POST /messages

        Raises:
            UnauthenticatedError, EmptyMessageError, InvalidParticipantError,
            SelfAddressedError, DeliveryFailedError
        """
        if self.participant is None:
            raise UnauthenticatedError("Sign in to send messages")

        valid, msg = validate_message(text, attachment_url)
        if not valid:
            raise EmptyMessageError(msg)
        if to is not None:
            valid, msg = validate_peer_id(to)
            if not valid:
                raise InvalidParticipantError(msg)

        payload = {"to": to, "text": text, "attachmentUrl": attachment_url}
        try:
            resp = self.session.post(
                f"{self.base_url}/messages", json=payload, timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise _extract_error(e) from e
        except requests.ConnectionError as e:
            raise self._unreachable(e) from e

        return SendReceipt.model_validate(resp.json())

    def community(self) -> ChannelView:
        """Calls: GET /channels/community"""
        return ChannelView.model_validate(self._get("/channels/community"))

    def direct(self, peer_id: str) -> ChannelView:
        """Calls: GET /channels/direct/{peer_id}"""
        valid, msg = validate_peer_id(peer_id)
        if not valid:
            raise InvalidParticipantError(msg)
        return ChannelView.model_validate(self._get(f"/channels/direct/{peer_id}"))

    def channel(self, channel_id: str) -> ChannelView:
        """Calls: GET /channels/{channel_id}"""
        return ChannelView.model_validate(self._get(f"/channels/{channel_id}"))

    def conversations(self, include_all: bool = False) -> List[ConversationSummary]:
        """Calls: GET /conversations"""
        params = {"all": "true"} if include_all else None
        data = self._get("/conversations", params=params)
        return [ConversationSummary.model_validate(item) for item in data]
