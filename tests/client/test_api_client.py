"""
Tests for the requests-based chat API client.
The HTTP session is a MagicMock; no server is needed.
"""

from unittest.mock import MagicMock

import pytest
import requests

from vipchat.client.api_client import ChatApiClient
from vipchat.core.errors import (
    DeliveryFailedError,
    EmptyMessageError,
    InvalidParticipantError,
    SelfAddressedError,
    UnauthenticatedError,
)

BASE_URL = "http://chat.test/api/chat"

RECEIPT = {
    "channelId": "alice:bob",
    "record": {"senderId": "alice", "channelId": "alice:bob", "text": "hi"},
    "messageId": "m1",
    "createdAt": "2026-01-05T09:00:00Z",
}


def _response(status: int, body) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.json.return_value = body
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


@pytest.fixture
def session():
    mock = MagicMock()
    mock.headers = {}
    return mock


@pytest.fixture
def api(session, alice):
    return ChatApiClient(alice, base_url=BASE_URL, timeout=5, session=session)


def test_identity_headers_set(api, session):
    assert session.headers["X-Participant-Id"] == "alice"
    assert session.headers["X-Participant-Name"] == "Alice"


def test_send_message(api, session):
    session.post.return_value = _response(201, RECEIPT)

    receipt = api.send_message("hi", to="bob")

    assert receipt.channel_id == "alice:bob"
    assert receipt.record.text == "hi"
    session.post.assert_called_once_with(
        f"{BASE_URL}/messages",
        json={"to": "bob", "text": "hi", "attachmentUrl": None},
        timeout=5,
    )


def test_local_validation_skips_request(api, session, bob):
    with pytest.raises(EmptyMessageError):
        api.send_message("  ")
    with pytest.raises(InvalidParticipantError):
        api.send_message("hi", to="a:b")
    with pytest.raises(UnauthenticatedError):
        ChatApiClient(None, base_url=BASE_URL, session=MagicMock()).send_message("hi")

    session.post.assert_not_called()


def test_server_error_kind_is_raised(api, session):
    session.post.return_value = _response(
        400, {"detail": {"kind": "SelfAddressed", "message": "no"}}
    )

    with pytest.raises(SelfAddressedError):
        api.send_message("hi", to="alice")


def test_connection_error_is_delivery_failure(api, session):
    session.post.side_effect = requests.ConnectionError("refused")

    with pytest.raises(DeliveryFailedError):
        api.send_message("hi")


def test_community_view(api, session):
    session.get.return_value = _response(
        200,
        {
            "channelId": "community",
            "kind": "broadcast",
            "state": "live",
            "messages": [
                {
                    "id": "m1",
                    "senderId": "alice",
                    "channelId": "community",
                    "text": "oi",
                    "createdAt": "2026-01-05T09:00:00Z",
                    "sequence": 0,
                    "isMine": True,
                }
            ],
        },
    )

    view = api.community()

    assert view.messages[0].is_mine is True
    session.get.assert_called_once_with(f"{BASE_URL}/channels/community", params=None, timeout=5)


def test_unauthorized_without_detail_kind(api, session):
    session.get.return_value = _response(401, {"detail": "Not authenticated"})

    with pytest.raises(UnauthenticatedError):
        api.conversations()


def test_conversations_all(api, session):
    session.get.return_value = _response(200, [])

    assert api.conversations(include_all=True) == []
    session.get.assert_called_once_with(
        f"{BASE_URL}/conversations", params={"all": "true"}, timeout=5
    )


def test_read_connection_error_is_delivery_failure(api, session):
    session.get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(DeliveryFailedError):
        api.community()


def test_attachment_uri_passed_through(api, session):
    session.post.return_value = _response(201, RECEIPT)

    api.send_message(attachment_url="gs://bucket/p.jpg")

    assert session.post.call_args.kwargs["json"]["attachmentUrl"] == "gs://bucket/p.jpg"
