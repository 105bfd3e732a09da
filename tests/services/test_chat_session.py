"""
End-to-end tests for ChatSession: two participants sharing one log.
"""

import pytest

from vipchat.core.addressing import address_channel
from vipchat.core.errors import EmptyMessageError
from vipchat.integrations.identity import SessionIdentity
from vipchat.services.chat_session import ChatSession


@pytest.mark.asyncio
async def test_direct_message_end_to_end(log, alice, bob):
    """alice -> bob "hi" shows up for both, with isMine relative to each viewer."""
    alice_session = ChatSession(log, SessionIdentity(alice))
    bob_session = ChatSession(log, SessionIdentity(bob))
    alice_session.open(peer_id="bob")
    bob_session.open(peer_id="alice")

    receipt = await alice_session.send("hi", to="bob")

    assert receipt.channel_id == address_channel("alice", "bob")

    bob_view = bob_session.views().direct
    alice_view = alice_session.views().direct
    assert [(m.text, m.is_mine) for m in bob_view.messages] == [("hi", False)]
    assert [(m.text, m.is_mine) for m in alice_view.messages] == [("hi", True)]
    assert bob_view.messages[0].created_at == receipt.created_at

    alice_session.close()
    bob_session.close()


@pytest.mark.asyncio
async def test_community_messages_reach_everyone(log, alice, bob, carol):
    sessions = [ChatSession(log, SessionIdentity(p)) for p in (alice, bob, carol)]
    for session in sessions:
        session.open()

    await sessions[0].send("Promo relâmpago!")
    await sessions[1].send("Obrigado!")

    carol_view = sessions[2].views().broadcast
    assert [m.text for m in carol_view.messages] == ["Promo relâmpago!", "Obrigado!"]
    assert not any(m.is_mine for m in carol_view.messages)


@pytest.mark.asyncio
async def test_on_update_receives_views(log, alice):
    rendered = []
    session = ChatSession(log, SessionIdentity(alice), on_update=rendered.append)
    session.open()

    await session.send("oi")

    assert rendered[-1].broadcast.messages[-1].text == "oi"
    session.close()


@pytest.mark.asyncio
async def test_send_still_completes_after_close(log, alice):
    session = ChatSession(log, SessionIdentity(alice))
    session.open()
    session.close()

    receipt = await session.send("late message")

    assert receipt.message_id
    assert len(log) == 1
    assert session.views().broadcast.messages == []


@pytest.mark.asyncio
async def test_validation_error_leaves_log_untouched(log, alice):
    session = ChatSession(log, SessionIdentity(alice))

    with pytest.raises(EmptyMessageError):
        await session.send("  ")

    assert len(log) == 0


def test_focus_requires_open_session(log, alice):
    session = ChatSession(log, SessionIdentity(alice))
    with pytest.raises(RuntimeError):
        session.focus("bob")


def test_reopen_changes_focus(log, alice):
    session = ChatSession(log, SessionIdentity(alice))
    session.open()

    views = session.open(peer_id="carol")

    assert views.direct.peer_id == "carol"
    assert log.subscriber_count == 1
    session.close()
