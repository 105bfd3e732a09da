"""
Tests for the channel access policy.
"""

import pytest

from vipchat.core.access import AccessPolicy
from vipchat.core.addressing import BROADCAST_CHANNEL, address_channel
from vipchat.core.errors import AccessDeniedError
from vipchat.models.participant import ParticipantProfile

AB = address_channel("alice", "bob")


def test_broadcast_readable_by_everyone(alice):
    policy = AccessPolicy()
    assert policy.can_read(alice, BROADCAST_CHANNEL)
    assert policy.can_read(None, BROADCAST_CHANNEL)


def test_direct_readable_by_members_only(alice, bob, carol):
    policy = AccessPolicy()
    assert policy.can_read(alice, AB)
    assert policy.can_read(bob, AB)
    assert not policy.can_read(carol, AB)
    assert not policy.can_read(None, AB)


def test_admin_role_reads_any_direct_channel(admin):
    assert AccessPolicy().can_read(admin, AB)


def test_configured_moderator_reads_any_direct_channel():
    support = ParticipantProfile(id="support-desk")
    assert AccessPolicy(moderator_ids=["support-desk"]).can_read(support, AB)


def test_require_read_raises(carol):
    with pytest.raises(AccessDeniedError) as exc_info:
        AccessPolicy().require_read(carol, AB)
    assert exc_info.value.kind == "AccessDenied"
