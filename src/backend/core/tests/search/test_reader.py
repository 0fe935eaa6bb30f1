"""Tests for the read-only database queries used by search."""
# pylint: disable=redefined-outer-name

from datetime import timedelta

from django.utils import timezone

import pytest

from core import enums, factories
from core.search.reader import EntityReader

pytestmark = pytest.mark.django_db


@pytest.fixture
def reader():
    """The real reader."""
    return EntityReader()


@pytest.fixture
def user():
    """The requesting user."""
    return factories.UserFactory()


def test_find_active_membership(reader, user):
    """Only active memberships count."""
    member_of = factories.ConversationMemberFactory(user=user).conversation
    left = factories.ConversationMemberFactory(user=user, is_active=False).conversation
    stranger = factories.ConversationFactory()

    assert reader.find_active_membership(user.id, member_of.id) is not None
    assert reader.find_active_membership(str(user.id), str(member_of.id)) is not None
    assert reader.find_active_membership(user.id, left.id) is None
    assert reader.find_active_membership(user.id, stranger.id) is None


def test_find_active_conversation_ids(reader, user):
    """Active memberships, oldest first, as strings."""
    now = timezone.now()
    recent = factories.ConversationMemberFactory(user=user, joined_at=now)
    old = factories.ConversationMemberFactory(
        user=user, joined_at=now - timedelta(days=3)
    )
    factories.ConversationMemberFactory(user=user, is_active=False)
    factories.ConversationMemberFactory()

    assert reader.find_active_conversation_ids(user.id) == [
        str(old.conversation_id),
        str(recent.conversation_id),
    ]


def test_find_active_conversation_ids_none(reader, user):
    """A user without memberships has an empty scope."""
    assert reader.find_active_conversation_ids(user.id) == []


def test_find_blocked_user_ids(reader, user):
    """Only the users this user blocked, not the ones who blocked them."""
    blocked = factories.BlockedUserFactory(blocking_user=user).blocked_user
    factories.BlockedUserFactory(blocked_user=user)

    assert reader.find_blocked_user_ids(user.id) == [str(blocked.id)]


def test_find_accepted_contacts(reader, user):
    """Accepted contacts in both directions, matched on username or name."""
    alice = factories.UserFactory(username="alice", name="Alice Martin")
    akeys = factories.UserFactory(username="akeys", name="Alicia Keys")
    alison = factories.UserFactory(username="alison", name="Alison")
    bob = factories.UserFactory(username="bob", name="Bob")
    factories.ContactRequestFactory(sender=user, receiver=alice)
    factories.ContactRequestFactory(sender=akeys, receiver=user)
    factories.ContactRequestFactory(
        sender=user,
        receiver=alison,
        status=enums.ContactRequestStatusChoices.PENDING,
    )
    factories.ContactRequestFactory(sender=user, receiver=bob)

    contacts = reader.find_accepted_contacts(user.id, "ali", limit=5)

    assert sorted(contacts, key=lambda contact: contact["username"]) == [
        {"id": str(akeys.id), "username": "akeys", "name": "Alicia Keys"},
        {"id": str(alice.id), "username": "alice", "name": "Alice Martin"},
    ]
    assert len(reader.find_accepted_contacts(user.id, "ali", limit=1)) == 1


def test_find_recent_visible_messages(reader, user):
    """Only non-deleted messages from conversations the user is still in."""
    visible = factories.ConversationFactory(members=[user])
    left = factories.ConversationFactory()
    factories.ConversationMemberFactory(conversation=left, user=user, is_active=False)
    other = factories.ConversationFactory()

    factories.MessageFactory(conversation=visible, content="Hello there")
    factories.MessageFactory(conversation=visible, content="Goodbye")
    factories.MessageFactory(
        conversation=visible, content="hello gone", is_deleted=True
    )
    factories.MessageFactory(conversation=left, content="hello from before")
    factories.MessageFactory(conversation=other, content="hello stranger")

    assert reader.find_recent_visible_messages(user.id, "hello") == ["Hello there"]


def test_find_recent_visible_messages_limit(reader, user):
    """The scan is bounded."""
    conversation = factories.ConversationFactory(members=[user])
    factories.MessageFactory.create_batch(
        4, conversation=conversation, content="project update"
    )

    assert len(reader.find_recent_visible_messages(user.id, "proj", limit=3)) == 3


def test_find_message_with_relations(reader):
    """Messages are found by id, missing ones are None."""
    message = factories.MessageFactory()
    factories.AttachmentFactory(message=message)

    found = reader.find_message_with_relations(str(message.id))

    assert found == message
    assert len(found.attachments.all()) == 1
    assert reader.find_message_with_relations(factories.UserFactory().id) is None


def test_find_user_by_id(reader):
    """Inactive users are returned too, callers decide what to do with them."""
    inactive = factories.UserFactory(is_active=False)

    assert reader.find_user_by_id(inactive.id) == inactive
    assert reader.find_user_by_id(factories.ConversationFactory().id) is None


def test_find_conversation_with_active_members(reader):
    """Active members are prefetched under active_members."""
    ann = factories.UserFactory()
    bob = factories.UserFactory()
    conversation = factories.ConversationFactory(members=[ann])
    factories.ConversationMemberFactory(
        conversation=conversation, user=bob, is_active=False
    )

    found = reader.find_conversation_with_active_members(conversation.id)

    assert [member.user for member in found.active_members] == [ann]
    assert reader.find_conversation_with_active_members(ann.id) is None


def test_page_non_deleted_messages(reader):
    """Pages cover every non-deleted message exactly once."""
    messages = factories.MessageFactory.create_batch(3)
    factories.MessageFactory(is_deleted=True)

    first = reader.page_non_deleted_messages(0, 2)
    second = reader.page_non_deleted_messages(2, 2)

    assert len(first) == 2
    assert len(second) == 1
    assert {message.id for message in first + second} == {
        message.id for message in messages
    }
    assert reader.page_non_deleted_messages(4, 2) == []


def test_page_active_users(reader):
    """Inactive users are not part of a reindex."""
    active = factories.UserFactory.create_batch(2)
    factories.UserFactory(is_active=False)

    page = reader.page_active_users(0, 10)

    assert {user.id for user in page} == {user.id for user in active}


def test_page_conversations(reader):
    """Every conversation comes with its active members."""
    user = factories.UserFactory()
    with_members = factories.ConversationFactory(members=[user])
    empty = factories.ConversationFactory()

    page = reader.page_conversations(0, 10)

    by_id = {conversation.id: conversation for conversation in page}
    assert set(by_id) == {with_members.id, empty.id}
    assert [member.user_id for member in by_id[with_members.id].active_members] == [
        user.id
    ]
    assert by_id[empty.id].active_members == []


def test_find_accepted_contacts_once_per_person(reader, user):
    """Requests accepted in both directions give a single contact."""
    alice = factories.UserFactory(username="alice", name="Alice")
    albert = factories.UserFactory(username="albert", name="Albert")
    factories.ContactRequestFactory(sender=user, receiver=alice)
    factories.ContactRequestFactory(sender=alice, receiver=user)
    factories.ContactRequestFactory(sender=user, receiver=albert)

    contacts = reader.find_accepted_contacts(user.id, "al", limit=2)

    assert sorted(contact["id"] for contact in contacts) == sorted(
        [str(alice.id), str(albert.id)]
    )


def test_page_messages_by_sender(reader, user):
    """Only the user's own non-deleted messages are paged."""
    sent = factories.MessageFactory.create_batch(3, sender=user)
    factories.MessageFactory(sender=user, is_deleted=True)
    factories.MessageFactory()

    first = reader.page_messages_by_sender(user.id, 0, 2)
    second = reader.page_messages_by_sender(user.id, 2, 2)

    assert len(first) == 2
    assert {message.id for message in first + second} == {
        message.id for message in sent
    }


def test_page_conversations_of_member(reader, user):
    """Conversations the user left are not refreshed."""
    other = factories.UserFactory()
    current = factories.ConversationFactory(members=[user, other])
    left = factories.ConversationFactory()
    factories.ConversationMemberFactory(conversation=left, user=user, is_active=False)
    factories.ConversationFactory(members=[other])

    page = reader.page_conversations_of_member(user.id, 0, 10)

    assert [conversation.id for conversation in page] == [current.id]
    assert {member.user_id for member in page[0].active_members} == {
        user.id,
        other.id,
    }
