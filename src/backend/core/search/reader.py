"""Read-only queries on the relational store used by search and indexing."""

from typing import Dict, List, Optional

from django.db.models import Prefetch, Q

from core import enums, models


class EntityReader:
    """
    Every database read the search subsystem needs, in one place.

    Nothing here writes. Identifiers are accepted as strings or UUIDs and
    returned as strings.
    """

    # Access control

    def find_active_membership(
        self, user_id, conversation_id
    ) -> Optional[models.ConversationMember]:
        """Active membership of a user in a conversation, if any."""
        return models.ConversationMember.objects.filter(
            user_id=user_id, conversation_id=conversation_id, is_active=True
        ).first()

    def find_active_conversation_ids(self, user_id) -> List[str]:
        """Conversations the user currently belongs to, oldest membership first."""
        conversation_ids = (
            models.ConversationMember.objects.filter(user_id=user_id, is_active=True)
            .order_by("joined_at", "id")
            .values_list("conversation_id", flat=True)
        )
        return [str(conversation_id) for conversation_id in conversation_ids]

    def find_blocked_user_ids(self, user_id) -> List[str]:
        """Users blocked by this user."""
        blocked_ids = (
            models.BlockedUser.objects.filter(blocking_user_id=user_id)
            .order_by("created_at", "id")
            .values_list("blocked_user_id", flat=True)
        )
        return [str(blocked_id) for blocked_id in blocked_ids]

    # Suggestions

    def find_accepted_contacts(self, user_id, query, limit=2) -> List[Dict[str, str]]:
        """Accepted contacts whose username or name contains the query."""
        receiver_matches = Q(receiver__username__icontains=query) | Q(
            receiver__name__icontains=query
        )
        sender_matches = Q(sender__username__icontains=query) | Q(
            sender__name__icontains=query
        )
        requests = (
            models.ContactRequest.objects.filter(
                status=enums.ContactRequestStatusChoices.ACCEPTED
            )
            .filter(
                (Q(sender_id=user_id) & receiver_matches)
                | (Q(receiver_id=user_id) & sender_matches)
            )
            .select_related("sender", "receiver")
            .order_by("-updated_at", "id")
        )

        # A pair can have accepted requests in both directions
        contacts = {}
        for request in requests:
            if str(request.sender_id) == str(user_id):
                contact = request.receiver
            else:
                contact = request.sender
            contacts.setdefault(
                str(contact.id),
                {
                    "id": str(contact.id),
                    "username": contact.username,
                    "name": contact.name,
                },
            )
            if len(contacts) >= limit:
                break
        return list(contacts.values())

    def find_recent_visible_messages(self, user_id, contains, limit=50) -> List[str]:
        """Content of the latest non-deleted messages the user can see."""
        return list(
            models.Message.objects.filter(
                conversation__members__user_id=user_id,
                conversation__members__is_active=True,
                is_deleted=False,
                content__icontains=contains,
            )
            .order_by("-created_at")
            .values_list("content", flat=True)[:limit]
        )

    # Indexing

    @staticmethod
    def _messages_with_relations():
        return models.Message.objects.select_related(
            "sender", "reply_to"
        ).prefetch_related("attachments")

    def find_message_with_relations(self, message_id) -> Optional[models.Message]:
        """A message with its sender, attachments and reply target."""
        return self._messages_with_relations().filter(id=message_id).first()

    def find_user_by_id(self, user_id) -> Optional[models.User]:
        """A user, active or not."""
        return models.User.objects.filter(id=user_id).first()

    def find_conversation_with_active_members(
        self, conversation_id
    ) -> Optional[models.Conversation]:
        """A conversation with its active members under ``active_members``."""
        return (
            models.Conversation.objects.filter(id=conversation_id)
            .prefetch_related(self._active_members_prefetch())
            .first()
        )

    def page_non_deleted_messages(self, offset, limit) -> List[models.Message]:
        """One page of non-deleted messages, oldest first."""
        return list(
            self._messages_with_relations()
            .filter(is_deleted=False)
            .order_by("created_at", "id")[offset : offset + limit]
        )

    def page_messages_by_sender(self, user_id, offset, limit) -> List[models.Message]:
        """One page of a user's non-deleted messages, oldest first."""
        return list(
            self._messages_with_relations()
            .filter(sender_id=user_id, is_deleted=False)
            .order_by("created_at", "id")[offset : offset + limit]
        )

    def page_conversations_of_member(
        self, user_id, offset, limit
    ) -> List[models.Conversation]:
        """One page of the conversations a user is an active member of."""
        return list(
            models.Conversation.objects.filter(
                members__user_id=user_id, members__is_active=True
            )
            .prefetch_related(self._active_members_prefetch())
            .order_by("created_at", "id")[offset : offset + limit]
        )

    def page_active_users(self, offset, limit) -> List[models.User]:
        """One page of active users, oldest first."""
        return list(
            models.User.objects.filter(is_active=True).order_by("created_at", "id")[
                offset : offset + limit
            ]
        )

    def page_conversations(self, offset, limit) -> List[models.Conversation]:
        """One page of conversations with their active members, oldest first."""
        return list(
            models.Conversation.objects.prefetch_related(
                self._active_members_prefetch()
            ).order_by("created_at", "id")[offset : offset + limit]
        )

    @staticmethod
    def _active_members_prefetch():
        return Prefetch(
            "members",
            queryset=models.ConversationMember.objects.filter(is_active=True)
            .select_related("user")
            .order_by("joined_at", "id"),
            to_attr="active_members",
        )
