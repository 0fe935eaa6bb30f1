"""Build flat search documents from relational entities."""

from typing import Any, Dict, Iterable

from core import models
from core.search.filters import to_epoch_seconds


def build_message_document(message: models.Message) -> Dict[str, Any]:
    """
    Denormalize a message with its sender, attachments and reply target.

    The reply content is a snapshot: editing the replied-to message later does
    not touch this document until the reply itself is indexed again.
    """
    attachments = list(message.attachments.all())
    reply_to = message.reply_to

    return {
        "id": str(message.id),
        "conversationId": str(message.conversation_id),
        "senderId": str(message.sender_id),
        "senderName": message.sender.name,
        "senderUsername": message.sender.username,
        "content": message.content,
        "type": message.type,
        "createdAt": to_epoch_seconds(message.created_at),
        "hasAttachments": len(attachments) > 0,
        "attachmentTypes": [attachment.mime_type for attachment in attachments],
        "attachmentNames": " ".join(attachment.file_name for attachment in attachments),
        "isReply": message.reply_to_id is not None,
        "replyToContent": (reply_to.content or "") if reply_to else "",
    }


def build_user_document(user: models.User) -> Dict[str, Any]:
    """Searchable profile of a user."""
    return {
        "id": str(user.id),
        "username": user.username,
        "name": user.name,
        "bio": user.bio or "",
        "avatarUrl": user.avatar_url or None,
        "createdAt": to_epoch_seconds(user.created_at),
        "isActive": user.is_active,
    }


def build_conversation_document(
    conversation: models.Conversation,
    members: Iterable[models.ConversationMember],
) -> Dict[str, Any]:
    """A conversation with the names of its active members, for matching by people."""
    members = list(members)
    return {
        "id": str(conversation.id),
        "type": conversation.type,
        "title": conversation.title or "",
        "memberIds": [str(member.user_id) for member in members],
        "memberNames": " ".join(
            member.user.name for member in members if member.user.name
        ),
        "memberUsernames": " ".join(
            member.user.username for member in members if member.user.username
        ),
        "createdAt": to_epoch_seconds(conversation.created_at),
        "updatedAt": to_epoch_seconds(conversation.updated_at),
        "isActive": not conversation.is_archived,
    }
