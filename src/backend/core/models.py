"""
Declare and configure the models for the chat core application
"""
# pylint: disable=too-many-instance-attributes

import uuid

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.enums import (
    ContactRequestStatusChoices,
    ConversationMemberRoleChoices,
    ConversationTypeChoices,
    MessageTypeChoices,
)


class BaseModel(models.Model):
    """
    Serves as an abstract base model for other models, ensuring that records are validated
    before saving as Django doesn't do it by default.

    Includes fields common to all models: a UUID primary key and creation/update timestamps.
    """

    id = models.UUIDField(
        verbose_name=_("id"),
        help_text=_("primary key for the record as UUID"),
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    created_at = models.DateTimeField(
        verbose_name=_("created on"),
        help_text=_("date and time at which a record was created"),
        auto_now_add=True,
        editable=False,
    )
    updated_at = models.DateTimeField(
        verbose_name=_("updated on"),
        help_text=_("date and time at which a record was last updated"),
        auto_now=True,
        editable=False,
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        """Call `full_clean` before saving."""
        self.full_clean()
        super().save(*args, **kwargs)


class User(BaseModel):
    """A chat account. Authentication lives outside this application."""

    username = models.CharField(_("username"), max_length=50, unique=True)
    email = models.EmailField(_("email address"), blank=True, null=True)
    name = models.CharField(_("display name"), max_length=100)
    bio = models.TextField(_("bio"), blank=True, null=True)
    avatar_url = models.URLField(_("avatar url"), max_length=500, blank=True, null=True)
    is_active = models.BooleanField(
        _("active"),
        default=True,
        help_text=_(
            "Whether this user should be treated as active. "
            "Unselect this instead of deleting accounts."
        ),
    )

    class Meta:
        db_table = "chat_user"
        verbose_name = _("user")
        verbose_name_plural = _("users")

    def __str__(self):
        return self.username


class Conversation(BaseModel):
    """A direct message, group or channel grouping messages between members."""

    type = models.CharField(
        _("type"),
        max_length=10,
        choices=ConversationTypeChoices.choices,
        default=ConversationTypeChoices.DM,
    )
    title = models.CharField(_("title"), max_length=255, blank=True, null=True)
    description = models.TextField(_("description"), blank=True, null=True)
    is_archived = models.BooleanField(_("is archived"), default=False)

    class Meta:
        db_table = "chat_conversation"
        verbose_name = _("conversation")
        verbose_name_plural = _("conversations")

    def __str__(self):
        return self.title or f"{self.type} {self.id}"


class ConversationMember(BaseModel):
    """Membership of a user in a conversation. Leaving keeps the row inactive."""

    conversation = models.ForeignKey(
        Conversation, on_delete=models.CASCADE, related_name="members"
    )
    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(
        _("role"),
        max_length=20,
        choices=ConversationMemberRoleChoices.choices,
        default=ConversationMemberRoleChoices.MEMBER,
    )
    is_active = models.BooleanField(_("active"), default=True)
    joined_at = models.DateTimeField(_("joined at"), default=timezone.now)
    left_at = models.DateTimeField(_("left at"), null=True, blank=True)

    class Meta:
        db_table = "chat_conversation_member"
        verbose_name = _("conversation member")
        verbose_name_plural = _("conversation members")
        unique_together = ("conversation", "user")

    def __str__(self):
        return f"{self.user!s} in {self.conversation!s}"


class Message(BaseModel):
    """A message posted by a member in a conversation."""

    conversation = models.ForeignKey(
        Conversation, on_delete=models.CASCADE, related_name="messages"
    )
    sender = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="sent_messages"
    )
    type = models.CharField(
        _("type"),
        max_length=10,
        choices=MessageTypeChoices.choices,
        default=MessageTypeChoices.TEXT,
    )
    content = models.TextField(_("content"), blank=True, default="")
    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
    )

    is_edited = models.BooleanField(_("is edited"), default=False)
    edited_at = models.DateTimeField(_("edited at"), null=True, blank=True)
    is_deleted = models.BooleanField(_("is deleted"), default=False)
    deleted_at = models.DateTimeField(_("deleted at"), null=True, blank=True)

    class Meta:
        db_table = "chat_message"
        verbose_name = _("message")
        verbose_name_plural = _("messages")
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.sender!s}: {self.content[:50]}"

    def soft_delete(self):
        """Flag the message as deleted while keeping the row."""
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save()


class Attachment(BaseModel):
    """A file attached to a message. Binary content lives in object storage."""

    message = models.ForeignKey(
        Message, on_delete=models.CASCADE, related_name="attachments"
    )
    object_key = models.CharField(_("object key"), max_length=500)
    file_name = models.CharField(_("file name"), max_length=255)
    mime_type = models.CharField(_("mime type"), max_length=127)
    size_bytes = models.PositiveIntegerField(_("size in bytes"), default=0)

    class Meta:
        db_table = "chat_attachment"
        verbose_name = _("attachment")
        verbose_name_plural = _("attachments")

    def __str__(self):
        return self.file_name


class BlockedUser(BaseModel):
    """A user hiding another user from their searches and conversations."""

    blocking_user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="blocks"
    )
    blocked_user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="blocked_by"
    )

    class Meta:
        db_table = "chat_blocked_user"
        verbose_name = _("blocked user")
        verbose_name_plural = _("blocked users")
        unique_together = ("blocking_user", "blocked_user")

    def __str__(self):
        return f"{self.blocking_user!s} blocks {self.blocked_user!s}"


class ContactRequest(BaseModel):
    """A contact request between two users. Accepted requests make contacts."""

    sender = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="sent_contact_requests"
    )
    receiver = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="received_contact_requests"
    )
    status = models.CharField(
        _("status"),
        max_length=10,
        choices=ContactRequestStatusChoices.choices,
        default=ContactRequestStatusChoices.PENDING,
    )

    class Meta:
        db_table = "chat_contact_request"
        verbose_name = _("contact request")
        verbose_name_plural = _("contact requests")
        unique_together = ("sender", "receiver")

    def __str__(self):
        return f"{self.sender!s} -> {self.receiver!s} ({self.status})"
