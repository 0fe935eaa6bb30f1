"""
Core application enums declaration
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ConversationTypeChoices(models.TextChoices):
    """Defines the kinds of conversation a user can take part in."""

    DM = "dm", _("Direct message")
    GROUP = "group", _("Group")
    CHANNEL = "channel", _("Channel")


class ConversationMemberRoleChoices(models.TextChoices):
    """Defines the roles a user can have inside a conversation."""

    OWNER = "owner", _("Owner")
    ADMIN = "admin", _("Admin")
    MODERATOR = "moderator", _("Moderator")
    MEMBER = "member", _("Member")


class MessageTypeChoices(models.TextChoices):
    """Defines the possible types of a message."""

    TEXT = "text", _("Text")
    IMAGE = "image", _("Image")
    VIDEO = "video", _("Video")
    AUDIO = "audio", _("Audio")
    FILE = "file", _("File")
    SYSTEM = "system", _("System")


class ContactRequestStatusChoices(models.TextChoices):
    """Defines the states of a contact request between two users."""

    PENDING = "pending", _("Pending")
    ACCEPTED = "accepted", _("Accepted")
    DECLINED = "declined", _("Declined")
    BLOCKED = "blocked", _("Blocked")
