"""Signal handlers keeping the search indexes in sync with core models."""
# pylint: disable=unused-argument

import logging

from django.conf import settings
from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from core import models
from core.tasks import (
    index_conversation_task,
    index_message_task,
    index_user_task,
    reindex_user_content_task,
    remove_conversation_task,
    remove_message_task,
)

logger = logging.getLogger(__name__)


def _schedule(task, object_id, label):
    """Queue an indexing task. Failing to queue never breaks the save."""
    if not getattr(settings, "SEARCH_INDEXING_ENABLED", False):
        return

    try:
        task.delay(str(object_id))
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.exception(
            "Error scheduling search indexing for %s %s: %s", label, object_id, e
        )


@receiver(post_save, sender=models.Message)
def index_message_post_save(sender, instance, created, **kwargs):
    """Index a message after it's saved, or drop it once soft-deleted."""
    if instance.is_deleted:
        _schedule(remove_message_task, instance.id, "message")
    else:
        _schedule(index_message_task, instance.id, "message")


@receiver(post_save, sender=models.Attachment)
def index_attachment_post_save(sender, instance, created, **kwargs):
    """Attachment names and types are part of the message document."""
    _schedule(index_message_task, instance.message_id, "message")


@receiver(post_delete, sender=models.Attachment)
def index_attachment_post_delete(sender, instance, **kwargs):
    """A removed attachment changes the attachment fields of its message."""
    _schedule(index_message_task, instance.message_id, "message")


@receiver(post_delete, sender=models.Message)
def delete_message_from_index(sender, instance, **kwargs):
    """Remove a message from the index after it's deleted."""
    _schedule(remove_message_task, instance.id, "message")


@receiver(pre_save, sender=models.User)
def remember_user_names(sender, instance, **kwargs):
    """Keep the stored names around so a rename can be detected after saving."""
    instance._previous_names = None  # pylint: disable=protected-access
    if instance._state.adding or not settings.SEARCH_INDEXING_ENABLED:
        return
    instance._previous_names = (  # pylint: disable=protected-access
        models.User.objects.filter(pk=instance.pk)
        .values_list("name", "username")
        .first()
    )


@receiver(post_save, sender=models.User)
def index_user_post_save(sender, instance, created, **kwargs):
    """Index a user after it's saved. Deactivated users are removed by the task."""
    _schedule(index_user_task, instance.id, "user")

    previous = getattr(instance, "_previous_names", None)
    if previous is not None and previous != (instance.name, instance.username):
        # Messages and conversations embed the user's names
        _schedule(reindex_user_content_task, instance.id, "user content")


@receiver(post_delete, sender=models.User)
def delete_user_from_index(sender, instance, **kwargs):
    """A deleted user no longer exists, the task removes its document."""
    _schedule(index_user_task, instance.id, "user")


@receiver(post_save, sender=models.Conversation)
def index_conversation_post_save(sender, instance, created, **kwargs):
    """Index a conversation after it's saved."""
    _schedule(index_conversation_task, instance.id, "conversation")


@receiver(post_save, sender=models.ConversationMember)
def index_conversation_member_post_save(sender, instance, created, **kwargs):
    """Member names are part of the conversation document."""
    _schedule(index_conversation_task, instance.conversation_id, "conversation")


@receiver(post_delete, sender=models.ConversationMember)
def index_conversation_member_post_delete(sender, instance, **kwargs):
    """A removed member no longer belongs in the conversation document."""
    _schedule(index_conversation_task, instance.conversation_id, "conversation")


@receiver(post_delete, sender=models.Conversation)
def delete_conversation_from_index(sender, instance, **kwargs):
    """Remove a conversation from the index after it's deleted."""
    _schedule(remove_conversation_task, instance.id, "conversation")
