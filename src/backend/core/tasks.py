"""Core tasks."""

# pylint: disable=unused-argument
from django.conf import settings

from celery.utils.log import get_task_logger

from core.search import ENGINE_ERRORS, KINDS, MESSAGES, USERS, get_indexing_service

from chat.celery_app import app as celery_app

logger = get_task_logger(__name__)

# Engine failures are retried with exponential backoff; anything else fails the task.
RETRY_OPTIONS = {
    "autoretry_for": ENGINE_ERRORS,
    "retry_backoff": True,
    "retry_backoff_max": 600,
    "retry_jitter": True,
    "max_retries": 5,
}


def _indexing_disabled(name):
    if not settings.SEARCH_INDEXING_ENABLED:
        logger.info("Search indexing is disabled, skipping %s.", name)
        return True
    return False


def _prepared_service():
    service = get_indexing_service()
    # Creates missing indexes on the first task run in this process
    service.gateway.setup()
    return service


@celery_app.task(bind=True, **RETRY_OPTIONS)
def index_message_task(self, message_id):
    """Index a single message."""
    if _indexing_disabled("index_message_task"):
        return {"success": False, "reason": "disabled"}

    try:
        indexed = _prepared_service().index_message(message_id)
        return {"message_id": str(message_id), "success": True, "indexed": indexed}
    except Exception as e:
        logger.exception(
            "Error in index_message_task for message %s: %s", message_id, e
        )
        raise


@celery_app.task(bind=True, **RETRY_OPTIONS)
def remove_message_task(self, message_id):
    """Remove a single message from the index."""
    if _indexing_disabled("remove_message_task"):
        return {"success": False, "reason": "disabled"}

    try:
        _prepared_service().remove_message_from_index(message_id)
        return {"message_id": str(message_id), "success": True}
    except Exception as e:
        logger.exception(
            "Error in remove_message_task for message %s: %s", message_id, e
        )
        raise


@celery_app.task(bind=True, **RETRY_OPTIONS)
def index_user_task(self, user_id):
    """Index a user, or drop it from the index when it is inactive."""
    if _indexing_disabled("index_user_task"):
        return {"success": False, "reason": "disabled"}

    try:
        indexed = _prepared_service().index_user(user_id)
        return {"user_id": str(user_id), "success": True, "indexed": indexed}
    except Exception as e:
        logger.exception("Error in index_user_task for user %s: %s", user_id, e)
        raise


@celery_app.task(bind=True, **RETRY_OPTIONS)
def index_conversation_task(self, conversation_id):
    """Index a conversation with its active members."""
    if _indexing_disabled("index_conversation_task"):
        return {"success": False, "reason": "disabled"}

    try:
        indexed = _prepared_service().index_conversation(conversation_id)
        return {
            "conversation_id": str(conversation_id),
            "success": True,
            "indexed": indexed,
        }
    except Exception as e:
        logger.exception(
            "Error in index_conversation_task for conversation %s: %s",
            conversation_id,
            e,
        )
        raise


@celery_app.task(bind=True, **RETRY_OPTIONS)
def remove_conversation_task(self, conversation_id):
    """Remove a conversation from the index."""
    if _indexing_disabled("remove_conversation_task"):
        return {"success": False, "reason": "disabled"}

    try:
        _prepared_service().remove_conversation_from_index(conversation_id)
        return {"conversation_id": str(conversation_id), "success": True}
    except Exception as e:
        logger.exception(
            "Error in remove_conversation_task for conversation %s: %s",
            conversation_id,
            e,
        )
        raise


@celery_app.task(bind=True, **RETRY_OPTIONS)
def reindex_user_content_task(self, user_id):
    """Refresh the messages and conversations showing a renamed user."""
    if _indexing_disabled("reindex_user_content_task"):
        return {"success": False, "reason": "disabled"}

    try:
        counts = _prepared_service().reindex_user_content(user_id)
        return {"user_id": str(user_id), "success": True, **counts}
    except Exception as e:
        logger.exception(
            "Error in reindex_user_content_task for user %s: %s", user_id, e
        )
        raise


def _bulk_reindex_base(kind, batch_size=None, start_offset=0, update_progress=None):
    """Reindex every document of one kind.

    Args:
        kind: messages, users or conversations
        batch_size: Documents per bulk request
        start_offset: Where to resume a previous run
        update_progress: Optional callback receiving (indexed, offset)
    """
    if kind not in KINDS:
        raise ValueError(f"Unknown index: {kind}")

    service = _prepared_service()
    if kind == MESSAGES:
        bulk_index = service.bulk_index_messages
    elif kind == USERS:
        bulk_index = service.bulk_index_users
    else:
        bulk_index = service.bulk_index_conversations

    return bulk_index(
        batch_size=batch_size,
        start_offset=start_offset,
        update_progress=update_progress,
    )


@celery_app.task(bind=True)
def bulk_reindex_task(self, kind, batch_size=None, start_offset=0):
    """Celery task wrapper for reindexing every document of one kind."""

    def update_progress(indexed, offset):
        """Update task progress."""
        self.update_state(
            state="PROGRESS",
            meta={"kind": kind, "indexed": indexed, "offset": offset},
        )

    try:
        return _bulk_reindex_base(kind, batch_size, start_offset, update_progress)
    except Exception as e:
        logger.exception("Error in bulk_reindex_task for %s: %s", kind, e)
        raise
