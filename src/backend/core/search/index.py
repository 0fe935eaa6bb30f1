"""Keep the search indexes in sync with the database."""

import logging
from typing import Any, Callable, Dict, Optional

from django.conf import settings

from core.search.documents import (
    build_conversation_document,
    build_message_document,
    build_user_document,
)
from core.search.gateway import SearchGateway, get_search_gateway
from core.search.mapping import CONVERSATIONS, MESSAGES, USERS
from core.search.reader import EntityReader

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def _build_conversation(conversation):
    return build_conversation_document(conversation, conversation.active_members)


class IndexingService:
    """
    Single entity sync and paged bulk reindexing.

    Single entity calls are explicit requests: engine and database errors are
    raised to the caller. An entity that no longer exists (or is deleted or
    deactivated) is skipped and the call returns False.
    """

    def __init__(
        self,
        gateway: Optional[SearchGateway] = None,
        reader: Optional[EntityReader] = None,
    ):
        self.gateway = gateway or get_search_gateway()
        self.reader = reader or EntityReader()

    # Messages

    def index_message(self, message_id) -> bool:
        """Index a single message. Deleted or missing messages are left untouched."""
        message = self.reader.find_message_with_relations(message_id)
        if message is None or message.is_deleted:
            logger.debug("Message %s is missing or deleted, not indexing", message_id)
            return False

        self.gateway.index_one(MESSAGES, build_message_document(message))
        return True

    def update_message_index(self, message_id) -> bool:
        """Re-index a message after it changed. Indexing is an upsert."""
        return self.index_message(message_id)

    def remove_message_from_index(self, message_id) -> None:
        """Remove a message from the index."""
        self.gateway.delete_one(MESSAGES, str(message_id))

    # Users

    def index_user(self, user_id) -> bool:
        """Index a user. A missing or deactivated user is removed from the index."""
        user = self.reader.find_user_by_id(user_id)
        if user is None or not user.is_active:
            logger.debug("User %s is missing or inactive, removing from index", user_id)
            self.gateway.delete_one(USERS, str(user_id))
            return False

        self.gateway.index_one(USERS, build_user_document(user))
        return True

    def remove_user_from_index(self, user_id) -> None:
        """Remove a user from the index."""
        self.gateway.delete_one(USERS, str(user_id))

    # Conversations

    def index_conversation(self, conversation_id) -> bool:
        """Index a conversation with its active members."""
        conversation = self.reader.find_conversation_with_active_members(
            conversation_id
        )
        if conversation is None:
            logger.debug("Conversation %s is missing, not indexing", conversation_id)
            return False

        self.gateway.index_one(
            CONVERSATIONS,
            build_conversation_document(conversation, conversation.active_members),
        )
        return True

    def remove_conversation_from_index(self, conversation_id) -> None:
        """Remove a conversation from the index."""
        self.gateway.delete_one(CONVERSATIONS, str(conversation_id))

    # Bulk

    def bulk_index_messages(
        self,
        batch_size: Optional[int] = None,
        start_offset: int = 0,
        update_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """
        Reindex every non-deleted message, oldest first, one bulk request per page.

        Pages are processed one after the other. Nothing is checkpointed: an
        interrupted run is restarted from offset 0, or from ``start_offset``
        when the caller knows how far the previous run went.
        """
        return self._bulk_index(
            MESSAGES,
            self.reader.page_non_deleted_messages,
            build_message_document,
            batch_size,
            start_offset,
            update_progress,
        )

    def bulk_index_users(
        self,
        batch_size: Optional[int] = None,
        start_offset: int = 0,
        update_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """Reindex every active user."""
        return self._bulk_index(
            USERS,
            self.reader.page_active_users,
            build_user_document,
            batch_size,
            start_offset,
            update_progress,
        )

    def bulk_index_conversations(
        self,
        batch_size: Optional[int] = None,
        start_offset: int = 0,
        update_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """Reindex every conversation."""
        return self._bulk_index(
            CONVERSATIONS,
            self.reader.page_conversations,
            _build_conversation,
            batch_size,
            start_offset,
            update_progress,
        )

    def reindex_user_content(
        self, user_id, batch_size: Optional[int] = None
    ) -> Dict[str, int]:
        """
        Refresh the documents that carry a user's name and username.

        Messages keep the sender's names and conversations keep their members'
        names, so both go stale when a user is renamed.
        """
        messages = self._bulk_index(
            MESSAGES,
            lambda offset, limit: self.reader.page_messages_by_sender(
                user_id, offset, limit
            ),
            build_message_document,
            batch_size,
            0,
            None,
        )
        conversations = self._bulk_index(
            CONVERSATIONS,
            lambda offset, limit: self.reader.page_conversations_of_member(
                user_id, offset, limit
            ),
            _build_conversation,
            batch_size,
            0,
            None,
        )
        return {
            "messages": messages["indexed"],
            "conversations": conversations["indexed"],
        }

    # pylint: disable=too-many-arguments
    def _bulk_index(
        self, kind, fetch_page, build, batch_size, start_offset, update_progress
    ):
        if batch_size is None:
            batch_size = settings.SEARCH_BULK_BATCH_SIZE
        if batch_size < 1:
            raise ValueError("batch_size must be a positive integer")

        logger.info("Starting bulk %s indexing from offset %d", kind, start_offset)
        offset = start_offset
        indexed = 0
        batches = 0

        try:
            while True:
                page = fetch_page(offset, batch_size)
                if not page:
                    break

                self.gateway.index_batch(kind, [build(entity) for entity in page])

                indexed += len(page)
                batches += 1
                offset += batch_size
                logger.info("Indexed %d %s...", indexed, kind)

                if update_progress:
                    update_progress(indexed, offset)
        except Exception:
            logger.exception(
                "Bulk %s indexing failed at offset %d after %d documents",
                kind,
                offset,
                indexed,
            )
            raise

        logger.info(
            "Bulk %s indexing completed. Total documents indexed: %d", kind, indexed
        )
        return {
            "success": True,
            "indexed": indexed,
            "batches": batches,
            "offset": offset,
        }

    # Maintenance

    def get_search_stats(self) -> Dict[str, Dict[str, Any]]:
        """Document counts per index."""
        return self.gateway.get_stats()

    def clear_index(self, kind) -> None:
        """Remove all documents of a kind."""
        self.gateway.clear_index(kind)


def get_indexing_service():
    """Indexing service bound to the process wide gateway."""
    return IndexingService(get_search_gateway(), EntityReader())
