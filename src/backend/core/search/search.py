"""Search for messages, people and conversations within a user's access."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from django.conf import settings

from core.search import filters
from core.search.access import AccessResolver
from core.search.exceptions import ENGINE_ERRORS
from core.search.gateway import SearchGateway, get_search_gateway
from core.search.mapping import CONVERSATIONS, MESSAGES, USERS
from core.search.reader import EntityReader

logger = logging.getLogger(__name__)


class SearchService:
    """
    Authorized searches.

    Each search resolves the caller's scope first, turns it and the optional
    constraints into filter clauses, then runs a single query on the gateway.
    An empty scope returns an empty result without reaching the engine.
    """

    def __init__(
        self,
        gateway: Optional[SearchGateway] = None,
        reader: Optional[EntityReader] = None,
    ):
        self.gateway = gateway or get_search_gateway()
        self.access = AccessResolver(reader or EntityReader())

    def search_messages(
        self,
        query: str,
        user_id,
        conversation_id=None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        message_types: Optional[Sequence[str]] = None,
        has_attachments: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Search messages in the conversations the user belongs to.

        Args:
            query: Free text to match against content, sender and attachment names
            user_id: The requesting user
            conversation_id: Restrict to one conversation, the user must be a member
            limit: Page size (50 by default)
            offset: Number of hits to skip
            date_from: Only messages created at or after this moment
            date_to: Only messages created at or before this moment
            message_types: Only these message types
            has_attachments: Only messages with (True) or without (False) attachments

        Raises:
            AuthorizationError: the user is not an active member of conversation_id
        """
        conversation_ids = self.access.message_scope(user_id, conversation_id)
        if not conversation_ids:
            return self.gateway.empty_result(MESSAGES, query, limit, offset)

        clauses = [filters.any_of("conversationId", conversation_ids)]
        clauses.extend(filters.date_range("createdAt", date_from, date_to))
        if message_types:
            clauses.append(filters.any_of("type", message_types))
        clauses.extend(filters.flag("hasAttachments", has_attachments))

        return self._run(
            MESSAGES,
            query,
            filters=clauses,
            sort=["createdAt:desc"],
            limit=limit,
            offset=offset,
            highlight_attributes=["content", "senderName"],
            crop_attributes=["content"],
            crop_length=settings.SEARCH_CROP_LENGTH,
        )

    def search_users(
        self,
        query: str,
        current_user_id,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        exclude_blocked: bool = True,
    ) -> Dict[str, Any]:
        """Search active users, hiding the ones the requester blocked."""
        clauses = [filters.Equals("isActive", True)]

        if exclude_blocked:
            blocked_ids = self.access.blocked_user_ids(current_user_id)
            if blocked_ids:
                clauses.append(filters.none_of("id", blocked_ids))

        return self._run(
            USERS,
            query,
            filters=clauses,
            sort=["username:asc"],
            limit=limit,
            offset=offset,
            highlight_attributes=["username", "name"],
        )

    def search_conversations(
        self,
        query: str,
        user_id,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        conversation_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Search the user's active conversations by title and member names."""
        conversation_ids = self.access.conversation_scope(user_id)
        if not conversation_ids:
            return self.gateway.empty_result(CONVERSATIONS, query, limit, offset)

        clauses = [filters.any_of("id", conversation_ids)]
        if conversation_type:
            clauses.append(filters.Equals("type", conversation_type))
        clauses.append(filters.Equals("isActive", True))

        return self._run(
            CONVERSATIONS,
            query,
            filters=clauses,
            sort=["updatedAt:desc"],
            limit=limit,
            offset=offset,
            highlight_attributes=["title", "memberNames"],
        )

    def _run(self, kind, query, **options):
        try:
            result = self.gateway.search(kind, query, **options)
        except ENGINE_ERRORS as e:
            logger.error("%s search failed: %s", kind, e)
            raise

        if result["processingTimeMs"] > settings.SEARCH_SLOW_QUERY_MS:
            logger.warning(
                "Slow %s search query: %r took %dms",
                kind,
                query,
                result["processingTimeMs"],
            )
        return result


def get_search_service():
    """Search service bound to the process wide gateway."""
    return SearchService(get_search_gateway(), EntityReader())
