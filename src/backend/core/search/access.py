"""Work out which slice of the index a user is allowed to search."""

import logging
from typing import List, Optional

from core.search.exceptions import AuthorizationError
from core.search.reader import EntityReader

logger = logging.getLogger(__name__)


class AccessResolver:
    """Derives per-request search scopes from memberships and blocks. Nothing is cached."""

    def __init__(self, reader: Optional[EntityReader] = None):
        self.reader = reader or EntityReader()

    def message_scope(self, user_id, conversation_id=None) -> List[str]:
        """
        Conversation ids whose messages the user may search.

        With a conversation id, the user must be an active member of it or
        AuthorizationError is raised. Without one, every active conversation of
        the user is returned, possibly none.
        """
        if conversation_id:
            if self.reader.find_active_membership(user_id, conversation_id) is None:
                logger.info(
                    "User %s is not a member of conversation %s",
                    user_id,
                    conversation_id,
                )
                raise AuthorizationError(
                    "not a member", user_id=user_id, conversation_id=conversation_id
                )
            return [str(conversation_id)]

        return self.conversation_scope(user_id)

    def conversation_scope(self, user_id) -> List[str]:
        """Conversation ids the user is an active member of."""
        return self.reader.find_active_conversation_ids(user_id)

    def blocked_user_ids(self, user_id) -> List[str]:
        """Users to hide from this user's people search."""
        return self.reader.find_blocked_user_ids(user_id)
