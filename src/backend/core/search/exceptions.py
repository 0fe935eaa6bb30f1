"""Errors raised by the search subsystem."""

from elasticsearch import ApiError, TransportError
from elasticsearch.helpers import BulkIndexError

# Failures talking to the search engine. They are never wrapped: callers catch
# this tuple when they need to tell engine problems apart from their own.
ENGINE_ERRORS = (ApiError, TransportError, BulkIndexError)


class AuthorizationError(Exception):
    """Raised when a user asks for a search scope they have no access to."""

    def __init__(self, message="not a member", user_id=None, conversation_id=None):
        """Keep the offending identifiers for logging."""
        self.message = message
        self.user_id = user_id
        self.conversation_id = conversation_id
        super().__init__(self.message)
