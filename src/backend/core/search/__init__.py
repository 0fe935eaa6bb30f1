"""Elasticsearch search functionality for messages, users and conversations."""

from core.search.access import AccessResolver
from core.search.exceptions import ENGINE_ERRORS, AuthorizationError
from core.search.gateway import SearchGateway, get_es_client, get_search_gateway
from core.search.index import IndexingService, get_indexing_service
from core.search.mapping import CONVERSATIONS, INDEX_DEFINITIONS, KINDS, MESSAGES, USERS
from core.search.reader import EntityReader
from core.search.search import SearchService, get_search_service
from core.search.suggest import SuggestionService

__all__ = [
    # Mapping
    "MESSAGES",
    "USERS",
    "CONVERSATIONS",
    "KINDS",
    "INDEX_DEFINITIONS",
    # Errors
    "AuthorizationError",
    "ENGINE_ERRORS",
    # Client & gateway
    "get_es_client",
    "get_search_gateway",
    "SearchGateway",
    # Database access
    "EntityReader",
    "AccessResolver",
    # Indexing
    "IndexingService",
    "get_indexing_service",
    # Searching
    "SearchService",
    "get_search_service",
    "SuggestionService",
]
