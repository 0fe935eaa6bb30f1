"""Elasticsearch index and mapping configuration."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

# Index kinds, also used as index names (before the configured prefix)
MESSAGES = "messages"
USERS = "users"
CONVERSATIONS = "conversations"

KINDS = (MESSAGES, USERS, CONVERSATIONS)

# Shared analysis: edge n-grams so partial names and words match while typing
INDEX_SETTINGS = {
    "number_of_shards": 1,
    "number_of_replicas": 0,
    "analysis": {
        "analyzer": {
            "prefix_analyzer": {
                "type": "custom",
                "tokenizer": "standard",
                "filter": ["lowercase", "asciifolding", "prefix_ngram"],
            }
        },
        "filter": {
            "prefix_ngram": {"type": "edge_ngram", "min_gram": 2, "max_gram": 20}
        },
    },
}

NAME_FIELD = {
    "type": "text",
    "analyzer": "prefix_analyzer",
    "search_analyzer": "standard",
    "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
}


@dataclass(frozen=True)
class IndexDefinition:
    """Static configuration of one search index, applied once at setup."""

    kind: str
    mappings: Dict[str, Any]
    searchable: List[str]
    filterable: List[str]
    sortable: List[str]
    default_limit: int
    default_sort: List[str] = field(default_factory=list)

    def sort_field(self, name):
        """Name of the indexed field to sort on for an attribute."""
        properties = self.mappings["properties"]
        if properties.get(name, {}).get("type") == "text":
            return f"{name}.keyword"
        return name


MESSAGE_DEFINITION = IndexDefinition(
    kind=MESSAGES,
    mappings={
        "properties": {
            "id": {"type": "keyword"},
            "conversationId": {"type": "keyword"},
            "senderId": {"type": "keyword"},
            "senderName": NAME_FIELD,
            "senderUsername": NAME_FIELD,
            "content": {"type": "text"},
            "type": {"type": "keyword"},
            "createdAt": {"type": "long"},
            "hasAttachments": {"type": "boolean"},
            "attachmentTypes": {"type": "keyword"},
            "attachmentNames": {"type": "text", "analyzer": "prefix_analyzer"},
            "isReply": {"type": "boolean"},
            # Displayed with the hit, never matched against
            "replyToContent": {"type": "text", "index": False},
        }
    },
    searchable=["content", "senderName", "senderUsername", "attachmentNames"],
    filterable=[
        "conversationId",
        "senderId",
        "type",
        "hasAttachments",
        "createdAt",
        "isReply",
    ],
    sortable=["createdAt"],
    default_limit=50,
    # Newer messages first when the caller gives no explicit order
    default_sort=["createdAt:desc"],
)

USER_DEFINITION = IndexDefinition(
    kind=USERS,
    mappings={
        "properties": {
            "id": {"type": "keyword"},
            "username": NAME_FIELD,
            "name": NAME_FIELD,
            "bio": {"type": "text"},
            "avatarUrl": {"type": "keyword", "index": False},
            "createdAt": {"type": "long"},
            "isActive": {"type": "boolean"},
        }
    },
    searchable=["username", "name", "bio"],
    filterable=["id", "isActive", "createdAt"],
    sortable=["username", "name", "createdAt"],
    default_limit=20,
)

CONVERSATION_DEFINITION = IndexDefinition(
    kind=CONVERSATIONS,
    mappings={
        "properties": {
            "id": {"type": "keyword"},
            "type": {"type": "keyword"},
            "title": NAME_FIELD,
            "memberIds": {"type": "keyword"},
            "memberNames": {"type": "text", "analyzer": "prefix_analyzer"},
            "memberUsernames": {"type": "text", "analyzer": "prefix_analyzer"},
            "createdAt": {"type": "long"},
            "updatedAt": {"type": "long"},
            "isActive": {"type": "boolean"},
        }
    },
    searchable=["title", "memberNames", "memberUsernames"],
    filterable=["id", "type", "memberIds", "createdAt", "isActive"],
    sortable=["title", "createdAt", "updatedAt"],
    default_limit=20,
)

INDEX_DEFINITIONS = {
    MESSAGES: MESSAGE_DEFINITION,
    USERS: USER_DEFINITION,
    CONVERSATIONS: CONVERSATION_DEFINITION,
}
