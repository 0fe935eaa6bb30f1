"""Search-as-you-type suggestions from recent messages and contacts."""

import logging
import re
from typing import Any, Dict, List, Optional

from django.conf import settings

from core.search.reader import EntityReader

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_TERM_LENGTH = 20
MAX_RECENT_TERMS = 3
MAX_CONTACTS = 2

NON_WORD = re.compile(r"[^\w]")
WHITESPACE = re.compile(r"\s+")


def extract_terms(contents, query, max_terms=MAX_RECENT_TERMS) -> List[str]:
    """
    Words from message contents that complete the query.

    A word qualifies when, lower-cased and stripped of non-word characters, it
    starts with the query, is longer than it and is at most 20 characters.
    Duplicates are dropped, first occurrence wins.
    """
    query_lower = query.lower()
    terms = []
    for content in contents:
        for word in WHITESPACE.split(content.lower()):
            clean_word = NON_WORD.sub("", word)
            if (
                clean_word.startswith(query_lower)
                and len(query_lower) < len(clean_word) <= MAX_TERM_LENGTH
                and clean_word not in terms
            ):
                terms.append(clean_word)
                if len(terms) >= max_terms:
                    return terms
    return terms


class SuggestionService:
    """Suggestions are best effort: any failure yields an empty list."""

    def __init__(self, reader: Optional[EntityReader] = None):
        self.reader = reader or EntityReader()

    def get_search_suggestions(
        self, user_id, partial_query: str, limit: int = 5
    ) -> List[Dict[str, Any]]:
        """Recent terms first, then matching contacts, at most ``limit`` entries."""
        if not partial_query or len(partial_query) < MIN_QUERY_LENGTH:
            return []

        try:
            contents = self.reader.find_recent_visible_messages(
                user_id,
                partial_query,
                limit=settings.SEARCH_SUGGESTION_SCAN_LIMIT,
            )
            suggestions = [
                {"text": term, "type": "recent"}
                for term in extract_terms(contents, partial_query)
            ]

            contacts = self.reader.find_accepted_contacts(
                user_id, partial_query, limit=MAX_CONTACTS
            )
            suggestions.extend(
                {
                    "text": contact["username"] or contact["name"],
                    "type": "contact",
                    "metadata": {"userId": contact["id"], "name": contact["name"]},
                }
                for contact in contacts[:MAX_CONTACTS]
            )

            return suggestions[:limit]
        # pylint: disable=broad-exception-caught
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to get search suggestions for user %s: %s", user_id, e)
            return []
