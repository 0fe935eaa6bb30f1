"""Elasticsearch client and index gateway."""
# pylint: disable=unexpected-keyword-arg

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from django.conf import settings

from elasticsearch import Elasticsearch, NotFoundError
from elasticsearch.helpers import BulkIndexError

from core.search.filters import Clause, serialize
from core.search.mapping import INDEX_DEFINITIONS, INDEX_SETTINGS, KINDS

logger = logging.getLogger(__name__)

HIGHLIGHT_PRE_TAG = "<em>"
HIGHLIGHT_POST_TAG = "</em>"
CROP_MARKER = "…"


def get_es_client():
    """Get Elasticsearch client instance."""
    if not hasattr(get_es_client, "cached_client"):
        get_es_client.cached_client = Elasticsearch(hosts=settings.ELASTICSEARCH_HOSTS)
    return get_es_client.cached_client


def get_search_gateway():
    """Get the process wide search gateway, built on first use."""
    if not hasattr(get_search_gateway, "cached_gateway"):
        get_search_gateway.cached_gateway = SearchGateway(
            get_es_client(), prefix=settings.SEARCH_INDEX_PREFIX
        )
    return get_search_gateway.cached_gateway


def _parse_sort(entry):
    name, _, order = entry.partition(":")
    return name, (order or "asc").lower()


class SearchGateway:
    """
    One logical index per document kind on top of an Elasticsearch client.

    Index configuration is applied by ``setup`` once per gateway. Engine errors
    are not caught here: they reach the caller as raised by the client.
    """

    def __init__(self, client: Elasticsearch, prefix: str = ""):
        self.client = client
        self.prefix = prefix or ""
        self.configured = False

    def index_name(self, kind: str) -> str:
        """Physical index name for a document kind."""
        if kind not in INDEX_DEFINITIONS:
            raise ValueError(f"Unknown index: {kind}")
        return f"{self.prefix}{kind}"

    # Index management

    def setup(self, force: bool = False) -> bool:
        """Create the indexes that do not exist yet, once per gateway."""
        if self.configured and not force:
            return True

        for kind in KINDS:
            name = self.index_name(kind)
            if not self.client.indices.exists(index=name):
                self.client.indices.create(
                    index=name,
                    settings=INDEX_SETTINGS,
                    mappings=INDEX_DEFINITIONS[kind].mappings,
                )
                logger.info("Created Elasticsearch index: %s", name)

        self.configured = True
        return True

    def delete_indexes(self, kind: Optional[str] = None) -> List[str]:
        """Delete one index or all of them. Returns the names actually deleted."""
        deleted = []
        for current in [kind] if kind else KINDS:
            name = self.index_name(current)
            try:
                self.client.indices.delete(index=name)
                logger.info("Deleted Elasticsearch index: %s", name)
                deleted.append(name)
            except NotFoundError:
                logger.warning("Index %s not found, nothing to delete", name)
        self.configured = False
        return deleted

    def clear_index(self, kind: str) -> None:
        """Remove every document of a kind, keeping the index configuration."""
        name = self.index_name(kind)
        self.client.delete_by_query(
            index=name, query={"match_all": {}}, refresh=True, conflicts="proceed"
        )
        logger.info("Cleared %s index", name)

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """Document count and indexing activity for each kind."""
        stats = {}
        for kind in KINDS:
            name = self.index_name(kind)
            count = self.client.count(index=name)["count"]
            indexing = self.client.indices.stats(index=name, metric="indexing")
            current = indexing["_all"]["primaries"]["indexing"]["index_current"]
            stats[kind] = {"numberOfDocuments": count, "isIndexing": current > 0}
        return stats

    # Documents

    def index_one(self, kind: str, document: Dict[str, Any]) -> None:
        """Create or fully replace a document."""
        # pylint: disable=no-value-for-parameter
        self.client.index(
            index=self.index_name(kind), id=document["id"], document=document
        )
        logger.debug("Indexed %s document %s", kind, document["id"])

    def update_one(self, kind: str, document: Dict[str, Any]) -> None:
        """Merge fields into a document, creating it when missing."""
        self.client.update(
            index=self.index_name(kind),
            id=document["id"],
            doc=document,
            doc_as_upsert=True,
        )
        logger.debug("Updated %s document %s", kind, document["id"])

    def delete_one(self, kind: str, document_id: str) -> None:
        """Delete a document. A document that is already gone is not an error."""
        self.client.options(ignore_status=404).delete(
            index=self.index_name(kind), id=str(document_id)
        )
        logger.debug("Deleted %s document %s", kind, document_id)

    def index_batch(self, kind: str, documents: Sequence[Dict[str, Any]]) -> int:
        """Create or replace many documents with a single bulk request."""
        if not documents:
            return 0

        name = self.index_name(kind)
        operations = []
        for document in documents:
            operations.append({"index": {"_index": name, "_id": document["id"]}})
            operations.append(document)

        response = self.client.bulk(operations=operations)
        if response.get("errors"):
            failed = [
                item["index"]
                for item in response["items"]
                if item.get("index", {}).get("error")
            ]
            raise BulkIndexError(
                f"{len(failed)} document(s) failed to index in {name}", failed
            )

        logger.debug("Indexed %d %s documents", len(documents), kind)
        return len(documents)

    # Search

    def search(
        self,
        kind: str,
        query: str,
        filters: Iterable[Clause] = (),
        sort: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        highlight_attributes: Optional[Sequence[str]] = None,
        crop_attributes: Optional[Sequence[str]] = None,
        crop_length: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Run a full-text query against one index.

        Args:
            kind: The document kind to search
            query: Free text, matched against the searchable attributes
            filters: Clauses that all have to match
            sort: Entries like ``"createdAt:desc"``, relevance breaks ties
            limit: Page size, defaults to the index default
            offset: Number of hits to skip
            highlight_attributes: Attributes returned highlighted in ``_formatted``
            crop_attributes: Attributes returned as a cropped fragment
            crop_length: Fragment size for cropped attributes

        Returns:
            {"hits", "query", "processingTimeMs", "limit", "offset", "estimatedTotalHits"}
        """
        definition = INDEX_DEFINITIONS[kind]
        limit, offset = self.resolve_page(kind, limit, offset)
        filters = list(filters)

        if query and query.strip():
            text_query = {
                "multi_match": {
                    "query": query,
                    "fields": definition.searchable,
                    "type": "best_fields",
                    "fuzziness": "AUTO",
                }
            }
        else:
            text_query = {"match_all": {}}

        body = {
            "query": {
                "bool": {
                    "must": [text_query],
                    "filter": [clause.to_dsl() for clause in filters],
                }
            },
            "from_": offset,
            "size": limit,
            "sort": self._build_sort(definition, sort),
            "track_total_hits": True,
        }

        highlight = self._build_highlight(
            highlight_attributes or [], crop_attributes or [], crop_length
        )
        if highlight:
            body["highlight"] = highlight

        logger.debug(
            "Searching %s for %r with filters %s", kind, query, serialize(filters)
        )
        response = self.client.search(index=self.index_name(kind), **body)

        formatted = list(highlight_attributes or []) + [
            attribute
            for attribute in crop_attributes or []
            if attribute not in (highlight_attributes or [])
        ]
        hits = response["hits"]
        total = hits.get("total", 0)
        if isinstance(total, dict):
            total = total.get("value", 0)

        return {
            "hits": [self._build_hit(hit, formatted) for hit in hits.get("hits", [])],
            "query": query,
            "processingTimeMs": response.get("took", 0),
            "limit": limit,
            "offset": offset,
            "estimatedTotalHits": total,
        }

    def resolve_page(self, kind, limit=None, offset=None):
        """Apply the index defaults to missing pagination values."""
        definition = INDEX_DEFINITIONS[kind]
        return (
            definition.default_limit if limit is None else limit,
            0 if offset is None else offset,
        )

    def empty_result(self, kind, query, limit=None, offset=None):
        """A result with no hits, shaped like a real search result."""
        limit, offset = self.resolve_page(kind, limit, offset)
        return {
            "hits": [],
            "query": query,
            "processingTimeMs": 0,
            "limit": limit,
            "offset": offset,
            "estimatedTotalHits": 0,
        }

    @staticmethod
    def _build_sort(definition, sort):
        entries = list(sort) if sort else list(definition.default_sort)
        built = []
        for entry in entries:
            name, order = _parse_sort(entry)
            if name not in definition.sortable:
                raise ValueError(f"Attribute {name} is not sortable in {definition.kind}")
            built.append({definition.sort_field(name): {"order": order}})
        built.append("_score")
        return built

    @staticmethod
    def _build_highlight(highlight_attributes, crop_attributes, crop_length):
        fields = {}
        for attribute in highlight_attributes:
            fields[attribute] = {"number_of_fragments": 0}
        for attribute in crop_attributes:
            fields[attribute] = {
                "fragment_size": crop_length or settings.SEARCH_CROP_LENGTH,
                "number_of_fragments": 1,
                "no_match_size": crop_length or settings.SEARCH_CROP_LENGTH,
            }
        if not fields:
            return None
        return {
            "pre_tags": [HIGHLIGHT_PRE_TAG],
            "post_tags": [HIGHLIGHT_POST_TAG],
            "fields": fields,
        }

    @staticmethod
    def _build_hit(hit, formatted_attributes):
        document = dict(hit.get("_source", {}))
        if formatted_attributes:
            highlights = hit.get("highlight", {})
            document["_formatted"] = {
                attribute: (
                    f" {CROP_MARKER} ".join(highlights[attribute])
                    if attribute in highlights
                    else document.get(attribute)
                )
                for attribute in formatted_attributes
            }
        return document
