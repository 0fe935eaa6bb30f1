"""Tests for authorized message, user and conversation search."""
# pylint: disable=redefined-outer-name

from datetime import datetime, timezone
from unittest import mock

from django.test import override_settings

import pytest
from elasticsearch import ConnectionError as ESConnectionError

from core.search import filters
from core.search.exceptions import AuthorizationError
from core.search.mapping import CONVERSATIONS, MESSAGES, USERS
from core.search.search import SearchService


@pytest.fixture
def service(spy_gateway, mock_reader):
    """A search service over the spied gateway and a mocked reader."""
    return SearchService(spy_gateway, mock_reader)


def issued_filters(spy_gateway):
    """Serialized filters of the last search sent to the gateway."""
    return filters.serialize(spy_gateway.search.call_args.kwargs["filters"])


# Messages


def test_search_messages_across_memberships(service, spy_gateway, mock_reader):
    """Without a conversation, every active conversation of the user is searched."""
    mock_reader.find_active_conversation_ids.return_value = ["C1", "C2"]

    result = service.search_messages("hello", "U1")

    mock_reader.find_active_conversation_ids.assert_called_once_with("U1")
    assert spy_gateway.search.call_args.args == (MESSAGES, "hello")
    assert issued_filters(spy_gateway) == [
        '(conversationId = "C1" OR conversationId = "C2")'
    ]
    kwargs = spy_gateway.search.call_args.kwargs
    assert kwargs["sort"] == ["createdAt:desc"]
    assert kwargs["highlight_attributes"] == ["content", "senderName"]
    assert kwargs["crop_attributes"] == ["content"]
    assert kwargs["crop_length"] == 200
    assert result["limit"] == 50
    assert result["offset"] == 0


def test_search_messages_in_one_conversation(service, spy_gateway, mock_reader):
    """A member searching one conversation only gets that conversation."""
    mock_reader.find_active_membership.return_value = mock.Mock()

    service.search_messages("hello", "U1", conversation_id="C1")

    mock_reader.find_active_membership.assert_called_once_with("U1", "C1")
    mock_reader.find_active_conversation_ids.assert_not_called()
    assert issued_filters(spy_gateway) == ['(conversationId = "C1")']


def test_search_messages_non_member_is_refused(
    service, mock_reader, mock_es_client
):
    """Asking for a conversation the user is not in never reaches the engine."""
    mock_reader.find_active_membership.return_value = None

    with pytest.raises(AuthorizationError) as excinfo:
        service.search_messages("hello", "U1", conversation_id="C9")

    assert excinfo.value.user_id == "U1"
    assert excinfo.value.conversation_id == "C9"
    mock_es_client.search.assert_not_called()


def test_search_messages_without_memberships(service, mock_reader, mock_es_client):
    """A user with no conversations gets an empty result without a query."""
    mock_reader.find_active_conversation_ids.return_value = []

    result = service.search_messages("hello", "U1", limit=10, offset=30)

    mock_es_client.search.assert_not_called()
    assert result == {
        "hits": [],
        "query": "hello",
        "processingTimeMs": 0,
        "limit": 10,
        "offset": 30,
        "estimatedTotalHits": 0,
    }


def test_search_messages_with_every_constraint(service, spy_gateway, mock_reader):
    """Optional constraints are appended after the scope, in a stable order."""
    mock_reader.find_active_conversation_ids.return_value = ["C1"]

    service.search_messages(
        "report",
        "U1",
        limit=5,
        offset=10,
        date_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
        date_to=datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc),
        message_types=["file", "image"],
        has_attachments=True,
    )

    assert issued_filters(spy_gateway) == [
        '(conversationId = "C1")',
        "createdAt >= 1704067200",
        "createdAt <= 1706745599",
        '(type = "file" OR type = "image")',
        "hasAttachments = true",
    ]
    kwargs = spy_gateway.search.call_args.kwargs
    assert kwargs["limit"] == 5
    assert kwargs["offset"] == 10


def test_search_messages_without_attachments(service, spy_gateway, mock_reader):
    """False is a real constraint, None is no constraint."""
    mock_reader.find_active_conversation_ids.return_value = ["C1"]

    service.search_messages("x", "U1", has_attachments=False, message_types=[])

    assert issued_filters(spy_gateway) == [
        '(conversationId = "C1")',
        "hasAttachments = false",
    ]


@override_settings(SEARCH_CROP_LENGTH=80)
def test_search_messages_crop_length_setting(service, spy_gateway, mock_reader):
    """The crop length is configurable."""
    mock_reader.find_active_conversation_ids.return_value = ["C1"]

    service.search_messages("x", "U1")

    assert spy_gateway.search.call_args.kwargs["crop_length"] == 80


def test_search_messages_returns_engine_hits(service, mock_reader, mock_es_client):
    """Hits come back with their formatted attributes."""
    mock_reader.find_active_conversation_ids.return_value = ["C1"]
    mock_es_client.search.return_value = {
        "took": 4,
        "hits": {
            "total": {"value": 1, "relation": "eq"},
            "hits": [
                {
                    "_id": "m1",
                    "_source": {
                        "id": "m1",
                        "conversationId": "C1",
                        "content": "hello world",
                        "senderName": "Ann",
                    },
                    "highlight": {"content": ["<em>hello</em> world"]},
                }
            ],
        },
    }

    result = service.search_messages("hello", "U1")

    assert result["estimatedTotalHits"] == 1
    assert result["processingTimeMs"] == 4
    assert result["hits"][0]["_formatted"] == {
        "content": "<em>hello</em> world",
        "senderName": "Ann",
    }


def test_search_messages_engine_error_propagates(
    service, mock_reader, mock_es_client
):
    """Engine failures are logged and raised unchanged."""
    mock_reader.find_active_conversation_ids.return_value = ["C1"]
    error = ESConnectionError("boom")
    mock_es_client.search.side_effect = error

    with mock.patch("core.search.search.logger") as mock_logger:
        with pytest.raises(ESConnectionError) as excinfo:
            service.search_messages("hello", "U1")

    assert excinfo.value is error
    mock_logger.error.assert_called_once()


@override_settings(SEARCH_SLOW_QUERY_MS=300)
def test_slow_queries_are_logged(service, mock_reader, mock_es_client):
    """Queries slower than the threshold produce a warning."""
    mock_reader.find_active_conversation_ids.return_value = ["C1"]
    mock_es_client.search.return_value = {
        "took": 450,
        "hits": {"total": {"value": 0, "relation": "eq"}, "hits": []},
    }

    with mock.patch("core.search.search.logger") as mock_logger:
        result = service.search_messages("hello", "U1")

    assert result["processingTimeMs"] == 450
    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args.args[-1] == 450


def test_fast_queries_are_not_logged(service, mock_reader):
    """Queries under the threshold stay quiet."""
    mock_reader.find_active_conversation_ids.return_value = ["C1"]

    with mock.patch("core.search.search.logger") as mock_logger:
        service.search_messages("hello", "U1")

    mock_logger.warning.assert_not_called()


# Users


def test_search_users_hides_blocked_users(service, spy_gateway, mock_reader):
    """Blocked users are excluded after the active flag."""
    mock_reader.find_blocked_user_ids.return_value = ["b1"]

    result = service.search_users("john", "U1")

    mock_reader.find_blocked_user_ids.assert_called_once_with("U1")
    assert spy_gateway.search.call_args.args == (USERS, "john")
    assert issued_filters(spy_gateway) == ["isActive = true", '(id != "b1")']
    kwargs = spy_gateway.search.call_args.kwargs
    assert kwargs["sort"] == ["username:asc"]
    assert kwargs["highlight_attributes"] == ["username", "name"]
    assert result["limit"] == 20


def test_search_users_without_blocks(service, spy_gateway, mock_reader):
    """No blocks, no exclusion clause."""
    mock_reader.find_blocked_user_ids.return_value = []

    service.search_users("john", "U1")

    assert issued_filters(spy_gateway) == ["isActive = true"]


def test_search_users_including_blocked(service, spy_gateway, mock_reader):
    """Blocks are not looked up when they are not excluded."""
    service.search_users("john", "U1", exclude_blocked=False, limit=3)

    mock_reader.find_blocked_user_ids.assert_not_called()
    assert issued_filters(spy_gateway) == ["isActive = true"]
    assert spy_gateway.search.call_args.kwargs["limit"] == 3


# Conversations


def test_search_conversations(service, spy_gateway, mock_reader):
    """Only the user's active conversations that are not archived."""
    mock_reader.find_active_conversation_ids.return_value = ["C1", "C2"]

    result = service.search_conversations("team", "U1")

    assert spy_gateway.search.call_args.args == (CONVERSATIONS, "team")
    assert issued_filters(spy_gateway) == [
        '(id = "C1" OR id = "C2")',
        "isActive = true",
    ]
    kwargs = spy_gateway.search.call_args.kwargs
    assert kwargs["sort"] == ["updatedAt:desc"]
    assert kwargs["highlight_attributes"] == ["title", "memberNames"]
    assert result["limit"] == 20


def test_search_conversations_by_type(service, spy_gateway, mock_reader):
    """The type constraint sits between the scope and the active flag."""
    mock_reader.find_active_conversation_ids.return_value = ["C1"]

    service.search_conversations("team", "U1", conversation_type="group")

    assert issued_filters(spy_gateway) == [
        '(id = "C1")',
        'type = "group"',
        "isActive = true",
    ]


def test_search_conversations_without_memberships(
    service, mock_reader, mock_es_client
):
    """No memberships, no query."""
    mock_reader.find_active_conversation_ids.return_value = []

    result = service.search_conversations("team", "U1")

    mock_es_client.search.assert_not_called()
    assert result["hits"] == []
    assert result["estimatedTotalHits"] == 0
    assert result["limit"] == 20
