"""Fixtures shared by the core tests."""
# pylint: disable=redefined-outer-name

from unittest import mock

import pytest

from core.search.gateway import SearchGateway
from core.search.reader import EntityReader


@pytest.fixture
def mock_es_client():
    """Mock the Elasticsearch client."""
    mock_es = mock.MagicMock()
    # Setup standard mock returns
    mock_es.indices.exists.return_value = False
    mock_es.indices.create.return_value = {"acknowledged": True}
    mock_es.indices.delete.return_value = {"acknowledged": True}
    mock_es.bulk.return_value = {"errors": False, "items": []}

    # Setup search mock
    mock_es.search.return_value = {
        "took": 3,
        "hits": {"total": {"value": 0, "relation": "eq"}, "hits": []},
    }
    return mock_es


@pytest.fixture
def gateway(mock_es_client):
    """A gateway talking to the mocked client."""
    return SearchGateway(mock_es_client)


@pytest.fixture
def spy_gateway(gateway):
    """The gateway with its search method recorded, still running for real."""
    with mock.patch.object(gateway, "search", wraps=gateway.search):
        yield gateway


@pytest.fixture
def mock_reader():
    """An entity reader that never touches the database."""
    return mock.create_autospec(EntityReader, instance=True)
