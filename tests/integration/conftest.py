"""Pytest configuration for integration tests.

This module provides integration-test-specific fixtures that replace the
data store and the provider factory before the app's lifespan runs, so API
tests never reach Supabase or a language model.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from opsdash_server.providers import ProviderKind
from opsdash_server.store.database import DashboardStore


@pytest.fixture
def mock_store():
    """A DashboardStore double with empty tables."""
    store = AsyncMock(spec=DashboardStore)
    store.get_settings.return_value = {}
    store.select_columns.return_value = []
    store.count.return_value = 0
    store.list_clients.return_value = []
    store.list_projects.return_value = []
    store.list_invoices.return_value = []
    store.list_events.return_value = []
    return store


@pytest.fixture(autouse=True)
def mock_store_class(mock_store):
    """Patch DashboardStore in the app module so the lifespan connects to the mock."""
    with patch("opsdash_server.app.DashboardStore") as mock_class:
        mock_class.connect = AsyncMock(return_value=mock_store)
        yield mock_class


@pytest.fixture
def mock_provider():
    """A chat provider double that is reachable and answers nothing by default."""
    provider = AsyncMock()
    provider.kind = ProviderKind.OLLAMA
    provider.model = "llama3.1:8b"
    provider.check_connection.return_value = True
    provider.list_models.return_value = ["llama3.1:8b", "qwen2.5:7b"]
    return provider


@pytest.fixture(autouse=True)
def mock_provider_factory(mock_provider):
    """Patch ProviderFactory so every backend resolves to mock_provider."""
    with patch("opsdash_server.app.ProviderFactory") as mock_class:
        factory = MagicMock()
        factory.ollama.return_value = mock_provider
        factory.openai.return_value = mock_provider
        factory.build.return_value = mock_provider
        factory.close = AsyncMock()
        mock_class.return_value = factory
        yield factory
