"""Pytest configuration and shared fixtures for opsdash-server tests.

This module provides common fixtures used across all test modules,
including test app creation and async client setup.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from opsdash_server import create_app
from opsdash_server.config import OpsDashSettings


@pytest.fixture
def test_settings(tmp_path):
    """Create test settings with an isolated token directory.

    Args:
        tmp_path: Pytest fixture providing a temporary directory.

    Returns:
        OpsDashSettings: Settings instance configured for testing.
    """
    return OpsDashSettings(
        host="127.0.0.1",
        port=8000,
        app_url="http://localhost:3000",
        supabase_url="http://supabase.test",
        supabase_service_key="service-key",
        ai_provider="ollama",
        ollama_host="http://localhost:11434",
        ollama_model="llama3.1:8b",
        openai_api_key=None,
        clickup_api_token=None,
        clickup_space_id=None,
        google_oauth_client_id=None,
        google_oauth_client_secret=None,
        google_client_email=None,
        google_private_key=None,
        gmail_sender_email=None,
        data_dir=str(tmp_path),
        timezone="UTC",
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def test_app(test_settings):
    """Create a FastAPI test application instance.

    Args:
        test_settings: Test settings fixture.

    Returns:
        FastAPI: Configured test application.
    """
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Args:
        test_app: Test application fixture.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
