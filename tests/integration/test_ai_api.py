"""Integration tests for the provider management endpoints."""

import pytest
from httpx import AsyncClient

from opsdash_server.errors import StoreError


class TestSwitchProvider:
    """Tests for POST /api/v1/ai/switch."""

    @pytest.mark.asyncio
    async def test_switch_to_openai(self, async_client: AsyncClient, mock_store):
        response = await async_client.post("/api/v1/ai/switch", json={"provider": "openai"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "AI provider switched to openai",
        }
        mock_store.upsert_setting.assert_awaited_once_with("ai_provider", "openai")

    @pytest.mark.asyncio
    async def test_switch_normalizes_case(self, async_client: AsyncClient, mock_store):
        response = await async_client.post("/api/v1/ai/switch", json={"provider": "Ollama"})

        assert response.status_code == 200
        mock_store.upsert_setting.assert_awaited_once_with("ai_provider", "ollama")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"provider": "gemini"}, {}])
    async def test_switch_rejects_unknown(self, async_client: AsyncClient, mock_store, body):
        response = await async_client.post("/api/v1/ai/switch", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": 'Invalid provider. Must be "ollama" or "openai"',
        }
        mock_store.upsert_setting.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_switch_store_failure(self, async_client: AsyncClient, mock_store):
        mock_store.upsert_setting.side_effect = StoreError("Failed to save setting ai_provider: denied")

        response = await async_client.post("/api/v1/ai/switch", json={"provider": "openai"})

        assert response.status_code == 502
        assert response.json()["error"] == "Database: Failed to save setting ai_provider: denied"


class TestDebugAndModels:
    """Tests for GET /api/v1/ai/debug and GET /api/v1/ai/models."""

    @pytest.mark.asyncio
    async def test_debug_reports_sources(self, async_client: AsyncClient, mock_store):
        mock_store.get_settings.return_value = {"ai_provider": "ollama", "ollama_model": "qwen2.5:7b"}

        response = await async_client.get("/api/v1/ai/debug")

        assert response.status_code == 200
        debug = response.json()["debug"]
        assert debug["configured_provider"] == "ollama"
        assert debug["provider_source"] == "database"
        assert debug["env_provider"] == "ollama"
        assert debug["db_provider"] == "ollama"
        assert debug["has_openai_key"] is False
        assert debug["ollama_status"] == {"success": True, "error": None}
        assert debug["openai_status"] == {"success": False, "error": "Not tested"}
        assert debug["db_settings_keys"] == ["ai_provider", "ollama_model"]

    @pytest.mark.asyncio
    async def test_list_models(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/ai/models")

        assert response.status_code == 200
        data = response.json()
        assert data["host"] == "http://localhost:11434"
        assert data["models"] == ["llama3.1:8b", "qwen2.5:7b"]

    @pytest.mark.asyncio
    async def test_list_models_unreachable(self, async_client: AsyncClient, mock_provider):
        mock_provider.list_models.side_effect = ConnectionError("refused")

        response = await async_client.get("/api/v1/ai/models")

        assert response.status_code == 503
        assert response.json()["success"] is False
