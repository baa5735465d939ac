"""Pydantic models for provider management endpoints."""

from pydantic import BaseModel, Field


class SwitchProviderRequest(BaseModel):
    """Request body for POST /api/v1/ai/switch."""

    provider: str | None = Field(default=None, description='"ollama" or "openai"')


class ConnectionStatus(BaseModel):
    """Result of a connectivity probe."""

    success: bool = Field(description="Whether the backend answered")
    error: str | None = Field(default=None, description="Reason when it did not")


class ProviderDebugInfo(BaseModel):
    configured_provider: str = Field(description="Provider used when a request names none")
    provider_source: str = Field(description='"database", "environment" or "default"')
    env_provider: str | None = Field(default=None, description="Provider from the environment")
    db_provider: str | None = Field(default=None, description="Provider from the settings table")
    has_openai_key: bool = Field(description="Whether an OpenAI key is configured")
    ollama_status: ConnectionStatus
    openai_status: ConnectionStatus
    db_settings_keys: list[str] = Field(
        default_factory=list, description="Keys of the persisted setting rows"
    )


class ProviderDebugResponse(BaseModel):
    """Response body for GET /api/v1/ai/debug."""

    success: bool = True
    debug: ProviderDebugInfo


class ModelListResponse(BaseModel):
    """Response body for GET /api/v1/ai/models."""

    success: bool = True
    host: str = Field(description="Ollama host that was queried")
    models: list[str] = Field(default_factory=list, description="Installed model names")
