"""Health check response model."""

from pydantic import BaseModel, Field


class ServiceStatus(BaseModel):
    """Connectivity of each collaborator.

    Attributes:
        supabase: Whether the data store answered the stats queries.
        clickup: Whether the ClickUp token is accepted.
        calendar: Whether Google Calendar is reachable with the stored credentials.
        ollama: Whether the Ollama server answered.
        ollama_models: Installed Ollama model names.
        ai_provider: Provider used when a request names none.
        openai_model: Configured OpenAI model.
        openai: Whether OpenAI answered (only probed when it is the active provider).
        has_openai_key: Whether an OpenAI key is configured.
    """

    supabase: bool = Field(..., description="Data store reachable")
    clickup: bool = Field(default=False, description="ClickUp reachable")
    calendar: bool = Field(default=False, description="Google Calendar reachable")
    ollama: bool = Field(default=False, description="Ollama reachable")
    ollama_models: list[str] = Field(default_factory=list, description="Ollama models")
    ai_provider: str = Field(..., description="Active AI provider")
    openai_model: str = Field(..., description="Configured OpenAI model")
    openai: bool = Field(default=False, description="OpenAI reachable")
    has_openai_key: bool = Field(default=False, description="OpenAI key configured")


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    success: bool = Field(default=True, description="Whether the check ran")
    version: str = Field(..., description="Version of opsdash-server")
    services: ServiceStatus
    stats: dict[str, float | int] | None = Field(
        default=None,
        description="Live dashboard statistics, absent when the store is unreachable",
    )
    timestamp: str = Field(..., description="ISO 8601 time of the check")
