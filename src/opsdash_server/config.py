"""Configuration module for opsdash-server using pydantic-settings."""

import logging
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class OpsDashSettings(BaseSettings):
    """Main configuration settings for opsdash-server.

    All settings can be overridden via environment variables with the OPSDASH_ prefix.
    For example, OPSDASH_OLLAMA_HOST will override the ollama_host setting.
    These values are the environment layer of the configuration precedence;
    persisted setting rows take priority over them at request time.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    app_url: str = "http://localhost:3000"

    # Data store (Supabase)
    supabase_url: str | None = None
    supabase_service_key: str | None = None

    # AI providers
    ai_provider: str = "ollama"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:8b"
    ollama_timeout: float = 180.0
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    openai_timeout: float = 60.0
    max_tool_rounds: int = 1

    # ClickUp
    clickup_api_token: str | None = None
    clickup_space_id: str | None = None

    # Google Workspace
    google_oauth_client_id: str | None = None
    google_oauth_client_secret: str | None = None
    google_client_email: str | None = None
    google_private_key: str | None = None
    gmail_sender_email: str | None = None
    google_calendar_id: str = "primary"

    # Data directories (relative to data_dir)
    data_dir: str = "."
    token_file: str = ".google_tokens.json"

    # Local timezone used to interpret dates and times given to tools
    timezone: str = "UTC"

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="OPSDASH_")

    @property
    def resolved_token_path(self) -> Path:
        """Get the full path to the Google OAuth token file."""
        return Path(self.data_dir) / self.token_file

    @property
    def google_redirect_uri(self) -> str:
        """Get the OAuth redirect URI registered with Google."""
        return self.app_url.rstrip("/") + "/api/v1/auth/google/callback"


class RuntimeConfig:
    """Per-request view over settings and persisted setting rows.

    Resolution order for every value: explicit per-request value, persisted
    setting row, environment (OpsDashSettings), hard-coded default. Rows are
    read fresh on each request so a settings update applies to the next one.

    Attributes:
        settings: The process-wide environment settings.
        persisted: Setting rows read from the data store as key/value pairs.
    """

    def __init__(
        self, settings: OpsDashSettings, persisted: dict[str, str] | None = None
    ) -> None:
        self.settings = settings
        self.persisted = persisted or {}

    def resolve(
        self,
        key: str,
        env_value: Any = None,
        default: Any = None,
        requested: Any = None,
    ) -> Any:
        """Resolve a configuration value using the standard precedence.

        Args:
            key: Name of the persisted setting row.
            env_value: Value from the environment settings.
            default: Hard-coded fallback.
            requested: Explicit per-request override.

        Returns:
            The first non-empty value in precedence order.
        """
        for candidate in (requested, self.persisted.get(key), env_value):
            if candidate not in (None, ""):
                return candidate
        return default

    def source_of(self, key: str, env_value: Any = None) -> str:
        """Describe which layer a value comes from (for diagnostics)."""
        if self.persisted.get(key):
            return "database"
        if env_value:
            return "environment"
        return "default"

    def ai_provider(self, requested: str | None = None) -> str:
        return self.resolve(
            "ai_provider", self.settings.ai_provider, "ollama", requested
        )

    @property
    def ollama_host(self) -> str:
        host = self.resolve(
            "ollama_base_url", self.settings.ollama_host, "http://localhost:11434"
        )
        return host.rstrip("/")

    @property
    def ollama_model(self) -> str:
        return self.resolve("ollama_model", self.settings.ollama_model, "llama3.1:8b")

    @property
    def openai_api_key(self) -> str | None:
        return self.resolve("openai_api_key", self.settings.openai_api_key)

    @property
    def openai_model(self) -> str:
        return self.resolve("openai_model", self.settings.openai_model, "gpt-4o")

    @property
    def clickup_api_token(self) -> str | None:
        return self.resolve("clickup_api_token", self.settings.clickup_api_token)

    @property
    def clickup_space_id(self) -> str | None:
        return self.resolve("clickup_space_id", self.settings.clickup_space_id)

    @property
    def google_client_email(self) -> str | None:
        return self.resolve("google_client_email", self.settings.google_client_email)

    @property
    def google_private_key(self) -> str | None:
        key = self.resolve("google_private_key", self.settings.google_private_key)
        # Keys pasted into env files carry literal "\n" sequences
        return key.replace("\\n", "\n") if key else None

    @property
    def gmail_sender_email(self) -> str | None:
        return self.resolve("gmail_sender_email", self.settings.gmail_sender_email)

    @property
    def google_calendar_id(self) -> str:
        return self.resolve(
            "google_calendar_id", self.settings.google_calendar_id, "primary"
        )
