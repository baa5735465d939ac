"""Provider selection and construction.

The active provider is resolved per request with the standard configuration
precedence: explicit request value, persisted setting row, environment,
hard-coded default.
"""

import logging

from opsdash_server.config import OpsDashSettings, RuntimeConfig
from opsdash_server.providers.ollama import OllamaProvider
from opsdash_server.providers.openai import OpenAIProvider
from opsdash_server.providers.types import ChatProvider, ProviderKind

logger = logging.getLogger(__name__)


def resolve_provider_kind(
    config: RuntimeConfig, requested: str | None = None
) -> ProviderKind:
    """Select the provider for a request.

    Raises:
        ValueError: If the resolved name is not a known provider.
    """
    return ProviderKind.parse(config.ai_provider(requested))


class ProviderFactory:
    """Builds provider adapters from a RuntimeConfig.

    Ollama clients are kept per host so the connection pool is reused across
    requests; OpenAI clients are built per request because the key may change.
    """

    def __init__(self, settings: OpsDashSettings) -> None:
        self.settings = settings
        self._ollama: dict[tuple[str, str], OllamaProvider] = {}

    def ollama(self, host: str, model: str) -> OllamaProvider:
        key = (host, model)
        if key not in self._ollama:
            self._ollama[key] = OllamaProvider(
                host=host, model=model, timeout=self.settings.ollama_timeout
            )
        return self._ollama[key]

    def openai(self, api_key: str | None, model: str) -> OpenAIProvider:
        return OpenAIProvider(
            api_key=api_key, model=model, timeout=self.settings.openai_timeout
        )

    def build(self, kind: ProviderKind, config: RuntimeConfig) -> ChatProvider:
        """Create the adapter for the given provider kind."""
        if kind is ProviderKind.OPENAI:
            logger.debug(f"Using OpenAI provider with model {config.openai_model}")
            return self.openai(config.openai_api_key, config.openai_model)
        logger.debug(
            f"Using Ollama provider at {config.ollama_host} with model {config.ollama_model}"
        )
        return self.ollama(config.ollama_host, config.ollama_model)

    async def close(self) -> None:
        for provider in self._ollama.values():
            await provider.close()
        self._ollama.clear()
