"""Async Ollama provider adapter.

This module provides an async wrapper around the ollama.AsyncClient for
communicating with a local Ollama server. The client is created once per host
and reused; chat calls are non-streaming with a long timeout so that a model
being loaded into memory does not fail the first request.
"""

import logging
from typing import Any

import httpx
import ollama

from opsdash_server.providers.types import (
    ChatMessage,
    ChatResult,
    ProviderKind,
    ToolInvocation,
)

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = (
    "Ollama timed out. The model might be loading into memory "
    "(this can take 1-2 mins first time). Please try again."
)
CONNECTION_MESSAGE = "Cannot connect to Ollama. Make sure the Ollama service is running."


def _get_value(obj: Any, key: str, default: Any = None) -> Any:
    """Get a value from either an object attribute or a dict key."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


class OllamaProvider:
    """Chat provider backed by a local Ollama server.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        model: Model name used for chat and generate calls
        _client: The underlying ollama.AsyncClient instance
    """

    kind = ProviderKind.OLLAMA

    def __init__(self, host: str, model: str, timeout: float = 180.0) -> None:
        """Initialize the Ollama provider.

        Args:
            host: The Ollama server URL
            model: Model name to use
            timeout: Request timeout in seconds
        """
        self.host = host
        self.model = model
        self.timeout = timeout
        self._client = ollama.AsyncClient(host=host, timeout=timeout)
        logger.info(f"OllamaProvider initialized with host: {host}")

    def _describe_error(self, error: Exception) -> str:
        if isinstance(error, httpx.TimeoutException):
            return TIMEOUT_MESSAGE
        # ollama wraps httpx.ConnectError into the builtin ConnectionError
        if isinstance(error, (httpx.ConnectError, ConnectionError)):
            return CONNECTION_MESSAGE
        if isinstance(error, ollama.ResponseError):
            return error.error
        return str(error)

    async def check_connection(self) -> bool:
        """Check if the Ollama server is reachable.

        Returns:
            bool: True if connection is successful, False otherwise
        """
        try:
            await self._client.list()
            logger.debug("Ollama connection check: successful")
            return True
        except Exception as e:
            logger.warning(f"Ollama connection check failed: {e}")
            return False

    async def list_models(self) -> list[str]:
        """List the names of all models installed on the server (/api/tags).

        Raises:
            Exception: If the Ollama API request fails
        """
        response = await self._client.list()
        models_list = _get_value(response, "models", []) or []
        names = []
        for model_obj in models_list:
            name = _get_value(model_obj, "model") or _get_value(model_obj, "name")
            if name:
                names.append(name)
        logger.debug(f"Retrieved {len(names)} models from Ollama")
        return names

    async def is_model_available(self) -> bool:
        """Check whether the configured model (any tag) is installed."""
        try:
            names = await self.list_models()
        except Exception as e:
            logger.warning(f"Could not list Ollama models: {e}")
            return False
        base_name = self.model.split(":")[0]
        return any(base_name in name for name in names)

    async def chat(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> ChatResult:
        """Send a non-streaming chat request to /api/chat.

        Args:
            messages: Conversation messages, system prompt first
            tools: Optional tool schemas in function-calling format

        Returns:
            ChatResult: Normalized response; transport errors become a failed result
        """
        logger.debug(
            f"Ollama chat with model {self.model}: {len(messages)} messages, "
            f"{len(tools or [])} tools"
        )
        try:
            response = await self._client.chat(
                model=self.model,
                messages=[m.to_dict() for m in messages],
                tools=tools,
                stream=False,
            )
        except Exception as e:
            logger.error(f"Ollama chat error: {e}")
            return ChatResult.failure(self._describe_error(e))

        message = _get_value(response, "message", {}) or {}
        invocations = []
        for tool_call in _get_value(message, "tool_calls", None) or []:
            function = _get_value(tool_call, "function", {})
            arguments = _get_value(function, "arguments", {})
            invocations.append(
                ToolInvocation(
                    name=_get_value(function, "name", ""),
                    arguments=dict(arguments) if arguments else {},
                )
            )

        return ChatResult(
            success=True,
            message=_get_value(message, "content", "") or "",
            tool_invocations=invocations,
            model=_get_value(response, "model", self.model),
        )

    async def generate(self, prompt: str) -> ChatResult:
        """Run a single-prompt completion through /api/generate."""
        try:
            response = await self._client.generate(
                model=self.model, prompt=prompt, stream=False
            )
        except Exception as e:
            logger.error(f"Ollama generate error: {e}")
            return ChatResult.failure(self._describe_error(e))
        return ChatResult(
            success=True,
            message=_get_value(response, "response", "") or "",
            model=self.model,
        )

    async def close(self) -> None:
        """Close the provider.

        ollama.AsyncClient uses httpx internally which handles cleanup.
        """
        logger.debug("OllamaProvider closed")
