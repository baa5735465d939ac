"""OpenAI provider adapter.

Maps OpenAI chat completions, including native tool calls whose arguments
arrive as JSON strings, onto the same ChatResult shape the Ollama adapter
produces so the tool executor stays provider-agnostic.
"""

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from opsdash_server.providers.types import (
    ChatMessage,
    ChatResult,
    ProviderKind,
    ToolInvocation,
)

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "OpenAI API Key is missing. Please configure it in Settings."


class OpenAIProvider:
    """Chat provider backed by the OpenAI chat-completions API.

    The underlying client is only created when an API key is present; without
    one, every call fails fast with a configuration error.
    """

    kind = ProviderKind.OPENAI

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o",
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout) if api_key else None

    @staticmethod
    def _describe_error(error: Exception) -> str:
        if isinstance(error, openai.APIStatusError):
            body = error.body if isinstance(error.body, dict) else {}
            # The API nests details under "error" for most failures
            detail = body.get("error", body)
            if isinstance(detail, dict) and detail.get("message"):
                return detail["message"]
            return error.message
        return str(error)

    async def chat(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> ChatResult:
        if self._client is None:
            return ChatResult.failure(MISSING_KEY_MESSAGE)

        request: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
        }
        if tools:
            request["tools"] = [
                {"type": "function", "function": tool["function"]} for tool in tools
            ]
            request["tool_choice"] = "auto"

        try:
            completion = await self._client.chat.completions.create(**request)
        except Exception as e:
            logger.error(f"OpenAI chat error: {e}")
            return ChatResult.failure(self._describe_error(e))

        if not completion.choices:
            logger.error("OpenAI returned no choices")
            return ChatResult.failure("OpenAI returned an empty response")

        message = completion.choices[0].message
        invocations = [
            ToolInvocation(name=call.function.name, arguments=call.function.arguments)
            for call in (message.tool_calls or [])
        ]
        return ChatResult(
            success=True,
            message=message.content or "",
            tool_invocations=invocations,
            model=self.model,
        )

    async def check_connection(self) -> bool:
        """Verify the API key by listing models."""
        if self._client is None:
            return False
        try:
            await self._client.models.list()
            return True
        except Exception as e:
            logger.warning(f"OpenAI connection check failed: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
