"""Type definitions shared by the chat provider adapters.

This module contains the dataclasses used to exchange messages and tool
invocations with language-model backends, plus the provider enum and the
capability protocol every adapter implements.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class ProviderKind(str, Enum):
    """The interchangeable language-model backends."""

    OLLAMA = "ollama"
    OPENAI = "openai"

    @classmethod
    def parse(cls, value: str) -> "ProviderKind":
        """Parse a provider name, rejecting unknown values.

        Raises:
            ValueError: If the name is not a known provider.
        """
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            raise ValueError(
                f'Invalid provider "{value}". Must be "ollama" or "openai"'
            ) from None


@dataclass
class ChatMessage:
    """A single conversation message.

    Attributes:
        role: One of "system", "user" or "assistant".
        content: Message text.
    """

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ToolInvocation:
    """A tool call requested by the model.

    Attributes:
        name: The tool name.
        arguments: Raw JSON string (cloud backend) or decoded mapping (local backend).
    """

    name: str
    arguments: str | dict[str, Any] = ""


@dataclass
class ChatResult:
    """Normalized result of a chat call.

    Attributes:
        success: Whether the backend produced a response.
        message: Assistant message content (may be empty when only tools are requested).
        tool_invocations: Tool calls requested by the model, in order.
        error: Error description when success is False.
        model: Model that produced the response.
    """

    success: bool
    message: str = ""
    tool_invocations: list[ToolInvocation] = field(default_factory=list)
    error: str | None = None
    model: str | None = None

    @classmethod
    def failure(cls, error: str) -> "ChatResult":
        return cls(success=False, error=error)


class ChatProvider(Protocol):
    """Capability interface implemented by every provider adapter."""

    kind: ProviderKind
    model: str

    async def chat(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> ChatResult: ...

    async def check_connection(self) -> bool: ...

    async def close(self) -> None: ...
