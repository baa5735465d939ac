"""Language-model provider adapters.

This package normalizes the local Ollama server and the cloud OpenAI API to
one chat interface that accepts messages plus optional tool schemas and
returns a ChatResult.
"""

from opsdash_server.providers.factory import ProviderFactory, resolve_provider_kind
from opsdash_server.providers.ollama import OllamaProvider
from opsdash_server.providers.openai import OpenAIProvider
from opsdash_server.providers.types import (
    ChatMessage,
    ChatProvider,
    ChatResult,
    ProviderKind,
    ToolInvocation,
)

__all__ = [
    "ChatMessage",
    "ChatProvider",
    "ChatResult",
    "OllamaProvider",
    "OpenAIProvider",
    "ProviderFactory",
    "ProviderKind",
    "ToolInvocation",
    "resolve_provider_kind",
]
