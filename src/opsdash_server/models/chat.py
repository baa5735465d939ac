"""Pydantic models for the assistant chat API.

This module defines the request and response schemas for
POST /api/v1/ai/chat.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessageIn(BaseModel):
    """A message of the caller-supplied conversation history."""

    role: Literal["system", "user", "assistant"] = Field(description="Message role")
    content: str = Field(description="Message text")


class ChatRequest(BaseModel):
    """Request body for the chat endpoint."""

    messages: list[ChatMessageIn] = Field(
        description="Conversation history, oldest first. The system prompt is added by the server.",
    )
    provider: str | None = Field(
        default=None,
        description='Explicit provider for this request ("ollama" or "openai"). '
        "Defaults to the persisted setting, then the environment.",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "messages": [{"role": "user", "content": "Show overdue invoices"}],
                    "provider": None,
                },
            ]
        }
    )


class ExecutedToolCall(BaseModel):
    """A tool call executed while answering the request."""

    name: str = Field(description="Tool name")
    arguments: dict[str, Any] = Field(
        default_factory=dict, description="Decoded arguments passed to the tool"
    )
    result: str = Field(description="Text result fed back to the model")


class ChatResponse(BaseModel):
    """Response body for a successful chat request."""

    success: bool = Field(default=True, description="Always true")
    response: str = Field(description="Final assistant text")
    provider: str = Field(description="Provider that answered")
    model: str | None = Field(default=None, description="Model that answered, if reported")
    tool_calls_executed: list[ExecutedToolCall] = Field(
        default_factory=list,
        description="Tools executed during this response, in order",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "response": "You have one overdue invoice: INV-123456 for $1,500.00.",
                "provider": "ollama",
                "model": "llama3.1:8b",
                "tool_calls_executed": [
                    {
                        "name": "get_invoices",
                        "arguments": {"status": "overdue"},
                        "result": "Found 1 invoices:\n- INV-123456: $1,500.00 (overdue) ...",
                    }
                ],
            }
        }
    )
