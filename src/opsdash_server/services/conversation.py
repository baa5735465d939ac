"""Tool-calling conversation loop.

ConversationOrchestrator drives one chat request through a bounded state
machine:

    INIT -> AWAITING_FIRST_RESPONSE -> (DONE | AWAITING_TOOL_RESULTS)
    AWAITING_TOOL_RESULTS -> AWAITING_FINAL_RESPONSE
    AWAITING_FINAL_RESPONSE -> (DONE | AWAITING_TOOL_RESULTS)

The model may request tools for at most max_tool_rounds rounds. Once the
budget is spent the next call is made without tools, so it can only answer
in text. With the default budget of one round a request makes at most two
provider calls.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from opsdash_server.errors import OrchestrationError
from opsdash_server.providers.types import ChatMessage, ChatProvider, ChatResult
from opsdash_server.services.prompts import build_system_prompt
from opsdash_server.tools.definitions import tool_schemas
from opsdash_server.tools.executor import ToolCallRecord, ToolExecutor

logger = logging.getLogger(__name__)

FIRST_RESPONSE_ERROR = "Failed to get AI response"
FINAL_RESPONSE_ERROR = "Failed to get final response"


class ConversationState(str, Enum):
    INIT = "init"
    AWAITING_FIRST_RESPONSE = "awaiting_first_response"
    AWAITING_TOOL_RESULTS = "awaiting_tool_results"
    AWAITING_FINAL_RESPONSE = "awaiting_final_response"
    DONE = "done"


@dataclass
class ConversationResult:
    """Outcome of one orchestrated chat request.

    Attributes:
        response: Final assistant text.
        tool_calls: Every tool call executed, across all rounds, in order.
        provider_calls: Number of provider calls made.
        model: Model that produced the final response, if reported.
    """

    response: str
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    provider_calls: int = 0
    model: str | None = None


def format_tool_results(results: list[str]) -> str:
    """Build the synthetic user message that feeds tool results back to the model."""
    joined = "\n\n".join(results)
    return (
        f"Tool results:\n{joined}\n\n"
        "Please provide a helpful response based on these results."
    )


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


class ConversationOrchestrator:
    """Runs the tool-calling loop for one request.

    Attributes:
        provider: Chat backend used for every call.
        executor: Executes tool invocations requested by the model.
        max_tool_rounds: Maximum number of rounds in which tools are offered.
    """

    def __init__(
        self,
        provider: ChatProvider,
        executor: ToolExecutor,
        max_tool_rounds: int = 1,
        today: Callable[[], date] = _today_utc,
    ) -> None:
        if max_tool_rounds < 1:
            raise ValueError("max_tool_rounds must be at least 1")
        self.provider = provider
        self.executor = executor
        self.max_tool_rounds = max_tool_rounds
        self._today = today
        self.state = ConversationState.INIT

    def build_messages(self, history: list[ChatMessage]) -> list[ChatMessage]:
        """Prepend the system prompt to the caller's history."""
        system = ChatMessage(role="system", content=build_system_prompt(self._today()))
        return [system, *history]

    async def _call(
        self, messages: list[ChatMessage], tools: list[dict[str, Any]] | None, stage: str
    ) -> ChatResult:
        result = await self.provider.chat(messages, tools=tools)
        if not result.success or (not result.message and not result.tool_invocations):
            if stage == "first":
                error = result.error or FIRST_RESPONSE_ERROR
            else:
                error = FINAL_RESPONSE_ERROR
            logger.error(f"Provider call failed at {stage} stage: {result.error or 'empty response'}")
            raise OrchestrationError(stage, error)
        return result

    async def run(self, history: list[ChatMessage]) -> ConversationResult:
        """Answer a conversation, executing any requested tools.

        Args:
            history: Caller-supplied messages, oldest first.

        Returns:
            The final response and the executed tool calls.

        Raises:
            OrchestrationError: If a provider call fails or returns nothing.
        """
        messages = self.build_messages(history)
        tool_calls: list[ToolCallRecord] = []
        provider_calls = 0
        rounds = 0
        response: ChatResult | None = None

        self.state = ConversationState.AWAITING_FIRST_RESPONSE
        while self.state is not ConversationState.DONE:
            if self.state is ConversationState.AWAITING_FIRST_RESPONSE:
                response = await self._call(messages, tool_schemas(), "first")
                provider_calls += 1
                self.state = (
                    ConversationState.AWAITING_TOOL_RESULTS
                    if response.tool_invocations
                    else ConversationState.DONE
                )

            elif self.state is ConversationState.AWAITING_TOOL_RESULTS:
                rounds += 1
                logger.info(
                    f"Round {rounds}: executing {len(response.tool_invocations)} tool call(s)"
                )
                records = await self.executor.run(response.tool_invocations)
                tool_calls.extend(records)
                messages.append(ChatMessage(role="assistant", content=response.message or ""))
                messages.append(
                    ChatMessage(
                        role="user",
                        content=format_tool_results([r.result for r in records]),
                    )
                )
                self.state = ConversationState.AWAITING_FINAL_RESPONSE

            elif self.state is ConversationState.AWAITING_FINAL_RESPONSE:
                tools = tool_schemas() if rounds < self.max_tool_rounds else None
                response = await self._call(messages, tools, "final")
                provider_calls += 1
                if tools is not None and response.tool_invocations:
                    self.state = ConversationState.AWAITING_TOOL_RESULTS
                elif not response.message:
                    logger.error("Final provider call returned no text")
                    raise OrchestrationError("final", FINAL_RESPONSE_ERROR)
                else:
                    self.state = ConversationState.DONE

        logger.debug(f"Conversation finished after {provider_calls} provider call(s)")
        return ConversationResult(
            response=response.message,
            tool_calls=tool_calls,
            provider_calls=provider_calls,
            model=response.model,
        )
