"""Assistant chat endpoint.

POST /api/v1/ai/chat answers a conversation with the selected provider,
executing any tools the model requests and re-prompting it with their
results.
"""

import logging
from datetime import datetime, tzinfo

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.config import OpsDashSettings, RuntimeConfig
from opsdash_server.dependencies import (
    get_app_settings,
    get_provider_factory,
    get_runtime_config,
    get_timezone,
    get_tool_executor,
)
from opsdash_server.errors import OrchestrationError
from opsdash_server.models.chat import ChatRequest, ChatResponse, ExecutedToolCall
from opsdash_server.models.common import ErrorResponse
from opsdash_server.providers import ChatMessage, ProviderKind, resolve_provider_kind
from opsdash_server.providers.factory import ProviderFactory
from opsdash_server.routers.responses import error_response
from opsdash_server.services.conversation import ConversationOrchestrator
from opsdash_server.tools.executor import ToolExecutor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/ai", tags=["chat"])

OLLAMA_UNAVAILABLE = "AI service unavailable. Make sure Ollama is running."


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def chat(
    request_body: ChatRequest,
    settings: OpsDashSettings = Depends(get_app_settings),
    config: RuntimeConfig = Depends(get_runtime_config),
    factory: ProviderFactory = Depends(get_provider_factory),
    executor: ToolExecutor = Depends(get_tool_executor),
    tz: tzinfo = Depends(get_timezone),
) -> ChatResponse | JSONResponse:
    """Answer a conversation, executing tools the model asks for.

    Args:
        request_body: Conversation history and optional provider override.
        settings: Application settings.
        config: Per-request configuration (persisted rows over environment).
        factory: Builds the provider adapter.
        executor: Executes tool calls against the store and integrations.
        tz: Local timezone for the system prompt date.

    Returns:
        ChatResponse with the final text and executed tool calls, or an
        error body: 400 for an unknown provider, 503 when Ollama is
        unreachable, 500 when a provider call fails.
    """
    try:
        kind = resolve_provider_kind(config, request_body.provider)
    except ValueError as e:
        return error_response(str(e), 400)

    provider = factory.build(kind, config)
    logger.info(f"Chat request with {len(request_body.messages)} message(s) via {kind.value}")

    try:
        if kind is ProviderKind.OLLAMA and not await provider.check_connection():
            logger.warning("Ollama connectivity check failed before chat")
            return error_response(OLLAMA_UNAVAILABLE, 503)

        orchestrator = ConversationOrchestrator(
            provider,
            executor,
            max_tool_rounds=settings.max_tool_rounds,
            today=lambda: datetime.now(tz).date(),
        )
        history = [ChatMessage(role=m.role, content=m.content) for m in request_body.messages]
        try:
            result = await orchestrator.run(history)
        except OrchestrationError as e:
            logger.error(f"Chat failed at {e.stage} stage: {e}")
            return error_response(str(e), e.status_code)
    finally:
        if kind is ProviderKind.OPENAI:
            await provider.close()

    return ChatResponse(
        response=result.response,
        provider=kind.value,
        model=result.model,
        tool_calls_executed=[
            ExecutedToolCall(name=c.name, arguments=c.arguments, result=c.result)
            for c in result.tool_calls
        ],
    )
