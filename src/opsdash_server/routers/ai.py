"""Provider management endpoints: switch, diagnostics and model listing."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.config import RuntimeConfig
from opsdash_server.dependencies import get_provider_factory, get_runtime_config, get_store
from opsdash_server.errors import StoreError
from opsdash_server.models.ai import (
    ConnectionStatus,
    ModelListResponse,
    ProviderDebugInfo,
    ProviderDebugResponse,
    SwitchProviderRequest,
)
from opsdash_server.models.common import ErrorResponse, SuccessResponse
from opsdash_server.providers import ProviderKind
from opsdash_server.providers.factory import ProviderFactory
from opsdash_server.routers.responses import error_response, from_exception
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/ai", tags=["ai"])

INVALID_PROVIDER = 'Invalid provider. Must be "ollama" or "openai"'


@router.post(
    "/switch",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def switch_provider(
    request_body: SwitchProviderRequest,
    store: DashboardStore = Depends(get_store),
) -> SuccessResponse | JSONResponse:
    """Persist the default provider as the ai_provider setting row."""
    try:
        kind = ProviderKind.parse(request_body.provider or "")
    except ValueError:
        return error_response(INVALID_PROVIDER, 400)

    try:
        await store.upsert_setting("ai_provider", kind.value)
    except StoreError as e:
        return from_exception(e)

    logger.info(f"AI provider switched to {kind.value}")
    return SuccessResponse(message=f"AI provider switched to {kind.value}")


def _status(connected: bool, tested: bool = True) -> ConnectionStatus:
    if not tested:
        return ConnectionStatus(success=False, error="Not tested")
    return ConnectionStatus(success=connected, error=None if connected else "Connection failed")


@router.get("/debug", response_model=ProviderDebugResponse)
async def debug_providers(
    config: RuntimeConfig = Depends(get_runtime_config),
    factory: ProviderFactory = Depends(get_provider_factory),
) -> ProviderDebugResponse:
    """Report the provider configuration and connectivity of both backends."""
    settings = config.settings
    ollama = factory.ollama(config.ollama_host, config.ollama_model)
    ollama_ok = await ollama.check_connection()

    has_key = bool(config.openai_api_key)
    openai_status = _status(False, tested=False)
    if has_key:
        openai = factory.openai(config.openai_api_key, config.openai_model)
        try:
            openai_status = _status(await openai.check_connection())
        finally:
            await openai.close()

    return ProviderDebugResponse(
        debug=ProviderDebugInfo(
            configured_provider=config.ai_provider(),
            provider_source=config.source_of("ai_provider", settings.ai_provider),
            env_provider=settings.ai_provider,
            db_provider=config.persisted.get("ai_provider"),
            has_openai_key=has_key,
            ollama_status=_status(ollama_ok),
            openai_status=openai_status,
            db_settings_keys=sorted(config.persisted),
        )
    )


@router.get(
    "/models",
    response_model=ModelListResponse,
    responses={503: {"model": ErrorResponse}},
)
async def list_models(
    config: RuntimeConfig = Depends(get_runtime_config),
    factory: ProviderFactory = Depends(get_provider_factory),
) -> ModelListResponse | JSONResponse:
    """List the models installed on the configured Ollama server."""
    provider = factory.ollama(config.ollama_host, config.ollama_model)
    try:
        models = await provider.list_models()
    except Exception as e:
        logger.error(f"Failed to list Ollama models: {e}")
        return error_response(f"Cannot list Ollama models: {e}", 503)
    return ModelListResponse(host=config.ollama_host, models=models)
