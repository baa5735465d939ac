"""Health check endpoint router."""

import asyncio
import logging
from datetime import datetime, timezone, tzinfo

from fastapi import APIRouter, Depends, Request

from opsdash_server import __version__
from opsdash_server.config import OpsDashSettings, RuntimeConfig
from opsdash_server.dependencies import (
    get_app_settings,
    get_oauth_manager,
    get_provider_factory,
    get_timezone,
    get_token_store,
)
from opsdash_server.errors import StoreError
from opsdash_server.integrations.calendar import GoogleCalendarClient
from opsdash_server.integrations.clickup import ClickUpClient
from opsdash_server.integrations.google_auth import TokenStore
from opsdash_server.models.health import HealthResponse, ServiceStatus
from opsdash_server.providers import ProviderKind
from opsdash_server.providers.factory import ProviderFactory
from opsdash_server.services.stats import compute_dashboard_stats
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


async def _ollama_status(factory: ProviderFactory, config: RuntimeConfig) -> tuple[bool, list[str]]:
    provider = factory.ollama(config.ollama_host, config.ollama_model)
    if not await provider.check_connection():
        return False, []
    try:
        return True, await provider.list_models()
    except Exception as e:
        logger.warning(f"Ollama answered but listing models failed: {e}")
        return True, []


async def _openai_status(factory: ProviderFactory, config: RuntimeConfig) -> bool:
    provider = factory.openai(config.openai_api_key, config.openai_model)
    try:
        return await provider.check_connection()
    finally:
        await provider.close()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    settings: OpsDashSettings = Depends(get_app_settings),
    factory: ProviderFactory = Depends(get_provider_factory),
    token_store: TokenStore = Depends(get_token_store),
    tz: tzinfo = Depends(get_timezone),
) -> HealthResponse:
    """Health check endpoint.

    Probes every collaborator concurrently and computes live dashboard
    statistics. A collaborator that is down is reported as disconnected;
    the endpoint itself does not fail.

    Args:
        request: The FastAPI request object.
        settings: Application settings.
        factory: Provider factory used to probe the AI backends.
        token_store: Google token store for the Calendar probe.
        tz: Local timezone used for overdue comparisons.

    Returns:
        HealthResponse: Service connectivity and dashboard statistics.
    """
    store: DashboardStore | None = getattr(request.app.state, "store", None)
    store_ok = store is not None
    persisted: dict[str, str] = {}
    if store is not None:
        try:
            persisted = await store.get_settings()
        except StoreError as e:
            logger.warning(f"Health check could not read settings: {e}")
            store_ok = False

    config = RuntimeConfig(settings, persisted)
    provider_name = config.ai_provider()
    clickup = ClickUpClient(config.clickup_api_token, config.clickup_space_id)
    calendar = GoogleCalendarClient(
        get_oauth_manager(settings, token_store),
        client_email=config.google_client_email,
        private_key=config.google_private_key,
        sender_email=config.gmail_sender_email,
        calendar_id=config.google_calendar_id,
    )

    clickup_ok, calendar_ok, (ollama_ok, ollama_models) = await asyncio.gather(
        clickup.check_connection(),
        calendar.check_connection(),
        _ollama_status(factory, config),
    )

    openai_ok = False
    if provider_name == ProviderKind.OPENAI.value and config.openai_api_key:
        openai_ok = await _openai_status(factory, config)

    stats = None
    if store is not None and store_ok:
        now = datetime.now(timezone.utc)
        try:
            stats = (await compute_dashboard_stats(store, now.astimezone(tz).date(), now)).to_dict()
        except StoreError as e:
            logger.warning(f"Health check could not compute stats: {e}")
            store_ok = False

    return HealthResponse(
        version=__version__,
        services=ServiceStatus(
            supabase=store_ok,
            clickup=clickup_ok,
            calendar=calendar_ok,
            ollama=ollama_ok,
            ollama_models=ollama_models,
            ai_provider=provider_name,
            openai_model=config.openai_model,
            openai=openai_ok,
            has_openai_key=bool(config.openai_api_key),
        ),
        stats=stats,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
