"""Dependency injection providers for FastAPI endpoints.

Long-lived objects (data store, token store, provider factory) are created
by the lifespan and read from app.state. Everything that depends on
configuration the user can change at runtime (provider, API keys, ClickUp
and Google credentials) is built per request from a freshly read
RuntimeConfig.
"""

import logging
from datetime import tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import Depends, HTTPException, Request

from opsdash_server.config import OpsDashSettings, RuntimeConfig
from opsdash_server.errors import StoreError
from opsdash_server.integrations.calendar import GoogleCalendarClient
from opsdash_server.integrations.clickup import ClickUpClient
from opsdash_server.integrations.gmail import GmailClient
from opsdash_server.integrations.google_auth import GoogleOAuthManager, TokenStore
from opsdash_server.providers.factory import ProviderFactory
from opsdash_server.store.database import DashboardStore
from opsdash_server.tools.executor import ToolExecutor

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> OpsDashSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the OPSDASH_ prefix.

    Returns:
        OpsDashSettings: The application configuration settings.
    """
    return OpsDashSettings()


def get_app_settings(request: Request) -> OpsDashSettings:
    """Get the settings the running app was created with.

    Uses app.state instead of the cached get_settings() so tests can run
    apps with their own isolated settings.
    """
    return request.app.state.settings


def get_store(request: Request) -> DashboardStore:
    """Get the data store from app state.

    Raises:
        HTTPException: If the store is not configured (503 Service Unavailable).
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=503,
            detail="Database not configured. Set OPSDASH_SUPABASE_URL and OPSDASH_SUPABASE_SERVICE_KEY.",
        )
    return store


def get_token_store(request: Request) -> TokenStore:
    if not hasattr(request.app.state, "token_store"):
        raise HTTPException(status_code=503, detail="Token store not initialized")
    return request.app.state.token_store


def get_provider_factory(request: Request) -> ProviderFactory:
    if not hasattr(request.app.state, "provider_factory"):
        raise HTTPException(status_code=503, detail="Provider factory not initialized")
    return request.app.state.provider_factory


async def get_runtime_config(
    settings: OpsDashSettings = Depends(get_app_settings),
    store: DashboardStore = Depends(get_store),
) -> RuntimeConfig:
    """Layer the persisted setting rows over the environment settings.

    When the settings table cannot be read the environment values are used
    alone, so a store problem does not take the assistant down with it.
    """
    try:
        persisted = await store.get_settings()
    except StoreError as e:
        logger.warning(f"Could not read persisted settings, using environment only: {e}")
        persisted = {}
    return RuntimeConfig(settings, persisted)


def get_timezone(settings: OpsDashSettings = Depends(get_app_settings)) -> tzinfo:
    try:
        return ZoneInfo(settings.timezone)
    except ZoneInfoNotFoundError:
        logger.warning(f"Unknown timezone {settings.timezone!r}, using UTC")
        return ZoneInfo("UTC")


def get_oauth_manager(
    settings: OpsDashSettings = Depends(get_app_settings),
    token_store: TokenStore = Depends(get_token_store),
) -> GoogleOAuthManager:
    return GoogleOAuthManager(
        token_store=token_store,
        client_id=settings.google_oauth_client_id,
        client_secret=settings.google_oauth_client_secret,
        redirect_uri=settings.google_redirect_uri,
    )


def get_clickup_client(
    config: RuntimeConfig = Depends(get_runtime_config),
) -> ClickUpClient:
    return ClickUpClient(token=config.clickup_api_token, space_id=config.clickup_space_id)


def get_gmail_client(oauth: GoogleOAuthManager = Depends(get_oauth_manager)) -> GmailClient:
    return GmailClient(oauth)


def get_calendar_client(
    config: RuntimeConfig = Depends(get_runtime_config),
    oauth: GoogleOAuthManager = Depends(get_oauth_manager),
) -> GoogleCalendarClient:
    return GoogleCalendarClient(
        oauth,
        client_email=config.google_client_email,
        private_key=config.google_private_key,
        sender_email=config.gmail_sender_email,
        calendar_id=config.google_calendar_id,
    )


def get_tool_executor(
    store: DashboardStore = Depends(get_store),
    clickup: ClickUpClient = Depends(get_clickup_client),
    gmail: GmailClient = Depends(get_gmail_client),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
    tz: tzinfo = Depends(get_timezone),
) -> ToolExecutor:
    """Build a ToolExecutor wired to this request's collaborators."""
    return ToolExecutor(store=store, clickup=clickup, gmail=gmail, calendar=calendar, tz=tz)
