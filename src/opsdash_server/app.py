"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown
and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from opsdash_server.config import OpsDashSettings, RuntimeConfig
from opsdash_server.errors import ConfigurationError, OpsDashError
from opsdash_server.integrations.google_auth import TokenStore
from opsdash_server.providers.factory import ProviderFactory
from opsdash_server.routers import (
    ai,
    auth,
    calendar,
    chat,
    clickup,
    clients,
    gmail,
    health,
    invoices,
    projects,
    settings as settings_router,
)
from opsdash_server.routers.responses import from_exception
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    This function handles startup and shutdown logic for the application.
    The data store connection, the Google token store and the provider
    factory are created once at startup and stored in app.state for reuse
    across all requests.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control is yielded while the app is running.
    """
    settings: OpsDashSettings = app.state.settings

    # Startup: connect the data store; without it most routes answer 503
    try:
        app.state.store = await DashboardStore.connect(
            settings.supabase_url, settings.supabase_service_key
        )
    except ConfigurationError as e:
        logger.warning(f"Data store not configured: {e}")
        app.state.store = None

    app.state.token_store = TokenStore(settings.resolved_token_path)
    logger.info(f"Google tokens stored at {settings.resolved_token_path}")

    app.state.provider_factory = ProviderFactory(settings)

    # Check initial connectivity of the default Ollama backend
    env_config = RuntimeConfig(settings)
    ollama = app.state.provider_factory.ollama(env_config.ollama_host, env_config.ollama_model)
    if await ollama.check_connection():
        logger.info(f"Successfully connected to Ollama at {env_config.ollama_host}")
    else:
        logger.warning("Could not connect to Ollama - check if server is running")

    yield

    # Shutdown: Clean up resources
    await app.state.provider_factory.close()
    logger.info("Provider clients closed")


async def handle_opsdash_error(request: Request, exc: OpsDashError) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}")
    return from_exception(exc)


def create_app(settings: OpsDashSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a FastAPI instance with all routers,
    middleware, and configuration applied. It can accept an optional
    settings object for testing or explicit configuration.

    Args:
        settings: Optional OpsDashSettings instance. If not provided,
                  settings will be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from opsdash_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="opsdash-server",
        description="Operations dashboard API with a tool-calling assistant",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings in app.state for lifespan access
    app.state.settings = settings

    # Configure CORS
    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(OpsDashError, handle_opsdash_error)  # type: ignore[arg-type]

    # Register routers
    app.include_router(health.router)
    app.include_router(chat.router)
    app.include_router(ai.router)
    app.include_router(settings_router.router)
    app.include_router(auth.router)
    app.include_router(gmail.router)
    app.include_router(clients.router)
    app.include_router(projects.router)
    app.include_router(invoices.router)
    app.include_router(calendar.router)
    app.include_router(clickup.router)

    return app
