"""Persisted settings endpoints.

Setting rows override environment configuration on the next request; see
RuntimeConfig for the resolution order.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.dependencies import get_store
from opsdash_server.errors import StoreError
from opsdash_server.models.common import ErrorResponse, SuccessResponse
from opsdash_server.models.settings import SettingsResponse, UpdateSettingsRequest
from opsdash_server.routers.responses import from_exception
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse, responses={502: {"model": ErrorResponse}})
async def get_settings(
    store: DashboardStore = Depends(get_store),
) -> SettingsResponse | JSONResponse:
    """Return all persisted setting rows."""
    try:
        return SettingsResponse(settings=await store.get_settings())
    except StoreError as e:
        return from_exception(e)


@router.post("", response_model=SuccessResponse, responses={502: {"model": ErrorResponse}})
async def update_settings(
    request_body: UpdateSettingsRequest,
    store: DashboardStore = Depends(get_store),
) -> SuccessResponse | JSONResponse:
    """Upsert each given setting row, stopping at the first failure."""
    for key, value in request_body.settings.items():
        try:
            await store.upsert_setting(key, value)
        except StoreError as e:
            logger.error(f"Error saving setting {key}: {e}")
            return from_exception(e)
    logger.info(f"Saved {len(request_body.settings)} setting(s)")
    return SuccessResponse()
