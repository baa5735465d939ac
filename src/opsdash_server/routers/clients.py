"""Client (CRM) endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.dependencies import get_store
from opsdash_server.errors import StoreError
from opsdash_server.models.common import ErrorResponse, SuccessResponse
from opsdash_server.models.records import (
    CreateClientRequest,
    RecordListResponse,
    RecordResponse,
)
from opsdash_server.routers.responses import from_exception
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/clients", tags=["clients"])

ERROR_RESPONSES = {502: {"model": ErrorResponse}}


@router.get("", response_model=RecordListResponse, responses=ERROR_RESPONSES)
async def list_clients(
    status: str | None = None,
    store: DashboardStore = Depends(get_store),
) -> RecordListResponse | JSONResponse:
    """List clients, newest first; status=all or no status returns every client."""
    try:
        clients = await store.list_clients(status=status)
    except StoreError as e:
        return from_exception(e)
    return RecordListResponse(items=clients, count=len(clients))


@router.post("", response_model=RecordResponse, responses=ERROR_RESPONSES)
async def create_client(
    request_body: CreateClientRequest,
    store: DashboardStore = Depends(get_store),
) -> RecordResponse | JSONResponse:
    try:
        client = await store.create_client(request_body.model_dump())
    except StoreError as e:
        return from_exception(e)
    logger.info(f"Created client {client.get('id')}")
    return RecordResponse(item=client)


@router.delete("/{client_id}", response_model=SuccessResponse, responses=ERROR_RESPONSES)
async def delete_client(
    client_id: str,
    store: DashboardStore = Depends(get_store),
) -> SuccessResponse | JSONResponse:
    try:
        await store.delete_client(client_id)
    except StoreError as e:
        return from_exception(e)
    logger.info(f"Deleted client {client_id}")
    return SuccessResponse()
