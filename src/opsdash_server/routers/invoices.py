"""Invoice endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.dependencies import get_store
from opsdash_server.errors import StoreError
from opsdash_server.models.common import ErrorResponse, SuccessResponse
from opsdash_server.models.records import (
    CreateInvoiceRequest,
    InvoiceListResponse,
    RecordResponse,
)
from opsdash_server.routers.responses import from_exception
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/invoices", tags=["invoices"])

ERROR_RESPONSES = {502: {"model": ErrorResponse}}


@router.get("", response_model=InvoiceListResponse, responses=ERROR_RESPONSES)
async def list_invoices(
    status: str | None = None,
    client_id: str | None = None,
    store: DashboardStore = Depends(get_store),
) -> InvoiceListResponse | JSONResponse:
    """List invoices by due date, with the client's name and email embedded."""
    try:
        invoices = await store.list_invoices(status=status, client_id=client_id)
    except StoreError as e:
        return from_exception(e)
    total_overdue = sum(
        i.get("amount") or 0 for i in invoices if i.get("status") == "overdue"
    )
    return InvoiceListResponse(
        items=invoices, count=len(invoices), total_overdue=total_overdue
    )


@router.post("", response_model=RecordResponse, responses=ERROR_RESPONSES)
async def create_invoice(
    request_body: CreateInvoiceRequest,
    store: DashboardStore = Depends(get_store),
) -> RecordResponse | JSONResponse:
    try:
        invoice = await store.create_invoice(request_body.model_dump(mode="json"))
    except StoreError as e:
        return from_exception(e)
    logger.info(f"Created invoice {request_body.invoice_number}")
    return RecordResponse(item=invoice)


@router.delete("/{invoice_id}", response_model=SuccessResponse, responses=ERROR_RESPONSES)
async def delete_invoice(
    invoice_id: str,
    store: DashboardStore = Depends(get_store),
) -> SuccessResponse | JSONResponse:
    try:
        await store.delete_invoice(invoice_id)
    except StoreError as e:
        return from_exception(e)
    logger.info(f"Deleted invoice {invoice_id}")
    return SuccessResponse()
