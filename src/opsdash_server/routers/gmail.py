"""Gmail endpoints: inbox listing, single sends and invoice reminders."""

import logging
from datetime import datetime, tzinfo

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.dependencies import get_gmail_client, get_store, get_timezone
from opsdash_server.errors import AuthenticationRequired, OpsDashError
from opsdash_server.integrations.gmail import GmailClient
from opsdash_server.models.common import ErrorResponse
from opsdash_server.models.gmail import (
    EmailMessage,
    InboxResponse,
    SendEmailRequest,
    SendEmailResponse,
)
from opsdash_server.routers.responses import error_response, from_exception
from opsdash_server.services.reminders import send_invoice_reminders
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/gmail", tags=["gmail"])

INBOX_LIMIT = 20
INVALID_SEND_REQUEST = "Invalid request. Provide type=invoice_reminders or to/subject/body"


@router.get(
    "/inbox",
    response_model=InboxResponse,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def inbox(
    include_body: bool = False,
    search: str | None = None,
    gmail: GmailClient = Depends(get_gmail_client),
) -> InboxResponse | JSONResponse:
    """List the 20 most recent inbox messages (401 until Google sign-in)."""
    if not gmail.oauth.is_authenticated():
        return JSONResponse(
            status_code=401,
            content={
                "success": False,
                "authenticated": False,
                "error": AuthenticationRequired().message,
            },
        )
    try:
        emails = await gmail.list_recent(INBOX_LIMIT, include_body=include_body, search=search)
    except OpsDashError as e:
        return from_exception(e)

    messages = [
        EmailMessage(
            id=e.id,
            sender=e.sender,
            subject=e.subject,
            date=e.date,
            snippet=e.snippet,
            body=e.body if include_body else None,
        )
        for e in emails
    ]
    return InboxResponse(messages=messages, count=len(messages))


@router.post(
    "/send",
    response_model=SendEmailResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def send(
    request_body: SendEmailRequest,
    gmail: GmailClient = Depends(get_gmail_client),
    store: DashboardStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
) -> SendEmailResponse | JSONResponse:
    """Send one email, or reminders for every overdue invoice."""
    if request_body.type is None and not request_body.is_single_email:
        return error_response(INVALID_SEND_REQUEST, 400)

    if request_body.type == "invoice_reminders":
        try:
            outcome = await send_invoice_reminders(store, gmail, datetime.now(tz).date())
        except OpsDashError as e:
            return from_exception(e)
        return SendEmailResponse(
            message=outcome.message, sent=outcome.sent, errors=outcome.errors
        )

    try:
        message_id = await gmail.send(
            request_body.to, request_body.subject, request_body.message_body
        )
    except OpsDashError as e:
        return from_exception(e)

    try:
        await store.log_automation(
            "email_sent", f"Sent email to {request_body.to}: {request_body.subject}", True
        )
    except OpsDashError as e:
        logger.warning(f"Could not log sent email: {e}")
    return SendEmailResponse(message="Email sent successfully", message_id=message_id)

