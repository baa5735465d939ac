"""Calendar event endpoints.

Events live in the calendar_events table; when Google Calendar is linked,
creating and deleting an event is mirrored there.
"""

import logging
from datetime import timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.dependencies import get_calendar_client, get_store
from opsdash_server.errors import OpsDashError, StoreError
from opsdash_server.integrations.calendar import GoogleCalendarClient
from opsdash_server.models.common import ErrorResponse, SuccessResponse
from opsdash_server.models.records import (
    CreateEventRequest,
    RecordListResponse,
    RecordResponse,
)
from opsdash_server.routers.responses import error_response, from_exception
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/calendar", tags=["calendar"])

EVENT_LIST_LIMIT = 100


@router.get(
    "/events", response_model=RecordListResponse, responses={502: {"model": ErrorResponse}}
)
async def list_events(
    store: DashboardStore = Depends(get_store),
) -> RecordListResponse | JSONResponse:
    try:
        events = await store.list_events(limit=EVENT_LIST_LIMIT)
    except StoreError as e:
        return from_exception(e)
    return RecordListResponse(items=events, count=len(events))


@router.post(
    "/events", response_model=RecordResponse, responses={502: {"model": ErrorResponse}}
)
async def create_event(
    request_body: CreateEventRequest,
    store: DashboardStore = Depends(get_store),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
) -> RecordResponse | JSONResponse:
    """Store an event and mirror it to Google Calendar when linked.

    A Google failure does not prevent the local insert; it is returned as a
    note instead.
    """
    google_event_id = None
    note = None
    if request_body.sync_to_google and calendar.is_linked:
        try:
            event = await calendar.create_event(
                request_body.title,
                request_body.start_time,
                request_body.end_time,
                description=request_body.description,
                location=request_body.location,
                attendees=request_body.attendees,
            )
            google_event_id = event.id
        except OpsDashError as e:
            logger.warning(f"Google Calendar sync failed: {e}")
            note = f"Could not sync to Google Calendar: {e}"

    record = {
        "title": request_body.title,
        "description": request_body.description,
        "start_time": request_body.start_time.astimezone(timezone.utc).isoformat(),
        "end_time": request_body.end_time.astimezone(timezone.utc).isoformat(),
        "location": request_body.location,
        "attendees": request_body.attendees,
        "google_event_id": google_event_id,
    }
    try:
        stored = await store.create_event(record)
    except StoreError as e:
        return from_exception(e)
    return RecordResponse(item=stored, note=note)


@router.delete(
    "/events/{event_id}",
    response_model=SuccessResponse,
    responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def delete_event(
    event_id: str,
    store: DashboardStore = Depends(get_store),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
) -> SuccessResponse | JSONResponse:
    """Delete an event locally and, if it has a Google ID, from Google Calendar."""
    try:
        event = await store.get_event(event_id)
    except StoreError as e:
        return from_exception(e)
    if event is None:
        return error_response("Event not found", 404)

    message = None
    if event.get("google_event_id"):
        try:
            await calendar.delete_event(event["google_event_id"])
        except OpsDashError as e:
            logger.warning(f"Google Calendar delete failed for {event['google_event_id']}: {e}")
            message = f"Deleted locally; could not delete from Google Calendar: {e}"

    try:
        await store.delete_event(event_id)
    except StoreError as e:
        return from_exception(e)
    logger.info(f"Deleted calendar event {event_id}")
    return SuccessResponse(message=message)
