"""ClickUp endpoints: list discovery, task listing and task creation."""

import logging
from datetime import datetime, time, tzinfo

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.dependencies import get_clickup_client, get_timezone
from opsdash_server.errors import OpsDashError
from opsdash_server.integrations.clickup import ClickUpClient
from opsdash_server.models.clickup import (
    ClickUpListsResponse,
    ClickUpTaskResponse,
    ClickUpTasksResponse,
    CreateTaskRequest,
)
from opsdash_server.models.common import ErrorResponse
from opsdash_server.routers.responses import from_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/clickup", tags=["clickup"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get("/lists", response_model=ClickUpListsResponse, responses=ERROR_RESPONSES)
async def list_lists(
    clickup: ClickUpClient = Depends(get_clickup_client),
) -> ClickUpListsResponse | JSONResponse:
    try:
        lists = await clickup.get_lists()
    except OpsDashError as e:
        return from_exception(e)
    return ClickUpListsResponse(lists=lists)


@router.get("/tasks", response_model=ClickUpTasksResponse, responses=ERROR_RESPONSES)
async def list_tasks(
    list_id: str | None = None,
    clickup: ClickUpClient = Depends(get_clickup_client),
) -> ClickUpTasksResponse | JSONResponse:
    """List open tasks of one list, or of every list in the space."""
    try:
        tasks = await clickup.get_tasks(list_id)
    except OpsDashError as e:
        return from_exception(e)
    return ClickUpTasksResponse(tasks=tasks, count=len(tasks))


@router.post("/tasks", response_model=ClickUpTaskResponse, responses=ERROR_RESPONSES)
async def create_task(
    request_body: CreateTaskRequest,
    clickup: ClickUpClient = Depends(get_clickup_client),
    tz: tzinfo = Depends(get_timezone),
) -> ClickUpTaskResponse | JSONResponse:
    due_ms = None
    if request_body.due_date is not None:
        due_at = datetime.combine(request_body.due_date, time(), tzinfo=tz)
        due_ms = int(due_at.timestamp() * 1000)
    try:
        task = await clickup.create_task(
            request_body.list_id,
            request_body.name,
            description=request_body.description,
            due_date=due_ms,
            status=request_body.status,
            priority=request_body.priority,
        )
    except OpsDashError as e:
        return from_exception(e)
    return ClickUpTaskResponse(task=task)
