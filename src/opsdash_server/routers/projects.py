"""Project endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from opsdash_server.dependencies import get_store
from opsdash_server.errors import StoreError
from opsdash_server.models.common import ErrorResponse, SuccessResponse
from opsdash_server.models.records import (
    CreateProjectRequest,
    RecordListResponse,
    RecordResponse,
)
from opsdash_server.routers.responses import from_exception
from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])

ERROR_RESPONSES = {502: {"model": ErrorResponse}}


@router.get("", response_model=RecordListResponse, responses=ERROR_RESPONSES)
async def list_projects(
    status: str | None = None,
    client_id: str | None = None,
    store: DashboardStore = Depends(get_store),
) -> RecordListResponse | JSONResponse:
    try:
        projects = await store.list_projects(status=status, client_id=client_id)
    except StoreError as e:
        return from_exception(e)
    return RecordListResponse(items=projects, count=len(projects))


@router.post("", response_model=RecordResponse, responses=ERROR_RESPONSES)
async def create_project(
    request_body: CreateProjectRequest,
    store: DashboardStore = Depends(get_store),
) -> RecordResponse | JSONResponse:
    """Create a project with full health and nothing spent."""
    record = request_body.model_dump(mode="json")
    record.update(spent=0, health_score=100)
    try:
        project = await store.create_project(record)
    except StoreError as e:
        return from_exception(e)
    logger.info(f"Created project {project.get('id')}")
    return RecordResponse(item=project)


@router.delete("/{project_id}", response_model=SuccessResponse, responses=ERROR_RESPONSES)
async def delete_project(
    project_id: str,
    store: DashboardStore = Depends(get_store),
) -> SuccessResponse | JSONResponse:
    try:
        await store.delete_project(project_id)
    except StoreError as e:
        return from_exception(e)
    logger.info(f"Deleted project {project_id}")
    return SuccessResponse()
