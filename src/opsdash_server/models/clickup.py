"""Pydantic models for the ClickUp task endpoints."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field


class ClickUpListsResponse(BaseModel):
    success: bool = True
    lists: list[dict[str, Any]] = Field(default_factory=list)


class ClickUpTasksResponse(BaseModel):
    success: bool = True
    tasks: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0


class CreateTaskRequest(BaseModel):
    name: str = Field(min_length=1, description="Task name")
    list_id: str = Field(min_length=1, description="Target ClickUp list")
    description: str | None = None
    due_date: date | None = None
    status: str | None = None
    priority: int | None = Field(default=None, ge=1, le=4, description="1 urgent .. 4 low")


class ClickUpTaskResponse(BaseModel):
    success: bool = True
    task: dict[str, Any]
