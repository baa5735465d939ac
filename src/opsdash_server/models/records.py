"""Pydantic models for the client, project, invoice and calendar endpoints.

Rows are returned as the store hands them back, so list and item responses
carry plain mappings; request bodies are validated here.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

ClientStatus = Literal["lead", "qualified", "proposal", "won", "lost"]
ProjectStatus = Literal["planning", "active", "on_hold", "completed"]
InvoiceStatus = Literal["draft", "sent", "paid", "overdue"]


class CreateClientRequest(BaseModel):
    name: str = Field(min_length=1, description="Client name")
    email: str | None = Field(default=None, description="Contact email")
    phone: str | None = Field(default=None, description="Contact phone")
    company: str | None = Field(default=None, description="Company name")
    status: ClientStatus = Field(default="lead", description="Pipeline status")
    source: str | None = Field(default=None, description="Lead source")
    estimated_value: float = Field(default=0, ge=0, description="Estimated deal value")
    notes: str | None = Field(default=None, description="Free-form notes")


class CreateProjectRequest(BaseModel):
    name: str = Field(min_length=1, description="Project name")
    client_id: str | None = Field(default=None, description="Owning client")
    status: ProjectStatus = Field(default="planning", description="Project status")
    budget: float = Field(default=0, ge=0, description="Budget in USD")
    start_date: date | None = Field(default=None, description="Start date")
    due_date: date | None = Field(default=None, description="Due date")
    notes: str | None = Field(default=None, description="Free-form notes")


class CreateInvoiceRequest(BaseModel):
    invoice_number: str = Field(min_length=1, description="Invoice number, e.g. INV-123456")
    client_id: str | None = Field(default=None, description="Billed client")
    amount: float = Field(gt=0, description="Amount in USD")
    status: InvoiceStatus = Field(default="draft", description="Invoice status")
    issue_date: date = Field(description="Issue date")
    due_date: date = Field(description="Due date")


class CreateEventRequest(BaseModel):
    """Request body for POST /api/v1/calendar/events.

    The event is stored locally and, when sync_to_google is set and Google
    Calendar is linked, also created there.
    """

    title: str = Field(min_length=1, description="Event title")
    start_time: datetime = Field(description="Start time (ISO 8601)")
    end_time: datetime = Field(description="End time (ISO 8601)")
    description: str | None = Field(default=None, description="Event description")
    location: str | None = Field(default=None, description="Event location")
    attendees: list[str] = Field(default_factory=list, description="Attendee emails")
    sync_to_google: bool = Field(default=True, description="Also create in Google Calendar")

    @model_validator(mode="after")
    def _check_order(self) -> "CreateEventRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class RecordListResponse(BaseModel):
    """A list of rows of one table."""

    success: bool = True
    items: list[dict[str, Any]] = Field(default_factory=list, description="Rows")
    count: int = Field(default=0, description="Number of rows returned")


class InvoiceListResponse(RecordListResponse):
    total_overdue: float = Field(
        default=0, description="Sum of the amounts of overdue invoices in the list"
    )


class RecordResponse(BaseModel):
    """A single created row."""

    success: bool = True
    item: dict[str, Any] = Field(description="The stored row")
    note: str | None = Field(default=None, description="Non-fatal sync problem, if any")
