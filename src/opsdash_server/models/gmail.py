"""Pydantic models for the Gmail and Google OAuth endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class EmailMessage(BaseModel):
    id: str
    sender: str = Field(description="From header")
    subject: str
    date: str = Field(description="Date header")
    snippet: str
    body: str | None = None


class InboxResponse(BaseModel):
    success: bool = True
    authenticated: bool = True
    messages: list[EmailMessage] = Field(default_factory=list)
    count: int = 0


class SendEmailRequest(BaseModel):
    """Request body for POST /api/v1/gmail/send.

    Either a single email (to, subject and body or content) or
    type="invoice_reminders" to email every client with an overdue invoice.
    """

    type: Literal["invoice_reminders"] | None = Field(
        default=None, description="Batch mode; omit for a single email"
    )
    to: str | None = None
    subject: str | None = None
    body: str | None = None
    content: str | None = Field(default=None, description="Alias of body")

    @property
    def is_single_email(self) -> bool:
        return bool(self.to and self.subject and (self.body or self.content))

    @property
    def message_body(self) -> str:
        return self.body or self.content or ""


class SendEmailResponse(BaseModel):
    success: bool = True
    message: str
    message_id: str | None = None
    sent: int | None = Field(default=None, description="Reminders sent (batch mode)")
    errors: int | None = Field(default=None, description="Reminders that failed (batch mode)")


class AuthStatusResponse(BaseModel):
    success: bool = True
    authenticated: bool
    auth_url: str | None = Field(default=None, description="Google consent URL when not signed in")
