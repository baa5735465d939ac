"""Clients for the external services the dashboard aggregates."""

from opsdash_server.integrations.calendar import GoogleCalendarClient, GoogleEvent
from opsdash_server.integrations.clickup import ClickUpClient
from opsdash_server.integrations.gmail import EmailSummary, GmailClient
from opsdash_server.integrations.google_auth import (
    GoogleOAuthManager,
    StoredTokens,
    TokenStore,
)

__all__ = [
    "ClickUpClient",
    "EmailSummary",
    "GmailClient",
    "GoogleCalendarClient",
    "GoogleEvent",
    "GoogleOAuthManager",
    "StoredTokens",
    "TokenStore",
]
