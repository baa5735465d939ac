"""FastAPI routers for API endpoints.

This package contains all route handlers organized by resource type.
Each router module defines endpoints for one area (assistant chat, provider
management, health, settings, Google auth, Gmail, CRM records, calendar,
ClickUp).
"""

from opsdash_server.routers import (
    ai,
    auth,
    calendar,
    chat,
    clickup,
    clients,
    gmail,
    health,
    invoices,
    projects,
    settings,
)

__all__ = [
    "ai",
    "auth",
    "calendar",
    "chat",
    "clickup",
    "clients",
    "gmail",
    "health",
    "invoices",
    "projects",
    "settings",
]
