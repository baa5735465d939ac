"""Business logic services for opsdash-server.

This package contains the conversation orchestrator that drives the
tool-calling loop, the assistant's system prompt, overdue-invoice reminder
emails, and the live dashboard statistics used by the health endpoint.
"""

from opsdash_server.services.conversation import (
    ConversationOrchestrator,
    ConversationResult,
    ConversationState,
)
from opsdash_server.services.prompts import build_system_prompt
from opsdash_server.services.reminders import ReminderOutcome, send_invoice_reminders
from opsdash_server.services.stats import DashboardStats, compute_dashboard_stats

__all__ = [
    "ConversationOrchestrator",
    "ConversationResult",
    "ConversationState",
    "DashboardStats",
    "ReminderOutcome",
    "build_system_prompt",
    "compute_dashboard_stats",
    "send_invoice_reminders",
]
