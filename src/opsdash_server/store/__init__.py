"""Persistence layer for business records held in the Supabase store."""

from opsdash_server.store.database import DashboardStore

__all__ = ["DashboardStore"]
