"""Data-access layer over the Supabase (Postgres) store.

This module provides the DashboardStore class, a thin async wrapper around the
supabase AsyncClient exposing the reads and writes used by the tool executor
and the CRUD routers. Query errors are raised as StoreError so callers can
report which collaborator failed.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from opsdash_server.errors import ConfigurationError, StoreError

logger = logging.getLogger(__name__)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DashboardStore:
    """Async access to the clients, projects, invoices, calendar_events,
    settings and roi_metrics tables and the dashboard_stats view.

    Attributes:
        _client: The underlying supabase AsyncClient.
    """

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    @classmethod
    async def connect(cls, url: str | None, key: str | None) -> "DashboardStore":
        """Create a store connected with the service-role key.

        Raises:
            ConfigurationError: If the URL or key is missing.
        """
        if not url or not key:
            raise ConfigurationError(
                "Supabase URL and service key are required", collaborator="Database"
            )
        client = await acreate_client(url, key)
        logger.info(f"DashboardStore connected to {url}")
        return cls(client)

    def _table(self, name: str) -> Any:
        return self._client.table(name)

    async def _run(self, query: Any, action: str) -> Any:
        """Execute a query builder, translating API errors into StoreError."""
        try:
            return await query.execute()
        except APIError as e:
            logger.error(f"Failed to {action}: {e.message}")
            raise StoreError(f"Failed to {action}: {e.message}") from e

    async def _rows(self, query: Any, action: str) -> list[dict[str, Any]]:
        response = await self._run(query, action)
        return response.data or []

    # --- Settings ---

    async def get_settings(self) -> dict[str, str]:
        """Read all persisted setting rows as a key/value mapping."""
        rows = await self._rows(self._table("settings").select("*"), "read settings")
        return {row["key"]: row.get("value") or "" for row in rows}

    async def upsert_setting(self, key: str, value: str) -> None:
        await self._run(
            self._table("settings").upsert(
                {"key": key, "value": value, "updated_at": _utcnow_iso()}
            ),
            f"save setting {key}",
        )

    # --- Clients ---

    async def list_clients(
        self, status: str | None = None, limit: int | None = None
    ) -> list[dict[str, Any]]:
        query = self._table("clients").select("*").order("created_at", desc=True)
        if status and status != "all":
            query = query.eq("status", status)
        if limit:
            query = query.limit(limit)
        return await self._rows(query, "list clients")

    async def search_clients(self, term: str, limit: int = 5) -> list[dict[str, Any]]:
        pattern = f"%{term}%"
        query = (
            self._table("clients")
            .select("*")
            .or_(f"name.ilike.{pattern},company.ilike.{pattern},email.ilike.{pattern}")
            .limit(limit)
        )
        return await self._rows(query, "search clients")

    async def find_client_by_name(self, name: str) -> dict[str, Any] | None:
        rows = await self._rows(
            self._table("clients").select("id, name").ilike("name", f"%{name}%").limit(1),
            "find client",
        )
        return rows[0] if rows else None

    async def get_client(self, client_id: str) -> dict[str, Any] | None:
        rows = await self._rows(
            self._table("clients").select("*").eq("id", client_id).limit(1),
            "get client",
        )
        return rows[0] if rows else None

    async def create_client(self, record: dict[str, Any]) -> dict[str, Any]:
        rows = await self._rows(self._table("clients").insert(record), "create client")
        return rows[0] if rows else record

    async def delete_client(self, client_id: str) -> None:
        await self._run(
            self._table("clients").delete().eq("id", client_id), "delete client"
        )

    # --- Projects ---

    async def list_projects(
        self,
        status: str | None = None,
        limit: int | None = None,
        client_id: str | None = None,
        order_by_health: bool = False,
    ) -> list[dict[str, Any]]:
        query = self._table("projects").select("*")
        if order_by_health:
            query = query.order("health_score", desc=False)
        else:
            query = query.order("created_at", desc=True)
        if status and status != "all":
            query = query.eq("status", status)
        if client_id:
            query = query.eq("client_id", client_id)
        if limit:
            query = query.limit(limit)
        return await self._rows(query, "list projects")

    async def create_project(self, record: dict[str, Any]) -> dict[str, Any]:
        rows = await self._rows(self._table("projects").insert(record), "create project")
        return rows[0] if rows else record

    async def delete_project(self, project_id: str) -> None:
        await self._run(
            self._table("projects").delete().eq("id", project_id), "delete project"
        )

    # --- Invoices ---

    async def list_invoices(
        self,
        status: str | None = None,
        limit: int | None = None,
        client_id: str | None = None,
    ) -> list[dict[str, Any]]:
        query = (
            self._table("invoices")
            .select("*, clients(name, email)")
            .order("due_date", desc=False)
        )
        if status and status != "all":
            query = query.eq("status", status)
        if client_id:
            query = query.eq("client_id", client_id)
        if limit:
            query = query.limit(limit)
        return await self._rows(query, "list invoices")

    async def create_invoice(self, record: dict[str, Any]) -> dict[str, Any]:
        rows = await self._rows(self._table("invoices").insert(record), "create invoice")
        return rows[0] if rows else record

    async def delete_invoice(self, invoice_id: str) -> None:
        await self._run(
            self._table("invoices").delete().eq("id", invoice_id), "delete invoice"
        )

    # --- Calendar events ---

    async def list_events(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        title: str | None = None,
    ) -> list[dict[str, Any]]:
        """List calendar events ordered by start time.

        Args:
            start: Only events starting at or after this instant.
            end: Only events starting at or before this instant.
            limit: Maximum number of rows.
            title: Case-insensitive substring the title must contain.
        """
        query = self._table("calendar_events").select("*")
        if start is not None:
            query = query.gte("start_time", start.isoformat())
        if end is not None:
            query = query.lte("start_time", end.isoformat())
        if title:
            query = query.ilike("title", f"%{title}%")
        query = query.order("start_time", desc=False)
        if limit:
            query = query.limit(limit)
        return await self._rows(query, "list calendar events")

    async def get_event(self, event_id: str) -> dict[str, Any] | None:
        rows = await self._rows(
            self._table("calendar_events").select("*").eq("id", event_id).limit(1),
            "get calendar event",
        )
        return rows[0] if rows else None

    async def create_event(self, record: dict[str, Any]) -> dict[str, Any]:
        rows = await self._rows(
            self._table("calendar_events").insert(record), "create event"
        )
        return rows[0] if rows else record

    async def delete_event(self, event_id: str) -> None:
        await self._run(
            self._table("calendar_events").delete().eq("id", event_id), "delete event"
        )

    # --- Automation bookkeeping ---

    async def log_automation(
        self,
        action_type: str,
        details: str,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        """Append a row to automation_logs."""
        record: dict[str, Any] = {
            "action_type": action_type,
            "details": details,
            "success": success,
        }
        if error_message:
            record["error_message"] = error_message
        await self._run(
            self._table("automation_logs").insert(record), "write automation log"
        )

    async def add_roi_emails(self, metric_date: str, emails_sent: int, hours_saved: float) -> None:
        """Add sent emails and saved hours to the roi_metrics row of a day."""
        rows = await self._rows(
            self._table("roi_metrics").select("*").eq("metric_date", metric_date).limit(1),
            "read roi metrics",
        )
        if rows:
            existing = rows[0]
            await self._run(
                self._table("roi_metrics")
                .update(
                    {
                        "emails_sent": (existing.get("emails_sent") or 0) + emails_sent,
                        "time_saved_hours": (existing.get("time_saved_hours") or 0)
                        + hours_saved,
                    }
                )
                .eq("metric_date", metric_date),
                "update roi metrics",
            )
        else:
            await self._run(
                self._table("roi_metrics").insert(
                    {
                        "metric_date": metric_date,
                        "emails_sent": emails_sent,
                        "time_saved_hours": hours_saved,
                    }
                ),
                "insert roi metrics",
            )

    # --- Dashboard statistics ---

    async def get_dashboard_stats(self) -> dict[str, Any] | None:
        """Read the single row of the dashboard_stats view."""
        rows = await self._rows(
            self._table("dashboard_stats").select("*").limit(1), "read dashboard stats"
        )
        return rows[0] if rows else None

    async def count(self, table: str, **filters: Any) -> int:
        """Count rows of a table matching equality filters."""
        query = self._table(table).select("id", count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        response = await self._run(query, f"count {table}")
        return response.count or 0

    async def select_columns(
        self, table: str, columns: str, filters: list[tuple[str, str, Any]] | None = None
    ) -> list[dict[str, Any]]:
        """Select columns with (operator, column, value) filters.

        Supported operators are eq, lt, gte, lte, in and or; for "or" the
        column is ignored and value is a PostgREST filter expression.
        """
        query = self._table(table).select(columns)
        for operator, column, value in filters or []:
            if operator == "or":
                query = query.or_(value)
            elif operator == "in":
                query = query.in_(column, value)
            else:
                query = getattr(query, operator)(column, value)
        return await self._rows(query, f"read {table}")
