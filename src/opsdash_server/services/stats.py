"""Live dashboard statistics computed from the business tables.

The dashboard_stats view can lag behind recent writes, so the health
endpoint aggregates directly from the tables instead.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone

from opsdash_server.store.database import DashboardStore

logger = logging.getLogger(__name__)

LEAD_STATUSES = ["lead", "qualified"]
PIPELINE_STATUSES = ["lead", "qualified", "proposal"]
MEETING_WINDOW_DAYS = 7
ROI_WINDOW_DAYS = 30


@dataclass
class DashboardStats:
    active_leads: int = 0
    total_clients: int = 0
    active_projects: int = 0
    overdue_projects: int = 0
    avg_health: int = 0
    overdue_invoices: int = 0
    overdue_amount: float = 0.0
    pipeline_value: float = 0.0
    upcoming_meetings: int = 0
    monthly_time_saved: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def _sum(rows: list[dict], column: str) -> float:
    return sum(row.get(column) or 0 for row in rows)


async def compute_dashboard_stats(
    store: DashboardStore, today: date, now: datetime | None = None
) -> DashboardStats:
    """Aggregate the dashboard figures with concurrent queries.

    Args:
        store: The data store.
        today: Local calendar date used for overdue comparisons.
        now: Current instant, defaults to the current UTC time.

    Returns:
        The computed statistics.

    Raises:
        StoreError: If any of the queries fails.
    """
    now = now or datetime.now(timezone.utc)
    today_iso = today.isoformat()

    (
        active_projects,
        overdue_projects,
        overdue_invoices,
        active_leads,
        total_clients,
        pipeline_clients,
        upcoming_meetings,
        roi_metrics,
    ) = await asyncio.gather(
        store.select_columns("projects", "health_score", [("eq", "status", "active")]),
        store.select_columns(
            "projects", "id", [("eq", "status", "active"), ("lt", "due_date", today_iso)]
        ),
        store.select_columns(
            "invoices",
            "amount",
            [("or", "", f"status.eq.overdue,and(status.eq.sent,due_date.lt.{today_iso})")],
        ),
        store.select_columns("clients", "id", [("in", "status", LEAD_STATUSES)]),
        store.count("clients"),
        store.select_columns("clients", "estimated_value", [("in", "status", PIPELINE_STATUSES)]),
        store.select_columns(
            "calendar_events",
            "id",
            [
                ("gte", "start_time", now.isoformat()),
                ("lte", "start_time", (now + timedelta(days=MEETING_WINDOW_DAYS)).isoformat()),
            ],
        ),
        store.select_columns(
            "roi_metrics",
            "time_saved_hours",
            [("gte", "metric_date", (now - timedelta(days=ROI_WINDOW_DAYS)).isoformat())],
        ),
    )

    avg_health = (
        _sum(active_projects, "health_score") / len(active_projects) if active_projects else 0
    )
    stats = DashboardStats(
        active_leads=len(active_leads),
        total_clients=total_clients,
        active_projects=len(active_projects),
        overdue_projects=len(overdue_projects),
        avg_health=round(avg_health),
        overdue_invoices=len(overdue_invoices),
        overdue_amount=_sum(overdue_invoices, "amount"),
        pipeline_value=_sum(pipeline_clients, "estimated_value"),
        upcoming_meetings=len(upcoming_meetings),
        monthly_time_saved=_sum(roi_metrics, "time_saved_hours"),
    )
    logger.debug(f"Computed dashboard stats: {stats}")
    return stats
