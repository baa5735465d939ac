"""Text helpers shared by the tool result formatters."""

from datetime import date, datetime, timezone, tzinfo
from typing import Any

PREVIEW_LIMIT = 1000


def format_currency(amount: Any) -> str:
    """Format an amount as US dollars, e.g. ``$1,234.50``."""
    try:
        value = float(amount or 0)
    except (TypeError, ValueError):
        value = 0.0
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def truncate_preview(text: str | None, limit: int = PREVIEW_LIMIT) -> str:
    if not text:
        return "No content"
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp from the store; naive values are UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def format_datetime(value: str | None, tz: tzinfo = timezone.utc) -> str:
    """Render a stored timestamp as ``YYYY-MM-DD HH:MM`` in the given zone."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or "Unknown"
    return parsed.astimezone(tz).strftime("%Y-%m-%d %H:%M")


def format_date(value: str | None, tz: tzinfo = timezone.utc) -> str:
    if value and len(value) == 10:
        return value
    parsed = parse_timestamp(value)
    if parsed is None:
        return value or "Not set"
    return parsed.astimezone(tz).strftime("%Y-%m-%d")
