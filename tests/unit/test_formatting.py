"""Unit tests for the tool result text helpers."""

from datetime import date, timezone
from zoneinfo import ZoneInfo

import pytest

from opsdash_server.tools.formatting import (
    format_currency,
    format_date,
    format_datetime,
    parse_date,
    parse_timestamp,
    truncate_preview,
)


@pytest.mark.parametrize(
    "amount, expected",
    [
        (1234.5, "$1,234.50"),
        (0, "$0.00"),
        (None, "$0.00"),
        ("99", "$99.00"),
        ("n/a", "$0.00"),
        (-20, "-$20.00"),
    ],
)
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


def test_truncate_preview():
    assert truncate_preview(None) == "No content"
    assert truncate_preview("short") == "short"
    long_text = "x" * 1500
    preview = truncate_preview(long_text)
    assert len(preview) == 1003
    assert preview.endswith("...")


def test_parse_timestamp_handles_zulu_and_naive():
    zulu = parse_timestamp("2026-03-10T15:00:00Z")
    naive = parse_timestamp("2026-03-10T15:00:00")
    assert zulu == naive
    assert zulu.tzinfo is not None
    assert parse_timestamp("garbage") is None
    assert parse_timestamp(None) is None


def test_parse_date():
    assert parse_date("2026-03-10T15:00:00+00:00") == date(2026, 3, 10)
    assert parse_date("") is None


def test_format_datetime_in_local_zone():
    value = "2026-03-10T15:00:00+00:00"
    assert format_datetime(value) == "2026-03-10 15:00"
    assert format_datetime(value, ZoneInfo("America/New_York")) == "2026-03-10 11:00"
    assert format_datetime(None) == "Unknown"


def test_format_date():
    assert format_date("2026-03-10") == "2026-03-10"
    assert format_date("2026-03-10T23:30:00+00:00", ZoneInfo("Asia/Tokyo")) == "2026-03-11"
    assert format_date(None, timezone.utc) == "Not set"
