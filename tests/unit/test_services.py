"""Unit tests for dashboard statistics and invoice reminders."""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from opsdash_server.errors import AuthenticationRequired, StoreError, UpstreamError
from opsdash_server.services.reminders import (
    ReminderOutcome,
    reminder_email,
    send_invoice_reminders,
)
from opsdash_server.services.stats import compute_dashboard_stats
from opsdash_server.store.database import DashboardStore

TODAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return AsyncMock(spec=DashboardStore)


class TestDashboardStats:
    @pytest.mark.asyncio
    async def test_aggregates(self, store):
        store.select_columns.side_effect = [
            [{"health_score": 90}, {"health_score": 75}, {"health_score": None}],
            [],
            [{"amount": 300}],
            [{"id": "c1"}],
            [{"estimated_value": 1000}, {"estimated_value": 2500}],
            [],
            [{"time_saved_hours": 0.4}],
        ]
        store.count.return_value = 4

        stats = await compute_dashboard_stats(store, TODAY, NOW)

        assert stats.active_projects == 3
        assert stats.avg_health == 55
        assert stats.overdue_projects == 0
        assert stats.overdue_invoices == 1
        assert stats.overdue_amount == 300
        assert stats.pipeline_value == 3500
        assert stats.total_clients == 4
        assert stats.monthly_time_saved == pytest.approx(0.4)
        assert stats.to_dict()["active_leads"] == 1

    @pytest.mark.asyncio
    async def test_overdue_filters_use_local_date(self, store):
        store.select_columns.return_value = []
        store.count.return_value = 0

        await compute_dashboard_stats(store, TODAY, NOW)

        calls = [c.args for c in store.select_columns.call_args_list]
        assert ("projects", "id", [("eq", "status", "active"), ("lt", "due_date", "2026-03-10")]) in calls
        invoice_filter = next(args[2] for args in calls if args[0] == "invoices")
        assert invoice_filter == [
            ("or", "", "status.eq.overdue,and(status.eq.sent,due_date.lt.2026-03-10)")
        ]

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, store):
        store.select_columns.side_effect = StoreError("Failed to read projects: down")
        store.count.return_value = 0

        with pytest.raises(StoreError):
            await compute_dashboard_stats(store, TODAY, NOW)


def overdue_invoice(number, email, name="Acme"):
    client = {"name": name, "email": email} if email else {"name": name}
    return {
        "invoice_number": number,
        "amount": 1200,
        "due_date": "2026-02-28",
        "clients": client,
    }


class TestInvoiceReminders:
    def test_reminder_email_content(self):
        subject, html = reminder_email(
            overdue_invoice("INV-1", "a@acme.test", name="<Acme>"), {"name": "<Acme>"}, TODAY
        )

        assert subject == "Payment Reminder: Invoice INV-1"
        assert "10 days overdue" in html
        assert "$1,200.00" in html
        assert "Dear &lt;Acme&gt;," in html

    @pytest.mark.asyncio
    async def test_sends_logs_and_credits_time(self, store):
        store.list_invoices.return_value = [
            overdue_invoice("INV-1", "a@acme.test"),
            overdue_invoice("INV-2", None),
            overdue_invoice("INV-3", "b@acme.test"),
        ]
        gmail = AsyncMock()
        gmail.send.side_effect = ["msg-1", UpstreamError("Rate limit", "Gmail")]

        outcome = await send_invoice_reminders(store, gmail, TODAY)

        assert outcome == ReminderOutcome(sent=1, errors=1, skipped=1)
        assert outcome.message == "Sent 1 invoice reminders"
        assert gmail.send.await_count == 2
        assert store.log_automation.await_count == 2
        failed = store.log_automation.await_args_list[1]
        assert failed.kwargs["success"] is False
        assert failed.kwargs["error_message"] == "Gmail: Rate limit"
        store.add_roi_emails.assert_awaited_once_with("2026-03-10", 1, pytest.approx(0.1))

    @pytest.mark.asyncio
    async def test_nothing_sent_skips_roi(self, store):
        store.list_invoices.return_value = []

        outcome = await send_invoice_reminders(store, AsyncMock(), TODAY)

        assert outcome.sent == 0
        store.add_roi_emails.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_signed_out_aborts_batch(self, store):
        store.list_invoices.return_value = [overdue_invoice("INV-1", "a@acme.test")]
        gmail = AsyncMock()
        gmail.send.side_effect = AuthenticationRequired()

        with pytest.raises(AuthenticationRequired):
            await send_invoice_reminders(store, gmail, TODAY)
        store.log_automation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bookkeeping_failures_do_not_stop_batch(self, store):
        store.list_invoices.return_value = [
            overdue_invoice("INV-1", "a@acme.test"),
            overdue_invoice("INV-2", "b@acme.test"),
            overdue_invoice("INV-3", "c@acme.test"),
        ]
        store.log_automation.side_effect = StoreError("insert failed")
        store.add_roi_emails.side_effect = StoreError("upsert failed")
        gmail = AsyncMock()
        gmail.send.return_value = "msg"

        outcome = await send_invoice_reminders(store, gmail, TODAY)

        assert outcome == ReminderOutcome(sent=3, errors=0, skipped=0)
        assert gmail.send.await_count == 3
        assert store.log_automation.await_count == 3
        store.add_roi_emails.assert_awaited_once_with("2026-03-10", 3, pytest.approx(0.3))
