"""Payment reminder emails for overdue invoices."""

import logging
from dataclasses import dataclass
from datetime import date
from html import escape

from opsdash_server.errors import AuthenticationRequired, OpsDashError
from opsdash_server.integrations.gmail import GmailClient
from opsdash_server.store.database import DashboardStore
from opsdash_server.tools.formatting import format_currency, parse_date

logger = logging.getLogger(__name__)

HOURS_SAVED_PER_EMAIL = 0.1


@dataclass
class ReminderOutcome:
    sent: int = 0
    errors: int = 0
    skipped: int = 0

    @property
    def message(self) -> str:
        return f"Sent {self.sent} invoice reminders"


def render_email(greeting: str, body_html: str, signature: str | None = None) -> str:
    """Wrap HTML content in the standard email layout."""
    signature_html = f'<p style="margin-top: 30px;">{signature}</p>' if signature else ""
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; '
        'margin: 0 auto; padding: 20px;">'
        f"<p>{greeting}</p>"
        f'<div style="margin: 20px 0;">{body_html}</div>'
        f"{signature_html}"
        "</div>"
    )


def reminder_email(invoice: dict, client: dict, today: date) -> tuple[str, str]:
    """Build the subject and HTML body of a reminder for one invoice."""
    number = escape(str(invoice.get("invoice_number")))
    amount = format_currency(invoice.get("amount"))
    due = parse_date(invoice.get("due_date"))
    days_overdue = (today - due).days if due else 0
    body = (
        f"<p>This is a friendly reminder that invoice <strong>{number}</strong> "
        f"for <strong>{amount}</strong> is now "
        f'<span style="color: #dc2626;">{days_overdue} days overdue</span>.</p>'
        '<div style="background: #fef3c7; padding: 16px; border-radius: 8px; margin: 16px 0;">'
        f'<p style="margin: 0;"><strong>Invoice Number:</strong> {number}</p>'
        f'<p style="margin: 8px 0 0 0;"><strong>Amount Due:</strong> {amount}</p>'
        f'<p style="margin: 8px 0 0 0;"><strong>Due Date:</strong> {due or "Unknown"}</p>'
        "</div>"
        "<p>Please arrange payment at your earliest convenience.</p>"
    )
    html = render_email(
        f"Dear {escape(str(client.get('name') or 'customer'))},",
        body,
        "Best regards,<br><strong>Operations Team</strong>",
    )
    return f"Payment Reminder: Invoice {invoice.get('invoice_number')}", html


async def _record(
    store: DashboardStore, details: str, success: bool, error: str | None = None
) -> None:
    try:
        await store.log_automation(
            "invoice_reminder", details, success=success, error_message=error
        )
    except OpsDashError as e:
        logger.warning(f"Could not log reminder attempt: {e}")


async def send_invoice_reminders(
    store: DashboardStore, gmail: GmailClient, today: date
) -> ReminderOutcome:
    """Email a reminder for every overdue invoice whose client has an address.

    Each attempt is logged to automation_logs, and successful sends are
    credited to the day's roi_metrics row.

    Raises:
        StoreError: If the overdue invoices cannot be read.
    """
    invoices = await store.list_invoices(status="overdue")
    outcome = ReminderOutcome()

    for invoice in invoices:
        client = invoice.get("clients") or {}
        if not client.get("email"):
            outcome.skipped += 1
            continue

        subject, html = reminder_email(invoice, client, today)
        try:
            await gmail.send(client["email"], subject, html)
        except AuthenticationRequired:
            raise
        except OpsDashError as e:
            outcome.errors += 1
            logger.warning(f"Reminder for {invoice.get('invoice_number')} failed: {e}")
            await _record(
                store,
                f"Failed to send reminder for {invoice.get('invoice_number')}",
                False,
                str(e),
            )
            continue

        outcome.sent += 1
        await _record(
            store,
            f"Sent reminder for {invoice.get('invoice_number')} to {client['email']}",
            True,
        )

    if outcome.sent:
        try:
            await store.add_roi_emails(
                today.isoformat(), outcome.sent, outcome.sent * HOURS_SAVED_PER_EMAIL
            )
        except OpsDashError as e:
            logger.warning(f"Could not credit reminder time saved: {e}")
    logger.info(
        f"Invoice reminders: {outcome.sent} sent, {outcome.errors} failed, "
        f"{outcome.skipped} without email"
    )
    return outcome
