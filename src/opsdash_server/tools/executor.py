"""Tool execution against the dashboard's collaborators.

ToolExecutor turns the tool invocations requested by a model into one text
result each. Arguments are decoded and validated before dispatch, and every
failure is rendered as result text, so one bad call never aborts the batch.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any

from opsdash_server.errors import (
    ConfigurationError,
    OpsDashError,
    StoreError,
    ToolValidationError,
)
from opsdash_server.integrations.calendar import GoogleCalendarClient
from opsdash_server.integrations.clickup import ClickUpClient
from opsdash_server.integrations.gmail import GmailClient
from opsdash_server.providers.types import ToolInvocation
from opsdash_server.store.database import DashboardStore
from opsdash_server.tools.arguments import (
    CalendarWindowArguments,
    ClientDetailsArguments,
    ClientFilterArguments,
    CreateCalendarEventArguments,
    CreateInvoiceArguments,
    CreateProjectArguments,
    DeleteCalendarEventArguments,
    InvoiceFilterArguments,
    NoArguments,
    ProjectFilterArguments,
    RecentEmailsArguments,
    SearchClientsArguments,
    SendEmailArguments,
    ToolArguments,
    parse_tool_arguments,
    validate_arguments,
)
from opsdash_server.tools.formatting import (
    format_currency,
    format_date,
    format_datetime,
    parse_date,
    parse_timestamp,
    truncate_preview,
)

logger = logging.getLogger(__name__)

LIST_LIMIT = 10
SEARCH_LIMIT = 5
CLICKUP_PREVIEW = 5
SUMMARY_LIMIT = 5
HEALTH_RISK_THRESHOLD = 70

Handler = Callable[[Any], Awaitable[str]]


@dataclass
class ToolCallRecord:
    """One executed tool call.

    Attributes:
        name: Tool name as requested by the model.
        arguments: Decoded arguments (empty when the payload was malformed).
        result: Text result fed back to the model.
    """

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    result: str = ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_days(days: float) -> str:
    return str(int(days)) if float(days).is_integer() else str(days)


class ToolExecutor:
    """Executes tool invocations and formats their results.

    Attributes:
        store: Business data store.
        clickup: ClickUp client used for task reads and project sync.
        gmail: Gmail client used for inbox reads and sending.
        calendar: Google Calendar client; events are mirrored there when linked.
        tz: Timezone used for "today" and for rendering timestamps.
    """

    def __init__(
        self,
        store: DashboardStore,
        clickup: ClickUpClient | None = None,
        gmail: GmailClient | None = None,
        calendar: GoogleCalendarClient | None = None,
        tz: tzinfo = timezone.utc,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.clickup = clickup
        self.gmail = gmail
        self.calendar = calendar
        self.tz = tz
        self._now = now
        self._handlers: dict[str, tuple[type[ToolArguments], Handler]] = {
            "get_clients": (ClientFilterArguments, self._get_clients),
            "get_projects": (ProjectFilterArguments, self._get_projects),
            "get_invoices": (InvoiceFilterArguments, self._get_invoices),
            "get_calendar_events": (CalendarWindowArguments, self._get_calendar_events),
            "get_clickup_tasks": (NoArguments, self._get_clickup_tasks),
            "send_email": (SendEmailArguments, self._send_email),
            "get_dashboard_stats": (NoArguments, self._get_dashboard_stats),
            "search_clients": (SearchClientsArguments, self._search_clients),
            "get_client_details": (ClientDetailsArguments, self._get_client_details),
            "get_recent_emails": (RecentEmailsArguments, self._get_recent_emails),
            "get_full_summary": (NoArguments, self._get_full_summary),
            "create_invoice": (CreateInvoiceArguments, self._create_invoice),
            "create_project": (CreateProjectArguments, self._create_project),
            "create_calendar_event": (
                CreateCalendarEventArguments,
                self._create_calendar_event,
            ),
            "delete_calendar_event": (
                DeleteCalendarEventArguments,
                self._delete_calendar_event,
            ),
        }

    def _local_now(self) -> datetime:
        return self._now().astimezone(self.tz)

    def _today(self) -> date:
        return self._local_now().date()

    async def run(self, invocations: list[ToolInvocation]) -> list[ToolCallRecord]:
        """Execute invocations in order and return one record per invocation."""
        records = []
        for invocation in invocations:
            arguments = parse_tool_arguments(invocation.arguments)
            result = await self._dispatch(invocation.name, arguments)
            records.append(ToolCallRecord(invocation.name, arguments, result))
        return records

    async def _dispatch(self, name: str, payload: dict[str, Any]) -> str:
        entry = self._handlers.get(name)
        if entry is None:
            logger.warning(f"Model requested unknown tool: {name}")
            return f"Unknown tool: {name}"

        model, handler = entry
        logger.debug(f"Executing tool {name} with {payload}")
        try:
            args = validate_arguments(name, model, payload)
            return await handler(args)
        except ToolValidationError as e:
            logger.info(f"Rejected {name} call: {e}")
            return str(e)
        except OpsDashError as e:
            logger.error(f"Tool {name} failed: {e}")
            return f"{name} failed: {e}"
        except Exception as e:
            logger.exception(f"Unexpected error in tool {name}")
            return f"{name} failed: {e}"

    def _require_clickup(self) -> ClickUpClient:
        if self.clickup is None:
            raise ConfigurationError("ClickUp is not configured", collaborator="ClickUp")
        return self.clickup

    def _require_gmail(self) -> GmailClient:
        if self.gmail is None:
            raise ConfigurationError("Gmail is not configured", collaborator="Gmail")
        return self.gmail

    # --- Reads ---

    async def _get_clients(self, args: ClientFilterArguments) -> str:
        clients = await self.store.list_clients(status=args.status, limit=LIST_LIMIT)
        if not clients:
            return "No clients found."
        lines = [
            f"- {c.get('name')} ({c.get('company') or 'No company'}) - {c.get('status')}"
            f" - {format_currency(c.get('estimated_value'))}"
            for c in clients
        ]
        return f"Found {len(clients)} clients:\n" + "\n".join(lines)

    def _format_project(self, project: dict[str, Any]) -> str:
        due = parse_date(project.get("due_date"))
        overdue = (
            due is not None and project.get("status") == "active" and due < self._today()
        )
        budget = project.get("budget") or 0
        spent = project.get("spent") or 0
        used = round(spent / budget * 100) if budget > 0 else 0
        return (
            f"- {project.get('name')}\n"
            f"  Status: {project.get('status')}{' ⚠️ OVERDUE' if overdue else ''}\n"
            f"  Health: {project.get('health_score')}%\n"
            f"  Budget: {format_currency(budget)} | Spent: {format_currency(spent)} ({used}%)\n"
            f"  Start: {project.get('start_date') or 'Not set'}"
            f" | Due: {project.get('due_date') or 'Not set'}\n"
            f"  Notes: {project.get('notes') or 'None'}"
        )

    async def _get_projects(self, args: ProjectFilterArguments) -> str:
        projects = await self.store.list_projects(status=args.status, limit=LIST_LIMIT)
        if not projects:
            return "No projects found."
        blocks = [self._format_project(p) for p in projects]
        return f"Found {len(projects)} projects:\n" + "\n\n".join(blocks)

    async def _get_invoices(self, args: InvoiceFilterArguments) -> str:
        invoices = await self.store.list_invoices(status=args.status, limit=LIST_LIMIT)
        if not invoices:
            return "No invoices found."
        lines = []
        for invoice in invoices:
            client = invoice.get("clients") or {}
            lines.append(
                f"- {invoice.get('invoice_number')}: {format_currency(invoice.get('amount'))}"
                f" ({invoice.get('status')}) - Client: {client.get('name') or 'Unknown'}"
                f" ({client.get('email') or 'No email'})"
                f" - Due: {format_date(invoice.get('due_date'), self.tz)}"
            )
        return f"Found {len(invoices)} invoices:\n" + "\n".join(lines)

    async def _get_calendar_events(self, args: CalendarWindowArguments) -> str:
        start = self._now()
        end = start + timedelta(days=args.days)
        events = await self.store.list_events(start=start, end=end, limit=LIST_LIMIT)
        if not events:
            return f"No events found in the next {_format_days(args.days)} days."
        lines = [
            f"- {e.get('title')} on {format_datetime(e.get('start_time'), self.tz)}"
            + (f" at {e['location']}" if e.get("location") else "")
            for e in events
        ]
        return f"Found {len(events)} upcoming events:\n" + "\n".join(lines)

    async def _get_clickup_tasks(self, args: NoArguments) -> str:
        tasks = await self._require_clickup().get_tasks()
        if not tasks:
            return "No ClickUp tasks found."
        lines = [
            f"- {t.get('name')} ({(t.get('status') or {}).get('status') or 'no status'})"
            for t in tasks[:CLICKUP_PREVIEW]
        ]
        return f"Found {len(tasks)} ClickUp tasks:\n" + "\n".join(lines)

    async def _get_dashboard_stats(self, args: NoArguments) -> str:
        stats = await self.store.get_dashboard_stats()
        if not stats:
            return "Could not fetch dashboard stats."
        return (
            "Dashboard Stats:\n"
            f"- Active Leads: {stats.get('active_leads') or 0}\n"
            f"- Active Projects: {stats.get('active_projects') or 0}\n"
            f"- Average Project Health: {round(stats.get('avg_health') or 0)}%\n"
            f"- Overdue Invoices: {stats.get('overdue_invoices') or 0}"
            f" (Total: {format_currency(stats.get('overdue_amount'))})\n"
            f"- Pipeline Value: {format_currency(stats.get('pipeline_value'))}\n"
            f"- Upcoming Meetings: {stats.get('upcoming_meetings') or 0}\n"
            f"- Time Saved This Month: {stats.get('monthly_time_saved') or 0} hours"
        )

    async def _search_clients(self, args: SearchClientsArguments) -> str:
        clients = await self.store.search_clients(args.query, limit=SEARCH_LIMIT)
        if not clients:
            return f'No clients found matching "{args.query}"'
        lines = [
            f"- {c.get('name')} ({c.get('company') or 'No company'}) [ID: {c.get('id')}]"
            for c in clients
        ]
        return f"Found {len(clients)} matching clients:\n" + "\n".join(lines)

    async def _get_client_details(self, args: ClientDetailsArguments) -> str:
        client, projects, invoices = await asyncio.gather(
            self.store.get_client(args.client_id),
            self.store.list_projects(client_id=args.client_id),
            self.store.list_invoices(client_id=args.client_id),
            return_exceptions=True,
        )
        if client is None:
            return "Client not found."

        if isinstance(projects, BaseException):
            logger.warning(f"Could not load projects for client {args.client_id}: {projects}")
            project_lines = f"Could not load projects: {projects}"
        elif projects:
            project_lines = "\n".join(f"- {p.get('name')} ({p.get('status')})" for p in projects)
        else:
            project_lines = "No projects"

        if isinstance(invoices, BaseException):
            logger.warning(f"Could not load invoices for client {args.client_id}: {invoices}")
            invoice_lines = f"Could not load invoices: {invoices}"
        elif invoices:
            invoice_lines = "\n".join(
                f"- #{i.get('invoice_number')}: {format_currency(i.get('amount'))}"
                f" ({i.get('status')})"
                for i in invoices
            )
        else:
            invoice_lines = "No invoices"

        if isinstance(client, BaseException):
            logger.warning(f"Could not load client {args.client_id}: {client}")
            header = f"Client record unavailable ({args.client_id}): {client}\n"
        else:
            header = (
                f"Client Details for {client.get('name')}"
                f" ({client.get('company') or 'No company'}):\n"
                f"- Email: {client.get('email') or 'No email'}\n"
                f"- Status: {client.get('status')}\n"
                f"- Value: {format_currency(client.get('estimated_value'))}\n"
            )
        return f"{header}\nProjects:\n{project_lines}\n\nInvoices:\n{invoice_lines}"

    async def _get_recent_emails(self, args: RecentEmailsArguments) -> str:
        emails = await self._require_gmail().list_recent(
            limit=args.limit, include_body=args.include_body, search=args.search
        )
        emails = emails[: args.limit]
        if not emails:
            return "No recent emails found."
        entries = []
        for email in emails:
            content = email.body if args.include_body else email.snippet
            entries.append(
                f"- [{email.date}] From: {email.sender} | Subject: {email.subject}\n"
                f"  Content: {truncate_preview(content)}"
            )
        return "Recent Emails:\n" + "\n".join(entries)

    async def _get_full_summary(self, args: NoArguments) -> str:
        stats, projects, invoices, events = await asyncio.gather(
            self.store.get_dashboard_stats(),
            self.store.list_projects(limit=SUMMARY_LIMIT, order_by_health=True),
            self.store.list_invoices(status="overdue", limit=SUMMARY_LIMIT),
            self.store.list_events(start=self._now(), limit=SUMMARY_LIMIT),
            return_exceptions=True,
        )

        if isinstance(stats, BaseException):
            logger.warning(f"Summary stats unavailable: {stats}")
            metrics = f"- Unavailable: {stats}"
        else:
            s = stats or {}
            metrics = (
                f"- Pipeline: {format_currency(s.get('pipeline_value'))}\n"
                f"- Active Projects: {s.get('active_projects') or 0}\n"
                f"- Overdue Invoices: {s.get('overdue_invoices') or 0}"
                f" ({format_currency(s.get('overdue_amount'))})"
            )

        if isinstance(invoices, BaseException):
            logger.warning(f"Summary invoices unavailable: {invoices}")
            urgent = f"- Unavailable: {invoices}"
        elif invoices:
            urgent = "Overdue Invoices:\n" + "\n".join(
                f"- {i.get('invoice_number')}: {format_currency(i.get('amount'))}"
                for i in invoices
            )
        else:
            urgent = "- No overdue invoices"

        if isinstance(projects, BaseException):
            logger.warning(f"Summary projects unavailable: {projects}")
            risks = f"- Unavailable: {projects}"
        else:
            at_risk = [
                p for p in projects if (p.get("health_score") or 0) < HEALTH_RISK_THRESHOLD
            ]
            risks = (
                "\n".join(f"- {p.get('name')}: {p.get('health_score')}% health" for p in at_risk)
                if at_risk
                else "- All top projects healthy"
            )

        if isinstance(events, BaseException):
            logger.warning(f"Summary events unavailable: {events}")
            schedule = f"- Unavailable: {events}"
        elif events:
            schedule = "\n".join(
                f"- {e.get('title')} ({format_date(e.get('start_time'), self.tz)})"
                for e in events
            )
        else:
            schedule = "- No immediate events"

        return (
            "EXECUTIVE SUMMARY\n\n"
            f"KEY METRICS:\n{metrics}\n\n"
            f"URGENT ATTENTION NEEDED:\n{urgent}\n\n"
            f"PROJECT HEALTH RISKS:\n{risks}\n\n"
            f"UPCOMING SCHEDULE:\n{schedule}"
        )

    # --- Writes ---

    async def _send_email(self, args: SendEmailArguments) -> str:
        try:
            await self._require_gmail().send(args.to, args.subject, args.body)
        except OpsDashError as e:
            logger.error(f"send_email to {args.to} failed: {e}")
            return f"Failed to send email: {e}"
        return f"Email sent successfully to {args.to}"

    async def _create_invoice(self, args: CreateInvoiceArguments) -> str:
        client = await self.store.find_client_by_name(args.client_name)
        if client is None:
            return (
                f'No client found matching "{args.client_name}". '
                "Please create the client first."
            )

        now = self._now()
        today = self._today()
        invoice_number = f"INV-{str(int(now.timestamp() * 1000))[-6:]}"
        await self.store.create_invoice(
            {
                "invoice_number": invoice_number,
                "client_id": client["id"],
                "amount": args.amount,
                "status": "draft",
                "issue_date": today.isoformat(),
                "due_date": (today + timedelta(days=args.due_days)).isoformat(),
            }
        )
        logger.info(f"Created invoice {invoice_number} for client {client['id']}")
        return (
            f"✅ Invoice {invoice_number} created for {client.get('name')}"
            f" - {format_currency(args.amount)} (due in {args.due_days} days)"
        )

    async def _create_clickup_task(self, args: CreateProjectArguments) -> str | None:
        """Create the ClickUp task for a new project in the first available list.

        Returns:
            The task ID, or None when ClickUp is unavailable or has no lists.
        """
        if self.clickup is None:
            return None
        try:
            lists = await self.clickup.get_lists()
            if not lists:
                logger.warning("No ClickUp lists available for new project")
                return None
            due_ms = None
            if args.due_date is not None:
                due_at = datetime.combine(args.due_date, time(), tzinfo=self.tz)
                due_ms = int(due_at.timestamp() * 1000)
            task = await self.clickup.create_task(
                lists[0]["id"],
                name=args.name,
                description=args.notes or "Project created via AI chat",
                due_date=due_ms,
            )
        except OpsDashError as e:
            logger.warning(f"ClickUp create failed, creating project locally only: {e}")
            return None
        return task.get("id")

    async def _create_project(self, args: CreateProjectArguments) -> str:
        clickup_task_id = await self._create_clickup_task(args)
        budget_text = f" with budget {format_currency(args.budget)}" if args.budget else ""

        try:
            await self.store.create_project(
                {
                    "name": args.name,
                    "status": "planning",
                    "budget": args.budget or 0,
                    "spent": 0,
                    "health_score": 100,
                    "due_date": args.due_date.isoformat() if args.due_date else None,
                    "notes": args.notes,
                    "start_date": self._today().isoformat(),
                    "clickup_task_id": clickup_task_id,
                }
            )
        except StoreError as e:
            if clickup_task_id is None:
                raise
            logger.error(f"Project insert failed after ClickUp task {clickup_task_id} was created")
            return (
                f'Failed to save project "{args.name}" locally: {e}. '
                f"ClickUp task {clickup_task_id} was created and is not linked to any project."
            )

        if clickup_task_id:
            return (
                f'✅ Project "{args.name}" created successfully in both ClickUp and '
                f"local database{budget_text}"
            )
        return (
            f'✅ Project "{args.name}" created locally{budget_text} '
            "(Note: Could not sync to ClickUp - check ClickUp settings)"
        )

    def _calendar_linked(self) -> bool:
        return self.calendar is not None and self.calendar.is_linked

    async def _create_calendar_event(self, args: CreateCalendarEventArguments) -> str:
        start = datetime.combine(args.date, args.time, tzinfo=self.tz)
        end = start + timedelta(hours=args.duration_hours)

        google_event_id = None
        note = ""
        if self._calendar_linked():
            try:
                event = await self.calendar.create_event(
                    args.title, start, end, location=args.location
                )
                google_event_id = event.id
            except OpsDashError as e:
                logger.warning(f"Google Calendar sync failed for {args.title!r}: {e}")
                note = f" (Note: Could not sync to Google Calendar - {e})"

        await self.store.create_event(
            {
                "title": args.title,
                "start_time": start.astimezone(timezone.utc).isoformat(),
                "end_time": end.astimezone(timezone.utc).isoformat(),
                "location": args.location,
                "google_event_id": google_event_id,
            }
        )
        location_text = f" at {args.location}" if args.location else ""
        return (
            f'✅ Calendar event "{args.title}" created for {args.date.isoformat()}'
            f" at {args.time.strftime('%H:%M')}{location_text}{note}"
        )

    async def _delete_calendar_event(self, args: DeleteCalendarEventArguments) -> str:
        day_start = datetime.combine(args.date, time.min, tzinfo=self.tz)
        day_end = datetime.combine(args.date, time.max, tzinfo=self.tz)
        events = await self.store.list_events(start=day_start, end=day_end, title=args.title)

        if args.time is not None:
            wanted = args.time.strftime("%H:%M")
            events = [
                e
                for e in events
                if (start := parse_timestamp(e.get("start_time"))) is not None
                and start.astimezone(self.tz).strftime("%H:%M") == wanted
            ]

        day = args.date.isoformat()
        if not events:
            return f'Could not find any event matching "{args.title}" on {day}.'
        if len(events) > 1:
            return (
                f'Found multiple events matching "{args.title}" on {day}. '
                "Please be more specific with the title or time."
            )

        event = events[0]
        note = ""
        if event.get("google_event_id") and self.calendar is not None:
            try:
                await self.calendar.delete_event(event["google_event_id"])
            except OpsDashError as e:
                logger.warning(f"Google Calendar delete failed for {event['google_event_id']}: {e}")
                note = f" (Note: Could not delete from Google Calendar - {e})"

        await self.store.delete_event(event["id"])
        logger.info(f"Deleted calendar event {event['id']}")
        return (
            f'✅ Deleted event: "{event.get("title")}" on '
            f"{format_datetime(event.get('start_time'), self.tz)}{note}"
        )
