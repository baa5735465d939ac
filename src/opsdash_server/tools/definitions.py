"""Static tool registry shared by all providers.

Each definition is stored in the function-calling wire shape accepted by
both Ollama and OpenAI, and is passed to them verbatim.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class ToolDefinition:
    """A named operation the model may request.

    Attributes:
        name: Tool name used in tool calls.
        description: Natural-language hint the model uses to decide when to call it.
        parameters: JSON schema of the arguments.
    """

    name: str
    description: str
    parameters: dict[str, Any]

    def to_schema(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def _object(properties: dict[str, Any], required: list[str] | None = None) -> dict:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _status_filter(statuses: list[str]) -> dict[str, Any]:
    options = statuses + ["all"]
    return {
        "type": "string",
        "description": f"Filter by status: {', '.join(statuses)}, or all",
        "enum": options,
    }


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="get_clients",
        description="Get list of clients from the CRM database",
        parameters=_object(
            {"status": _status_filter(["lead", "qualified", "proposal", "won", "lost"])}
        ),
    ),
    ToolDefinition(
        name="get_projects",
        description="Get list of projects",
        parameters=_object(
            {"status": _status_filter(["planning", "active", "on_hold", "completed"])}
        ),
    ),
    ToolDefinition(
        name="get_invoices",
        description="Get list of invoices",
        parameters=_object(
            {"status": _status_filter(["draft", "sent", "paid", "overdue"])}
        ),
    ),
    ToolDefinition(
        name="get_calendar_events",
        description="Get upcoming calendar events",
        parameters=_object(
            {
                "days": {
                    "type": "number",
                    "description": "Number of days to look ahead (default: 7)",
                }
            }
        ),
    ),
    ToolDefinition(
        name="get_clickup_tasks",
        description="Get tasks from ClickUp",
        parameters=_object({}),
    ),
    ToolDefinition(
        name="send_email",
        description="Send an email to someone",
        parameters=_object(
            {
                "to": {"type": "string", "description": "Recipient email address"},
                "subject": {"type": "string", "description": "Email subject"},
                "body": {"type": "string", "description": "Email body content"},
            },
            required=["to", "subject", "body"],
        ),
    ),
    ToolDefinition(
        name="get_dashboard_stats",
        description="Get dashboard statistics and KPIs",
        parameters=_object({}),
    ),
    ToolDefinition(
        name="search_clients",
        description="Search for clients by name, company, or email",
        parameters=_object(
            {
                "query": {
                    "type": "string",
                    "description": "The search term (name, company, or email)",
                }
            },
            required=["query"],
        ),
    ),
    ToolDefinition(
        name="get_client_details",
        description=(
            "Get detailed information about a specific client "
            "including their projects and invoices"
        ),
        parameters=_object(
            {"client_id": {"type": "string", "description": "The UUID of the client"}},
            required=["client_id"],
        ),
    ),
    ToolDefinition(
        name="get_recent_emails",
        description="Get recent emails from the inbox",
        parameters=_object(
            {
                "limit": {
                    "type": "number",
                    "description": "Number of emails to fetch (default: 5)",
                },
                "search": {
                    "type": "string",
                    "description": "Optional search term to filter emails",
                },
                "include_body": {
                    "type": "boolean",
                    "description": "Set to true to read full email bodies (for summaries)",
                },
            }
        ),
    ),
    ToolDefinition(
        name="get_full_summary",
        description=(
            "Get a comprehensive summary of the business including all key metrics, "
            "active projects overview, and urgent items"
        ),
        parameters=_object({}),
    ),
    ToolDefinition(
        name="create_invoice",
        description="Create a new invoice for a client",
        parameters=_object(
            {
                "client_name": {
                    "type": "string",
                    "description": "Name of the client (will search for matching client)",
                },
                "amount": {"type": "number", "description": "Invoice amount in dollars"},
                "due_days": {
                    "type": "number",
                    "description": "Number of days until due (default: 30)",
                },
            },
            required=["client_name", "amount"],
        ),
    ),
    ToolDefinition(
        name="create_project",
        description="Create a new project",
        parameters=_object(
            {
                "name": {"type": "string", "description": "Project name"},
                "budget": {"type": "number", "description": "Project budget in dollars"},
                "due_date": {
                    "type": "string",
                    "description": "Due date in YYYY-MM-DD format",
                },
                "notes": {"type": "string", "description": "Project notes or description"},
            },
            required=["name"],
        ),
    ),
    ToolDefinition(
        name="create_calendar_event",
        description="Create a new calendar event or meeting",
        parameters=_object(
            {
                "title": {"type": "string", "description": "Event title"},
                "date": {"type": "string", "description": "Event date in YYYY-MM-DD format"},
                "time": {
                    "type": "string",
                    "description": "Start time in HH:MM format (24h)",
                },
                "duration_hours": {
                    "type": "number",
                    "description": "Duration in hours (default: 1)",
                },
                "location": {
                    "type": "string",
                    "description": "Event location (optional)",
                },
            },
            required=["title", "date", "time"],
        ),
    ),
    ToolDefinition(
        name="delete_calendar_event",
        description="Delete/cancel a calendar event",
        parameters=_object(
            {
                "title": {
                    "type": "string",
                    "description": "Title of the event to delete (fuzzy match)",
                },
                "date": {
                    "type": "string",
                    "description": "Date of the event to delete (YYYY-MM-DD)",
                },
                "time": {
                    "type": "string",
                    "description": "Time of the event (optional, helps disambiguate)",
                },
            },
            required=["title", "date"],
        ),
    ),
)

TOOL_NAMES: tuple[str, ...] = tuple(tool.name for tool in TOOL_DEFINITIONS)

_BY_NAME = MappingProxyType({tool.name: tool for tool in TOOL_DEFINITIONS})


def get_tool_definition(name: str) -> ToolDefinition | None:
    """Look up a tool definition by name."""
    return _BY_NAME.get(name)


def tool_schemas() -> list[dict[str, Any]]:
    """Return all tool definitions in wire format, in registry order."""
    return [tool.to_schema() for tool in TOOL_DEFINITIONS]
