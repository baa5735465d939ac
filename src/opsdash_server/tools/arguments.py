"""Typed argument models for each tool.

Tool arguments arrive as loosely-typed JSON produced by a language model.
Each tool has one pydantic model declaring its required and optional fields;
payloads are validated against it before any side effect happens.
"""

import datetime as dt
import json
import logging
from typing import Annotated, Any, ClassVar, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from opsdash_server.errors import ToolValidationError

logger = logging.getLogger(__name__)

MAX_EMAILS = 20

# Error types that mean a required field was left out or blank
MISSING_ERROR_TYPES = frozenset({"missing", "string_too_short"})


def parse_tool_arguments(raw: Any) -> dict[str, Any]:
    """Decode a raw tool-argument payload into a mapping.

    Malformed JSON and non-object payloads fall back to an empty mapping so a
    single bad call never aborts the batch. The fallback is logged because it
    usually hides a model or adapter bug.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Malformed tool arguments, using empty mapping: {e}")
            return {}
        if isinstance(decoded, dict):
            return decoded
    logger.warning(f"Tool arguments are not an object, using empty mapping: {raw!r}")
    return {}


class ToolArguments(BaseModel):
    """Base model for tool arguments.

    Subclasses set missing_message to the text reported when one of their
    required fields is absent or empty.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    missing_message: ClassVar[str | None] = None


def _lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


ClientStatus = Annotated[
    Literal["lead", "qualified", "proposal", "won", "lost", "all"] | None,
    BeforeValidator(_lower),
]
ProjectStatus = Annotated[
    Literal["planning", "active", "on_hold", "completed", "all"] | None,
    BeforeValidator(_lower),
]
InvoiceStatus = Annotated[
    Literal["draft", "sent", "paid", "overdue", "all"] | None,
    BeforeValidator(_lower),
]


class NoArguments(ToolArguments):
    pass


class ClientFilterArguments(ToolArguments):
    status: ClientStatus = None


class ProjectFilterArguments(ToolArguments):
    status: ProjectStatus = None


class InvoiceFilterArguments(ToolArguments):
    status: InvoiceStatus = None


class CalendarWindowArguments(ToolArguments):
    days: float = Field(default=7, gt=0, le=365)


class SendEmailArguments(ToolArguments):
    missing_message: ClassVar[str] = "Missing required email fields (to, subject, body)"

    to: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)


class SearchClientsArguments(ToolArguments):
    missing_message: ClassVar[str] = "Missing required field: query is required"

    query: str = Field(min_length=1)


class ClientDetailsArguments(ToolArguments):
    missing_message: ClassVar[str] = "Missing required field: client_id is required"

    client_id: str = Field(min_length=1)


class RecentEmailsArguments(ToolArguments):
    limit: int = Field(default=5, ge=1)
    search: str | None = None
    include_body: bool = False

    @field_validator("limit")
    @classmethod
    def _cap_limit(cls, value: int) -> int:
        return min(value, MAX_EMAILS)


class CreateInvoiceArguments(ToolArguments):
    missing_message: ClassVar[str] = (
        "Missing required fields: client_name and amount are required"
    )

    client_name: str = Field(min_length=1)
    amount: float = Field(gt=0)
    due_days: int = Field(default=30, ge=0)


class CreateProjectArguments(ToolArguments):
    missing_message: ClassVar[str] = "Missing required field: name is required"

    name: str = Field(min_length=1)
    budget: float | None = Field(default=None, ge=0)
    due_date: dt.date | None = None
    notes: str | None = None


class CreateCalendarEventArguments(ToolArguments):
    missing_message: ClassVar[str] = (
        "Missing required fields: title, date, and time are required"
    )

    title: str = Field(min_length=1)
    date: dt.date
    time: dt.time
    duration_hours: float = Field(default=1, gt=0)
    location: str | None = None


class DeleteCalendarEventArguments(ToolArguments):
    missing_message: ClassVar[str] = (
        "Missing required fields: title and date are required to identify the event"
    )

    title: str = Field(min_length=1)
    date: dt.date
    time: dt.time | None = None


def _format_validation_error(tool_name: str, error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{field}: {item['msg']}")
    return f"Invalid arguments for {tool_name}: " + "; ".join(problems)


def validate_arguments(
    tool_name: str, model: type[ToolArguments], payload: dict[str, Any]
) -> ToolArguments:
    """Validate a decoded payload against a tool's argument model.

    Raises:
        ToolValidationError: If required fields are missing or values are invalid.
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        required = {
            name for name, field in model.model_fields.items() if field.is_required()
        }
        absent = any(
            item["loc"]
            and item["loc"][0] in required
            and (item["type"] in MISSING_ERROR_TYPES or item.get("input") is None)
            for item in e.errors()
        )
        if model.missing_message and absent:
            raise ToolValidationError(tool_name, model.missing_message) from e
        raise ToolValidationError(tool_name, _format_validation_error(tool_name, e)) from e
