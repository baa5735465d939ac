"""Unit tests for the tool registry and the system prompt."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from opsdash_server.services.prompts import build_system_prompt
from opsdash_server.tools.definitions import (
    TOOL_DEFINITIONS,
    TOOL_NAMES,
    get_tool_definition,
    tool_schemas,
)
from opsdash_server.providers.types import ToolInvocation
from opsdash_server.store.database import DashboardStore
from opsdash_server.tools.executor import ToolExecutor


def test_registry_has_fifteen_unique_tools():
    assert len(TOOL_DEFINITIONS) == 15
    assert len(set(TOOL_NAMES)) == 15


def test_required_fields_are_declared_properties():
    for tool in TOOL_DEFINITIONS:
        properties = tool.parameters["properties"]
        for name in tool.parameters.get("required", []):
            assert name in properties, f"{tool.name} requires undeclared {name}"


def test_schema_wire_shape():
    schema = tool_schemas()[0]
    assert schema["type"] == "function"
    assert set(schema["function"]) == {"name", "description", "parameters"}


def test_lookup():
    assert get_tool_definition("send_email").parameters["required"] == ["to", "subject", "body"]
    assert get_tool_definition("does_not_exist") is None


@pytest.mark.asyncio
async def test_every_tool_has_a_handler():
    executor = ToolExecutor(
        store=AsyncMock(spec=DashboardStore), clickup=AsyncMock(), gmail=AsyncMock()
    )

    records = await executor.run([ToolInvocation(name, {}) for name in TOOL_NAMES])

    assert [record.name for record in records] == list(TOOL_NAMES)
    for record in records:
        assert not record.result.startswith("Unknown tool"), record.name


def test_system_prompt_lists_tools_and_date():
    prompt = build_system_prompt(date(2026, 3, 10))
    assert "Available tools: get_clients, get_projects" in prompt
    assert prompt.endswith("Current date: 2026-03-10")
    assert "delete_calendar_event" in prompt
