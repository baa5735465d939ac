"""Tool registry, argument validation and execution.

The registry (definitions) is shared by every provider. The executor
validates each requested call and performs it against the store and the
external integrations, producing one text result per call.
"""

from opsdash_server.tools.arguments import parse_tool_arguments, validate_arguments
from opsdash_server.tools.definitions import (
    TOOL_DEFINITIONS,
    TOOL_NAMES,
    ToolDefinition,
    get_tool_definition,
    tool_schemas,
)
from opsdash_server.tools.executor import ToolCallRecord, ToolExecutor

__all__ = [
    "TOOL_DEFINITIONS",
    "TOOL_NAMES",
    "ToolCallRecord",
    "ToolDefinition",
    "ToolExecutor",
    "get_tool_definition",
    "parse_tool_arguments",
    "tool_schemas",
    "validate_arguments",
]
