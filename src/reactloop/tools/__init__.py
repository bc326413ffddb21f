"""Tool types, schema definitions, and argument validation."""

from reactloop.tools.types import (
    Tool,
    ToolContext,
    ToolDefinition,
    ToolError,
    ToolErrorCode,
    ToolParameter,
    ToolResult,
    tool_to_definition,
)
from reactloop.tools.validation import validate_arguments, validate_tool

__all__ = [
    "Tool",
    "ToolContext",
    "ToolDefinition",
    "ToolError",
    "ToolErrorCode",
    "ToolParameter",
    "ToolResult",
    "tool_to_definition",
    "validate_arguments",
    "validate_tool",
]
