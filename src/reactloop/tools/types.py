"""Tool types for plugin-provided tool calling.

A Tool is pure data plus an async ``execute`` callable. Failures travel back to
the loop as ``ToolResult`` values, never as exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Literal

ParameterType = Literal["string", "number", "boolean", "object", "array"]
RiskLevel = Literal["low", "medium", "high"]

PARAMETER_TYPES: frozenset[str] = frozenset({"string", "number", "boolean", "object", "array"})
RISK_LEVELS: frozenset[str] = frozenset({"low", "medium", "high"})


class ToolErrorCode(Enum):
    """Error codes carried by failed tool results."""

    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    """The requested tool is not registered."""

    EXECUTION_ERROR = "EXECUTION_ERROR"
    """The tool raised, or its arguments could not be parsed."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Arguments did not satisfy the tool's declared parameters."""


@dataclass(frozen=True, slots=True)
class ToolError:
    """Error payload attached to a failed ``ToolResult``."""

    code: str
    message: str
    details: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            result["details"] = dict(self.details)
        return result


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Result from executing a tool."""

    success: bool
    content: str
    data: Any = None
    error: ToolError | None = None

    @classmethod
    def ok(cls, content: str, data: Any = None) -> ToolResult:
        """Create a successful result."""
        return cls(success=True, content=content, data=data)

    @classmethod
    def failure(
        cls,
        code: ToolErrorCode | str,
        message: str,
        *,
        content: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> ToolResult:
        """Create a failed result with an error payload.

        ``content`` defaults to ``message`` so the LLM always sees some text.
        """
        code_str = code.value if isinstance(code, ToolErrorCode) else code
        return cls(
            success=False,
            content=content if content is not None else message,
            error=ToolError(code=code_str, message=message, details=details),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON payload placed in tool-role messages."""
        result: dict[str, Any] = {"success": self.success, "content": self.content}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


@dataclass(frozen=True, slots=True)
class ToolContext:
    """Execution context handed to every tool call.

    The loop passes it through untouched.
    """

    session_id: str
    """Conversation/session identifier."""

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("reactloop.tools"))
    """Logger tools should write to."""

    extras: Mapping[str, Any] = field(default_factory=dict)
    """Caller-defined values (user id, workspace, services...)."""


ToolExecutor = Callable[[dict[str, Any], ToolContext], Awaitable[ToolResult] | ToolResult]


@dataclass(frozen=True, slots=True)
class ToolParameter:
    """One declared parameter of a tool."""

    name: str
    type: ParameterType
    description: str = ""
    required: bool = False
    enum: tuple[str, ...] | None = None
    default: Any = None

    def to_schema(self) -> dict[str, Any]:
        """JSON Schema fragment for this parameter."""
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.default is not None:
            schema["default"] = self.default
        return schema


@dataclass(frozen=True, slots=True)
class Tool:
    """A named, schema-described unit of work.

    Example:
        >>> async def lookup(args, ctx):
        ...     return ToolResult.ok(f"status of {args['id']}: ok")
        >>> tool = Tool(
        ...     name="lookup_status",
        ...     description="Look up the status of an order",
        ...     parameters=(ToolParameter("id", "string", required=True),),
        ...     execute=lookup,
        ... )
    """

    name: str
    description: str
    execute: ToolExecutor
    parameters: tuple[ToolParameter, ...] = ()
    category: str = "general"
    risk_level: RiskLevel = "low"
    requires_confirmation: bool = False

    def with_name(self, name: str) -> Tool:
        """Copy of this tool registered under a different (namespaced) name."""
        return replace(self, name=name)

    def definition(self) -> ToolDefinition:
        return tool_to_definition(self)


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Schema view of a tool, as sent to the LLM."""

    name: str
    description: str
    parameters: Mapping[str, Any]
    """JSON Schema object describing the arguments."""

    def to_function_schema(self) -> dict[str, Any]:
        """Common function-calling wire shape."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": dict(self.parameters),
            },
        }


def tool_to_definition(tool: Tool) -> ToolDefinition:
    """Build the LLM-facing definition of a tool."""
    return ToolDefinition(
        name=tool.name,
        description=tool.description,
        parameters={
            "type": "object",
            "properties": {p.name: p.to_schema() for p in tool.parameters},
            "required": [p.name for p in tool.parameters if p.required],
        },
    )
