"""Validation of tool definitions and of the arguments an LLM sends them.

Definition checks raise ``PluginError`` and are run by the registry in strict
mode. Argument checks return a list of problems, which dispatch turns into a
``VALIDATION_ERROR`` result.
"""

import re
from collections.abc import Mapping
from typing import Any

from reactloop.core.errors import ErrorCode, PluginError
from reactloop.tools.types import PARAMETER_TYPES, RISK_LEVELS, Tool, ToolParameter

NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")
"""Plugin and tool names."""

IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
"""Namespaces and parameter names."""


def _invalid(plugin_name: str, reason: str, **kwargs: Any) -> PluginError:
    return PluginError(ErrorCode.PLUGIN_INVALID, plugin_name, reason, **kwargs)


def validate_tool(tool: Any, plugin_name: str) -> None:
    """Check one tool declaration.

    Raises:
        PluginError: naming the tool (and parameter) and the violated rule.
    """
    name = getattr(tool, "name", None)
    if not isinstance(name, str) or not NAME_PATTERN.match(name):
        raise _invalid(
            plugin_name,
            f"Invalid tool name {name!r}: must start with a letter and contain "
            "only letters, digits, underscores, and hyphens",
            tool_name=str(name),
        )

    description = getattr(tool, "description", None)
    if not isinstance(description, str) or not description.strip():
        raise _invalid(plugin_name, f"Tool '{name}' must have a description", tool_name=name)

    if not callable(getattr(tool, "execute", None)):
        raise _invalid(plugin_name, f"Tool '{name}' must have a callable execute", tool_name=name)

    risk_level = getattr(tool, "risk_level", "low")
    if risk_level not in RISK_LEVELS:
        raise _invalid(
            plugin_name,
            f"Tool '{name}' has invalid risk level {risk_level!r}",
            tool_name=name,
        )

    parameters = getattr(tool, "parameters", ())
    if not isinstance(parameters, (list, tuple)):
        raise _invalid(plugin_name, f"Tool '{name}' parameters must be a list", tool_name=name)

    seen: set[str] = set()
    for param in parameters:
        _validate_parameter(param, name, plugin_name)
        if param.name in seen:
            raise _invalid(
                plugin_name,
                f"Duplicate parameter name '{param.name}' in tool '{name}'",
                tool_name=name,
                parameter_name=param.name,
            )
        seen.add(param.name)


def _validate_parameter(param: Any, tool_name: str, plugin_name: str) -> None:
    pname = getattr(param, "name", None)
    if not isinstance(pname, str) or not IDENTIFIER_PATTERN.match(pname):
        raise _invalid(
            plugin_name,
            f"Invalid parameter name {pname!r} in tool '{tool_name}'",
            tool_name=tool_name,
            parameter_name=str(pname),
        )
    ptype = getattr(param, "type", None)
    if ptype not in PARAMETER_TYPES:
        raise _invalid(
            plugin_name,
            f"Invalid type {ptype!r} for parameter '{pname}' in tool '{tool_name}'. "
            f"Must be one of: {', '.join(sorted(PARAMETER_TYPES))}",
            tool_name=tool_name,
            parameter_name=pname,
        )
    if not isinstance(getattr(param, "required", None), bool):
        raise _invalid(
            plugin_name,
            f"Parameter '{pname}' in tool '{tool_name}' must have a boolean 'required' field",
            tool_name=tool_name,
            parameter_name=pname,
        )
    enum = getattr(param, "enum", None)
    if enum is not None and (
        not isinstance(enum, (list, tuple)) or not all(isinstance(v, str) for v in enum)
    ):
        raise _invalid(
            plugin_name,
            f"Parameter '{pname}' in tool '{tool_name}' has an invalid enum",
            tool_name=tool_name,
            parameter_name=pname,
        )


# =============================================================================
# Argument validation
# =============================================================================


def _matches_type(value: Any, ptype: str) -> bool:
    match ptype:
        case "string":
            return isinstance(value, str)
        case "number":
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        case "boolean":
            return isinstance(value, bool)
        case "object":
            return isinstance(value, Mapping)
        case "array":
            return isinstance(value, (list, tuple))
    return False


def validate_arguments(
    tool: Tool,
    arguments: Mapping[str, Any],
) -> tuple[dict[str, Any], list[str]]:
    """Check arguments against a tool's declared parameters.

    Missing optional parameters with a default get the default. Keys the tool
    does not declare are passed through unchanged.

    Returns:
        (resolved arguments, list of problems). An empty list means valid.
    """
    resolved = dict(arguments)
    problems: list[str] = []

    for param in tool.parameters:
        if param.name not in resolved or resolved[param.name] is None:
            if param.required:
                problems.append(f"Missing required parameter: {param.name}")
            elif param.default is not None:
                resolved[param.name] = param.default
            continue

        problem = _check_value(param, resolved[param.name])
        if problem:
            problems.append(problem)

    return resolved, problems


def _check_value(param: ToolParameter, value: Any) -> str | None:
    if not _matches_type(value, param.type):
        return (
            f"Parameter '{param.name}' must be of type {param.type}, "
            f"got {type(value).__name__}"
        )
    if param.enum is not None and value not in param.enum:
        return f"Parameter '{param.name}' must be one of: {', '.join(param.enum)}"
    return None
