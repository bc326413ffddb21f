"""Replay scripts: a YAML description of model responses and stub tools.

Example script:

    message: What is the status of order 42?
    system_prompt: You are an order assistant.
    tools:
      - name: lookup_status
        description: Look up an order status
        parameters:
          - {name: order_id, type: string, required: true}
        result: {content: shipped, data: {status: shipped}}
    responses:
      - tool_calls:
          - {id: call_1, name: lookup_status, arguments: {order_id: "42"}}
      - content: Order 42 has shipped.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from reactloop.core.errors import ConfigError
from reactloop.models.mock import ScriptedModel
from reactloop.models.protocol import ModelResponse, ToolCall
from reactloop.plugins.types import Plugin
from reactloop.tools.types import Tool, ToolContext, ToolParameter, ToolResult

SCRIPT_PLUGIN = "replay"


@dataclass(frozen=True, slots=True)
class ReplayScript:
    """A parsed replay script."""

    message: str
    responses: tuple[ModelResponse, ...]
    tools: tuple[dict[str, Any], ...] = ()
    system_prompt: str | None = None
    namespace: str | None = None
    stream: bool = False

    def build_model(self) -> ScriptedModel:
        return ScriptedModel(responses=list(self.responses), stream=self.stream)

    def build_plugin(self) -> Plugin:
        """A plugin exposing one stub tool per script entry."""
        return Plugin(
            name=SCRIPT_PLUGIN,
            version="0.0.0",
            description="Stub tools from a replay script",
            namespace=self.namespace,
            tools=[_stub_tool(spec) for spec in self.tools],
        )


def _stub_tool(spec: dict[str, Any]) -> Tool:
    result_spec = spec.get("result") or {}
    error = spec.get("error")

    async def execute(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
        if error:
            raise RuntimeError(error)
        if result_spec.get("success", True) is False:
            return ToolResult.failure(
                result_spec.get("code", "EXECUTION_ERROR"),
                result_spec.get("content", "failed"),
            )
        return ToolResult.ok(result_spec.get("content", "ok"), data=result_spec.get("data"))

    return Tool(
        name=spec["name"],
        description=spec.get("description", f"Stub tool {spec['name']}"),
        parameters=tuple(
            ToolParameter(
                name=p["name"],
                type=p.get("type", "string"),
                description=p.get("description", ""),
                required=p.get("required", False),
                enum=tuple(p["enum"]) if p.get("enum") else None,
                default=p.get("default"),
            )
            for p in spec.get("parameters", [])
        ),
        execute=execute,
    )


def _parse_response(entry: Any, index: int) -> ModelResponse:
    if isinstance(entry, str):
        return ModelResponse(content=entry)
    if not isinstance(entry, dict):
        raise ConfigError(f"responses[{index}]", "must be a string or a mapping")
    calls = tuple(
        ToolCall(
            id=call.get("id", ""),
            name=call["name"],
            arguments=call.get("arguments", {}),
        )
        for call in entry.get("tool_calls", [])
    )
    return ModelResponse(content=entry.get("content", ""), tool_calls=calls)


def parse_script(data: Any) -> ReplayScript:
    """Build a ReplayScript from decoded YAML.

    Raises:
        ConfigError: If required keys are missing or malformed.
    """
    if not isinstance(data, dict):
        raise ConfigError("script", "top level must be a mapping")
    if not isinstance(data.get("message"), str):
        raise ConfigError("message", "a string message is required")
    responses = data.get("responses")
    if not isinstance(responses, list) or not responses:
        raise ConfigError("responses", "at least one response is required")

    try:
        parsed = tuple(_parse_response(entry, i) for i, entry in enumerate(responses))
    except KeyError as e:
        raise ConfigError("responses", f"tool call is missing {e}", cause=e) from e

    tools = data.get("tools", [])
    if not isinstance(tools, list) or not all(isinstance(t, dict) and "name" in t for t in tools):
        raise ConfigError("tools", "each tool needs at least a name")

    return ReplayScript(
        message=data["message"],
        responses=parsed,
        tools=tuple(tools),
        system_prompt=data.get("system_prompt"),
        namespace=data.get("namespace"),
        stream=bool(data.get("stream", False)),
    )


def load_script(path: str | Path) -> ReplayScript:
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(str(path), f"invalid YAML: {e}", cause=e) from e
    return parse_script(data)
