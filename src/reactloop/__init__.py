"""reactloop - autonomous tool-calling (ReAct) loop.

An LLM is driven through repeated reason/act cycles, with tools supplied by
namespaced plugins, until it answers, hits its iteration limit, fails, or is
cancelled. Progress is reported as an ordered stream of events.
"""

from reactloop.agent.cancellation import CancellationToken, linked_token
from reactloop.agent.events import EventType, StreamEvent
from reactloop.agent.loop import (
    AgenticLoop,
    LoopConfig,
    LoopResult,
    LoopStatus,
    RunOptions,
    ToolCallRecord,
    build_result,
    create_loop,
    run_loop,
)
from reactloop.core.errors import (
    ConfigError,
    ErrorCode,
    LoopError,
    OperationCancelledError,
    PluginError,
    ReactLoopError,
)
from reactloop.models.protocol import Message, ModelProtocol, ModelResponse, ToolCall
from reactloop.plugins import (
    Plugin,
    PluginContext,
    PluginInfo,
    PluginRegistry,
    PluginRegistryOptions,
    PluginStatus,
)
from reactloop.tools import (
    Tool,
    ToolContext,
    ToolDefinition,
    ToolErrorCode,
    ToolParameter,
    ToolResult,
)

__version__ = "0.1.0"

__all__ = [
    # Loop
    "AgenticLoop",
    "LoopConfig",
    "LoopResult",
    "LoopStatus",
    "RunOptions",
    "ToolCallRecord",
    "build_result",
    "create_loop",
    "run_loop",
    # Cancellation & events
    "CancellationToken",
    "linked_token",
    "EventType",
    "StreamEvent",
    # Model
    "Message",
    "ModelProtocol",
    "ModelResponse",
    "ToolCall",
    # Plugins & tools
    "Plugin",
    "PluginContext",
    "PluginInfo",
    "PluginRegistry",
    "PluginRegistryOptions",
    "PluginStatus",
    "Tool",
    "ToolContext",
    "ToolDefinition",
    "ToolErrorCode",
    "ToolParameter",
    "ToolResult",
    # Errors
    "ConfigError",
    "ErrorCode",
    "LoopError",
    "OperationCancelledError",
    "PluginError",
    "ReactLoopError",
]
