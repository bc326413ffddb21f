"""Tool calling event factories.

Event factories for tool execution lifecycle:
- tool_call_started_event, tool_call_completed_event, tool_error_event
"""

from typing import Any

from reactloop.agent.events.types import EventType, StreamEvent, new_event


def tool_call_started_event(
    session_id: str,
    tool_call_id: str,
    tool_name: str,
    arguments: dict[str, Any] | None = None,
) -> StreamEvent:
    """Create a tool start event."""
    return new_event(
        EventType.TOOL_CALL_STARTED,
        session_id,
        {
            "tool_call_id": tool_call_id,
            "tool_name": tool_name,
            "arguments": arguments or {},
        },
    )


def tool_call_completed_event(
    session_id: str,
    tool_call_id: str,
    tool_name: str,
    success: bool,
    duration_ms: int,
    result: Any = None,
) -> StreamEvent:
    """Create a tool completion event carrying the structured result data."""
    return new_event(
        EventType.TOOL_CALL_COMPLETED,
        session_id,
        {
            "tool_call_id": tool_call_id,
            "tool_name": tool_name,
            "success": success,
            "duration_ms": duration_ms,
            "result": result,
        },
    )


def tool_error_event(
    session_id: str,
    tool_call_id: str,
    tool_name: str,
    error: str,
    recoverable: bool = True,
    code: str | None = None,
) -> StreamEvent:
    """Create a tool error event."""
    data: dict[str, Any] = {
        "tool_call_id": tool_call_id,
        "tool_name": tool_name,
        "error": error,
        "recoverable": recoverable,
    }
    if code is not None:
        data["code"] = code
    return new_event(EventType.TOOL_ERROR, session_id, data)
