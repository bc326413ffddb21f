"""Loop lifecycle event factories.

Event factories for iteration and outcome events:
- iteration_started_event, iteration_completed_event
- content_chunk_event, decision_event
- error_event
"""

from typing import Any

from reactloop.agent.events.types import EventType, StreamErrorCode, StreamEvent, new_event


def iteration_started_event(
    session_id: str,
    iteration: int,
    max_iterations: int,
) -> StreamEvent:
    """Create an iteration start event (1-indexed iteration)."""
    return new_event(
        EventType.ITERATION_STARTED,
        session_id,
        {"iteration": iteration, "max_iterations": max_iterations},
    )


def iteration_completed_event(
    session_id: str,
    iteration: int,
    duration_ms: int,
    tool_call_count: int,
) -> StreamEvent:
    """Create an iteration completion event."""
    return new_event(
        EventType.ITERATION_COMPLETED,
        session_id,
        {
            "iteration": iteration,
            "duration_ms": duration_ms,
            "tool_call_count": tool_call_count,
        },
    )


def content_chunk_event(
    session_id: str,
    content: str,
    is_complete: bool = False,
) -> StreamEvent:
    """Create a content chunk event.

    ``is_complete`` marks the finalization chunk of a run.
    """
    return new_event(
        EventType.CONTENT_CHUNK,
        session_id,
        {"content": content, "is_complete": is_complete},
    )


def decision_event(
    session_id: str,
    reason: str,
    completed: bool,
    **kwargs: Any,
) -> StreamEvent:
    """Create a decision event explaining why the loop stopped."""
    return new_event(
        EventType.DECISION,
        session_id,
        {"reason": reason, "completed": completed, **kwargs},
    )


def error_event(
    session_id: str,
    code: StreamErrorCode | str,
    message: str,
    recoverable: bool = False,
    details: dict[str, Any] | None = None,
    **kwargs: Any,
) -> StreamEvent:
    """Create a loop-level error event."""
    data: dict[str, Any] = {
        "code": code.value if isinstance(code, StreamErrorCode) else code,
        "message": message,
        "recoverable": recoverable,
        **kwargs,
    }
    if details is not None:
        data["details"] = details
    return new_event(EventType.ERROR, session_id, data)
