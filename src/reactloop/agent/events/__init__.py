"""Stream events emitted by the agentic loop.

Every event is built by one of the factories below; observers receive them
synchronously, in emission order.
"""

from reactloop.agent.events.loop import (
    content_chunk_event,
    decision_event,
    error_event,
    iteration_completed_event,
    iteration_started_event,
)
from reactloop.agent.events.tool import (
    tool_call_completed_event,
    tool_call_started_event,
    tool_error_event,
)
from reactloop.agent.events.types import (
    CANCELLATION_REASONS,
    CancellationReason,
    EventObserver,
    EventType,
    StreamErrorCode,
    StreamEvent,
)

__all__ = [
    "CANCELLATION_REASONS",
    "CancellationReason",
    "EventObserver",
    "EventType",
    "StreamErrorCode",
    "StreamEvent",
    "content_chunk_event",
    "decision_event",
    "error_event",
    "iteration_completed_event",
    "iteration_started_event",
    "tool_call_completed_event",
    "tool_call_started_event",
    "tool_error_event",
]
