"""Event types and base classes for agentic loop streaming.

This module contains the core event infrastructure:
- EventType: Enum of all event types
- StreamEvent: The immutable event record handed to observers
- EventObserver: The observer callback signature
- new_event: The single constructor every factory goes through
"""

from __future__ import annotations

import json
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal


class EventType(Enum):
    """Types of events emitted by the agentic loop."""

    # Iteration lifecycle
    ITERATION_STARTED = "iteration_started"
    ITERATION_COMPLETED = "iteration_completed"

    # Content and decisions
    CONTENT_CHUNK = "content_chunk"
    DECISION = "decision"

    # Tool calls
    TOOL_CALL_STARTED = "tool_call_started"
    TOOL_CALL_COMPLETED = "tool_call_completed"
    TOOL_ERROR = "tool_error"

    # Loop-level failures
    ERROR = "error"


class StreamErrorCode(Enum):
    """Codes carried by ``error`` events."""

    LLM_API_ERROR = "LLM_API_ERROR"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


CancellationReason = Literal["user_cancelled", "client_disconnected", "timeout", "server_shutdown"]

CANCELLATION_REASONS: frozenset[str] = frozenset(
    {"user_cancelled", "client_disconnected", "timeout", "server_shutdown"}
)


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """A single event in the loop stream.

    Events are only built through ``new_event`` so ids are unique and
    timestamps never decrease.

    Example:
        >>> event = iteration_started_event("session-1", iteration=1, max_iterations=10)
        >>> print(f"{event.type.value}: {event.data}")
        iteration_started: {'iteration': 1, 'max_iterations': 10}
    """

    id: str
    """Unique event id (``evt_`` prefix)."""

    type: EventType
    """The type of event."""

    session_id: str
    """Conversation/session the event belongs to."""

    timestamp: float
    """Unix timestamp, never smaller than the previous event's."""

    data: dict[str, Any] = field(default_factory=dict)
    """Event-specific data."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "type": self.type.value,
            "session_id": self.session_id,
            "timestamp": self.timestamp,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StreamEvent:
        """Create from dict."""
        return cls(
            id=data["id"],
            type=EventType(data["type"]),
            session_id=data.get("session_id", "default"),
            timestamp=data["timestamp"],
            data=data.get("data", {}),
        )

    def to_sse(self) -> str:
        """Format as a server-sent-events frame."""
        payload = json.dumps(self.to_dict(), default=str)
        return f"id: {self.id}\nevent: {self.type.value}\ndata: {payload}\n\n"

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.type.value}] {self.data}"


EventObserver = Callable[[StreamEvent], None]


class _MonotonicClock:
    """Wall-clock timestamps clamped so they never go backwards."""

    __slots__ = ("_last", "_lock")

    def __init__(self) -> None:
        self._last = 0.0
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            self._last = max(self._last, time.time())
            return self._last


_clock = _MonotonicClock()


def new_event(event_type: EventType, session_id: str, data: dict[str, Any]) -> StreamEvent:
    """Build an event with a fresh id and a non-decreasing timestamp."""
    return StreamEvent(
        id=f"evt_{uuid.uuid4().hex}",
        type=event_type,
        session_id=session_id,
        timestamp=_clock.now(),
        data=data,
    )
