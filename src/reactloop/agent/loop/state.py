"""Per-run state and records for the agentic loop."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from reactloop.agent.cancellation import CancellationToken
from reactloop.agent.events.types import EventObserver
from reactloop.models.protocol import Message
from reactloop.tools.types import ToolResult

logger = logging.getLogger(__name__)


class LoopStatus(Enum):
    """Status of one ``run``. Everything except RUNNING is terminal."""

    RUNNING = "running"
    COMPLETED = "completed"
    MAX_ITERATIONS = "max_iterations"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not LoopStatus.RUNNING


@dataclass(frozen=True, slots=True)
class ToolCallRecord:
    """One finished tool invocation, successful or not."""

    id: str
    """Tool call id issued by the LLM (or assigned by the loop if missing)."""

    tool_name: str
    arguments: dict[str, Any]
    result: ToolResult

    timestamp: float
    """Unix time the call was issued."""

    duration_ms: int

    @property
    def success(self) -> bool:
        return self.result.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tool_name": self.tool_name,
            "arguments": self.arguments,
            "result": self.result.to_dict(),
            "timestamp": self.timestamp,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True, slots=True)
class RunOptions:
    """Per-call options for ``AgenticLoop.run``."""

    system_prompt: str | None = None
    """Prepended as the only system message."""

    history: Sequence[Message] = ()
    """Prior transcript. System-role entries are dropped."""

    context: str | None = None
    """Extra context (e.g. retrieved knowledge) prepended to the user message."""

    max_iterations: int | None = None
    """Overrides ``LoopConfig.max_iterations`` for this run."""

    timeout: float | None = None
    """Overrides ``LoopConfig.iteration_timeout`` for this run."""

    cancel_token: CancellationToken | None = None
    """Caller-owned cancellation token."""

    on_event: EventObserver | None = None
    """Receives every stream event, synchronously and in order."""

    session_id: str = "default"


@dataclass(slots=True)
class LoopState:
    """Mutable state for one ``run``. Never shared between runs."""

    messages: list[Message] = field(default_factory=list)
    """Transcript sent to the LLM, append-only."""

    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    """Ledger of finished tool calls, in completion order per batch."""

    iteration: int = 0
    """Completed iterations."""

    status: LoopStatus = LoopStatus.RUNNING

    started_at: float = field(default_factory=time.time)
    ended_at: float | None = None

    error: str | None = None
    """Terminal error message, for ERROR status."""

    cancellation_reason: str | None = None
    """Why the run was cancelled, for CANCELLED status."""

    def finish(
        self,
        status: LoopStatus,
        *,
        error: str | None = None,
        cancellation_reason: str | None = None,
    ) -> bool:
        """Move to a terminal status.

        Returns:
            False (and changes nothing) if the state is already terminal.
        """
        if self.status.is_terminal:
            logger.debug("Ignoring transition %s -> %s", self.status.value, status.value)
            return False
        self.status = status
        self.error = error
        self.cancellation_reason = cancellation_reason
        self.ended_at = time.time()
        return True
