"""Loop result derived from terminal loop state."""

from dataclasses import dataclass
from typing import Any

from reactloop.agent.loop.state import LoopState, LoopStatus, ToolCallRecord


@dataclass(frozen=True, slots=True)
class LoopResult:
    """Outcome of one ``AgenticLoop.run``."""

    status: LoopStatus
    content: str
    """Content of the last assistant message, or ``""``."""

    tool_calls: tuple[ToolCallRecord, ...]
    iterations: int
    duration_ms: int
    error: str | None = None
    cancellation_reason: str | None = None

    @property
    def completed(self) -> bool:
        return self.status is LoopStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {
            "status": self.status.value,
            "content": self.content,
            "tool_calls": [record.to_dict() for record in self.tool_calls],
            "iterations": self.iterations,
            "duration_ms": self.duration_ms,
        }
        if self.error is not None:
            result["error"] = self.error
        if self.cancellation_reason is not None:
            result["cancellation_reason"] = self.cancellation_reason
        return result


def build_result(state: LoopState) -> LoopResult:
    """Derive the final outcome from a loop state."""
    content = ""
    for message in reversed(state.messages):
        if message.role == "assistant":
            content = message.content
            break

    duration_ms = 0
    if state.ended_at is not None:
        duration_ms = max(0, int((state.ended_at - state.started_at) * 1000))

    return LoopResult(
        status=state.status,
        content=content,
        tool_calls=tuple(state.tool_calls),
        iterations=state.iteration,
        duration_ms=duration_ms,
        error=state.error,
        cancellation_reason=state.cancellation_reason,
    )
