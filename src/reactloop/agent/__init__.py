"""Agentic loop, cancellation, and stream events."""

from reactloop.agent.cancellation import CancellationToken, linked_token
from reactloop.agent.loop import (
    AgenticLoop,
    LoopConfig,
    LoopResult,
    LoopStatus,
    RunOptions,
    ToolCallRecord,
    create_loop,
    run_loop,
)

__all__ = [
    "AgenticLoop",
    "CancellationToken",
    "LoopConfig",
    "LoopResult",
    "LoopStatus",
    "RunOptions",
    "ToolCallRecord",
    "create_loop",
    "linked_token",
    "run_loop",
]
