"""Agentic loop components.

This package contains the loop and its supporting modules:
- config: LoopConfig
- state: LoopState, LoopStatus, RunOptions, ToolCallRecord
- dispatch: ToolDispatcher (per-iteration tool execution)
- result: LoopResult, build_result
- runner: AgenticLoop and convenience constructors
"""

from reactloop.agent.loop.config import LoopConfig
from reactloop.agent.loop.dispatch import ToolDispatcher
from reactloop.agent.loop.result import LoopResult, build_result
from reactloop.agent.loop.runner import AgenticLoop, create_loop, run_loop
from reactloop.agent.loop.state import LoopState, LoopStatus, RunOptions, ToolCallRecord

__all__ = [
    "AgenticLoop",
    "LoopConfig",
    "LoopResult",
    "LoopState",
    "LoopStatus",
    "RunOptions",
    "ToolCallRecord",
    "ToolDispatcher",
    "build_result",
    "create_loop",
    "run_loop",
]
