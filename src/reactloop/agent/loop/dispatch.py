"""Tool-call dispatch for one loop iteration.

Every failure a tool call can produce (unknown tool, unparseable or invalid
arguments, a raising ``execute``) is turned into a failed ``ToolResult`` and
a recoverable ``tool_error`` event. Nothing raised by a tool reaches the loop.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from reactloop.agent.events.tool import (
    tool_call_completed_event,
    tool_call_started_event,
    tool_error_event,
)
from reactloop.agent.events.types import StreamEvent
from reactloop.agent.loop.state import ToolCallRecord
from reactloop.models.protocol import ToolCall
from reactloop.plugins.registry import PluginRegistry
from reactloop.tools.types import ToolContext, ToolErrorCode, ToolResult
from reactloop.tools.validation import validate_arguments

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolDispatcher:
    """Executes the tool calls of one LLM response against a registry."""

    registry: PluginRegistry
    context: ToolContext
    session_id: str
    emit: Callable[[StreamEvent], None]
    validate: bool = True

    async def dispatch(self, calls: Sequence[ToolCall], parallel: bool) -> list[ToolCallRecord]:
        """Run ``calls`` and return one record per call, in request order.

        With ``parallel`` and more than one call, calls run concurrently and
        are awaited jointly. Otherwise they run one after another.
        """
        if parallel and len(calls) > 1:
            logger.debug("Dispatching %d tool calls concurrently", len(calls))
            records = await asyncio.gather(*(self.execute_one(call) for call in calls))
            return list(records)

        records = []
        for call in calls:
            records.append(await self.execute_one(call))
        return records

    async def execute_one(self, call: ToolCall) -> ToolCallRecord:
        """Execute a single call, emitting its started and terminal events."""
        issued_at = time.time()
        start = time.perf_counter()

        parse_error: Exception | None = None
        try:
            arguments = call.parse_arguments()
        except (ValueError, TypeError) as e:
            arguments = {}
            parse_error = e

        self.emit(tool_call_started_event(self.session_id, call.id, call.name, arguments))

        if parse_error is not None:
            result = ToolResult.failure(
                ToolErrorCode.EXECUTION_ERROR,
                f"Invalid tool arguments: {parse_error}",
            )
        else:
            result = await self._invoke(call.name, arguments)

        duration_ms = int((time.perf_counter() - start) * 1000)

        if result.success:
            self.emit(
                tool_call_completed_event(
                    self.session_id,
                    call.id,
                    call.name,
                    success=True,
                    duration_ms=duration_ms,
                    result=result.data,
                )
            )
        else:
            message = result.error.message if result.error else result.content
            logger.warning("Tool %s (%s) failed: %s", call.name, call.id, message)
            self.emit(
                tool_error_event(
                    self.session_id,
                    call.id,
                    call.name,
                    message,
                    recoverable=True,
                    code=result.error.code if result.error else None,
                )
            )

        return ToolCallRecord(
            id=call.id,
            tool_name=call.name,
            arguments=arguments,
            result=result,
            timestamp=issued_at,
            duration_ms=duration_ms,
        )

    async def _invoke(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        tool = self.registry.get_tool(name)
        if tool is None:
            return ToolResult.failure(
                ToolErrorCode.TOOL_NOT_FOUND,
                f"Tool '{name}' is not registered",
                content=f"Tool not found: {name}",
            )

        if self.validate:
            arguments, problems = validate_arguments(tool, arguments)
            if problems:
                return ToolResult.failure(
                    ToolErrorCode.VALIDATION_ERROR,
                    "; ".join(problems),
                    details={"problems": problems},
                )

        try:
            outcome = tool.execute(arguments, self.context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as e:
            logger.debug("Tool %s raised", name, exc_info=True)
            return ToolResult.failure(
                ToolErrorCode.EXECUTION_ERROR,
                f"Tool execution failed: {e}",
            )

        if not isinstance(outcome, ToolResult):
            return ToolResult.failure(
                ToolErrorCode.EXECUTION_ERROR,
                f"Tool '{name}' returned {type(outcome).__name__}, expected ToolResult",
            )
        return outcome
