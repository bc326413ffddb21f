"""Agentic tool loop (ReAct).

Implements the reason/act cycle:
- Model is called with the transcript and the registry's tool schemas
- Requested tool calls are dispatched and their results fed back
- Loop continues until the model answers without tool calls

The loop stops on a final answer, the iteration limit, a cancellation
(caller token or per-iteration timeout), or an LLM failure. Each of these
ends in a terminal status on the returned ``LoopResult``. ``run`` itself
only raises for structurally invalid options.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from reactloop.agent.cancellation import CancellationToken, linked_token
from reactloop.agent.events.loop import (
    content_chunk_event,
    decision_event,
    error_event,
    iteration_completed_event,
    iteration_started_event,
)
from reactloop.agent.events.types import EventObserver, StreamErrorCode, StreamEvent
from reactloop.agent.loop.config import LoopConfig
from reactloop.agent.loop.dispatch import ToolDispatcher
from reactloop.agent.loop.result import LoopResult, build_result
from reactloop.agent.loop.state import LoopState, LoopStatus, RunOptions
from reactloop.core.errors import ErrorCode, LoopError, OperationCancelledError, ReactLoopError
from reactloop.models.protocol import ChunkCallback, Message, ModelProtocol, ModelResponse, ToolCall
from reactloop.plugins.registry import PluginRegistry
from reactloop.tools.types import ToolContext

if TYPE_CHECKING:
    from reactloop.config import ReactLoopConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AgenticLoop:
    """Autonomous tool-calling loop.

    The loop object holds no per-run state: every ``run`` builds a fresh
    ``LoopState``, so one instance can serve concurrent runs.

    Example:
        >>> loop = AgenticLoop(model=model, registry=registry)
        >>> result = await loop.run(
        ...     "What is the status of order 42?",
        ...     ToolContext(session_id="s1"),
        ...     RunOptions(on_event=print),
        ... )
        >>> result.status, result.iterations
        (<LoopStatus.COMPLETED: 'completed'>, 2)
    """

    model: ModelProtocol
    registry: PluginRegistry = field(default_factory=PluginRegistry)
    config: LoopConfig = field(default_factory=LoopConfig)

    def __post_init__(self) -> None:
        problems = self.config.validate()
        if problems:
            raise LoopError("; ".join(problems))

    def get_config(self) -> LoopConfig:
        return self.config

    def update_config(self, **changes: Any) -> LoopConfig:
        """Replace config fields for subsequent runs.

        Raises:
            LoopError: If the resulting config is invalid.
        """
        updated = replace(self.config, **changes)
        problems = updated.validate()
        if problems:
            raise LoopError("; ".join(problems))
        self.config = updated
        return updated

    async def run(
        self,
        user_message: str,
        context: ToolContext,
        options: RunOptions | None = None,
    ) -> LoopResult:
        """Drive the model until it answers, or the loop has to stop.

        Args:
            user_message: The user's request.
            context: Passed through untouched to every tool call.
            options: Per-run options (history, limits, cancellation, observer).

        Returns:
            LoopResult with a terminal status.

        Raises:
            LoopError: If the options are structurally invalid.
        """
        options = options or RunOptions()
        max_iterations, timeout = self._resolve_limits(user_message, options)

        session_id = options.session_id
        observer = options.on_event
        token = options.cancel_token
        emit = _emitter(observer)

        state = self._initial_state(user_message, options)
        dispatcher = ToolDispatcher(
            registry=self.registry,
            context=context,
            session_id=session_id,
            emit=emit,
            validate=self.config.validate_arguments,
        )
        seen_ids: set[str] = set()

        logger.debug(
            "Starting loop",
            extra={"session_id": session_id, "max_iterations": max_iterations},
        )

        while not state.status.is_terminal:
            if state.iteration >= max_iterations:
                state.finish(LoopStatus.MAX_ITERATIONS)
                emit(
                    decision_event(
                        session_id,
                        f"Reached maximum iteration limit ({max_iterations})",
                        completed=False,
                    )
                )
                break

            if token is not None and token.is_cancelled:
                reason = token.reason or "user_cancelled"
                state.finish(LoopStatus.CANCELLED, cancellation_reason=reason)
                emit(decision_event(session_id, _cancel_reason_text(reason, timeout), completed=False))
                break

            await self._iterate(
                state,
                dispatcher,
                seen_ids,
                max_iterations=max_iterations,
                timeout=timeout,
                token=token,
                streaming=observer is not None,
            )

        result = build_result(state)
        logger.info(
            "Loop finished: status=%s iterations=%d tool_calls=%d duration_ms=%d",
            result.status.value,
            result.iterations,
            len(result.tool_calls),
            result.duration_ms,
        )
        return result

    async def _iterate(
        self,
        state: LoopState,
        dispatcher: ToolDispatcher,
        seen_ids: set[str],
        *,
        max_iterations: int,
        timeout: float | None,
        token: CancellationToken | None,
        streaming: bool,
    ) -> None:
        session_id = dispatcher.session_id
        emit = dispatcher.emit
        number = state.iteration + 1
        start = time.perf_counter()

        emit(iteration_started_event(session_id, number, max_iterations))

        streamed = False

        def on_chunk(chunk: str) -> None:
            nonlocal streamed
            streamed = True
            emit(content_chunk_event(session_id, chunk, is_complete=False))

        try:
            response = await self._call_model(
                state.messages,
                token,
                timeout,
                on_chunk if streaming else None,
            )
        except Exception as e:
            self._fail(state, e, number, emit, session_id, timeout)
            return

        calls = _normalize_calls(response.tool_calls, seen_ids)
        content = response.content or ""

        if calls:
            state.messages.append(Message(role="assistant", content=content, tool_calls=calls))
            if not streamed and content:
                emit(content_chunk_event(session_id, content, is_complete=False))

            logger.debug("Iteration %d: dispatching %d tool calls", number, len(calls))
            records = await dispatcher.dispatch(calls, parallel=self.config.parallel_tool_calls)
            for record in records:
                state.tool_calls.append(record)
                state.messages.append(
                    Message(
                        role="tool",
                        content=json.dumps(record.result.to_dict(), default=str),
                        tool_call_id=record.id,
                    )
                )
        else:
            state.messages.append(Message(role="assistant", content=content))
            state.finish(LoopStatus.COMPLETED)
            emit(content_chunk_event(session_id, "" if streamed else content, is_complete=True))
            emit(decision_event(session_id, "Task completed successfully", completed=True))

        duration_ms = int((time.perf_counter() - start) * 1000)
        emit(iteration_completed_event(session_id, number, duration_ms, len(calls)))
        state.iteration += 1

    async def _call_model(
        self,
        messages: Sequence[Message],
        token: CancellationToken | None,
        timeout: float | None,
        on_chunk: ChunkCallback | None,
    ) -> ModelResponse:
        """One LLM call under a token linked to the caller's and the timeout."""
        tools = self.registry.get_tool_definitions()
        with linked_token(token, timeout) as call_token:
            try:
                response = await self.model.call(
                    self.config.task_kind,
                    tuple(messages),
                    tools,
                    cancel_token=call_token,
                    on_chunk=on_chunk,
                )
            except OperationCancelledError:
                raise
            except Exception as e:
                if call_token.is_cancelled:
                    raise OperationCancelledError(call_token.reason or "user_cancelled", cause=e) from e
                raise

        if not hasattr(response, "tool_calls") or not hasattr(response, "content"):
            raise ReactLoopError(
                ErrorCode.MODEL_RESPONSE_INVALID,
                {"detail": f"expected ModelResponse, got {type(response).__name__}"},
            )

        calls = response.tool_calls
        if calls is None:
            calls = ()
        elif isinstance(calls, (str, bytes)) or not isinstance(calls, Sequence):
            raise ReactLoopError(
                ErrorCode.MODEL_RESPONSE_INVALID,
                {"detail": f"tool_calls must be a sequence, got {type(calls).__name__}"},
            )
        for call in calls:
            if not isinstance(call, ToolCall):
                raise ReactLoopError(
                    ErrorCode.MODEL_RESPONSE_INVALID,
                    {"detail": f"expected ToolCall entries, got {type(call).__name__}"},
                )

        content = response.content
        if content is not None and not isinstance(content, str):
            raise ReactLoopError(
                ErrorCode.MODEL_RESPONSE_INVALID,
                {"detail": f"content must be a string, got {type(content).__name__}"},
            )
        return ModelResponse(content=content or "", tool_calls=tuple(calls))

    def _fail(
        self,
        state: LoopState,
        error: Exception,
        iteration: int,
        emit: Callable[[StreamEvent], None],
        session_id: str,
        timeout: float | None,
    ) -> None:
        """Close a failed iteration and move to a terminal status."""
        if isinstance(error, OperationCancelledError):
            reason = error.reason
            code = StreamErrorCode.TIMEOUT if reason == "timeout" else StreamErrorCode.CANCELLED
            text = _cancel_reason_text(reason, timeout)
            logger.info("Loop cancelled on iteration %d: %s", iteration, reason)
            emit(error_event(session_id, code, text, recoverable=False, iteration=iteration))
            state.finish(LoopStatus.CANCELLED, cancellation_reason=reason)
            emit(decision_event(session_id, text, completed=False))
            return

        message = str(error) or type(error).__name__
        logger.error("LLM call failed on iteration %d: %s", iteration, message, exc_info=error)
        emit(
            error_event(
                session_id,
                StreamErrorCode.LLM_API_ERROR,
                message,
                recoverable=False,
                iteration=iteration,
                details={"exception": type(error).__name__},
            )
        )
        state.finish(LoopStatus.ERROR, error=message)

    def _resolve_limits(self, user_message: Any, options: RunOptions) -> tuple[int, float | None]:
        if not isinstance(user_message, str):
            raise LoopError(f"user_message must be a string, got {type(user_message).__name__}")

        max_iterations = (
            options.max_iterations if options.max_iterations is not None else self.config.max_iterations
        )
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, int) or max_iterations < 1:
            raise LoopError(f"max_iterations must be a positive integer, got {max_iterations!r}")

        timeout = options.timeout if options.timeout is not None else self.config.iteration_timeout
        if timeout is not None and timeout <= 0:
            raise LoopError(f"timeout must be positive, got {timeout!r}")

        if options.on_event is not None and not callable(options.on_event):
            raise LoopError("on_event must be callable")
        return max_iterations, timeout

    def _initial_state(self, user_message: str, options: RunOptions) -> LoopState:
        state = LoopState()
        if options.system_prompt:
            state.messages.append(Message(role="system", content=options.system_prompt))
        state.messages.extend(m for m in options.history if m.role != "system")

        content = user_message
        if options.context:
            content = f"Context:\n{options.context}\n\n{user_message}"
        state.messages.append(Message(role="user", content=content))
        return state


def _emitter(observer: EventObserver | None) -> Callable[[StreamEvent], None]:
    def emit(event: StreamEvent) -> None:
        if observer is not None:
            observer(event)

    return emit


def _cancel_reason_text(reason: str, timeout: float | None) -> str:
    if reason == "timeout":
        return f"LLM call timed out after {timeout}s"
    return "Operation was cancelled by user"


def _normalize_calls(calls: Sequence[ToolCall], seen_ids: set[str]) -> tuple[ToolCall, ...]:
    """Give every call an id that is unique within the run."""
    normalized = []
    for call in calls:
        if not call.id or call.id in seen_ids:
            fresh = f"call_{uuid.uuid4().hex[:12]}"
            logger.warning("Tool call %r has a missing or repeated id %r, using %s", call.name, call.id, fresh)
            call = replace(call, id=fresh)
        seen_ids.add(call.id)
        normalized.append(call)
    return tuple(normalized)


# =============================================================================
# Convenience
# =============================================================================


def create_loop(
    model: ModelProtocol,
    registry: PluginRegistry | None = None,
    config: ReactLoopConfig | None = None,
) -> AgenticLoop:
    """Build a loop (and a registry, if none is given) from configuration.

    Args:
        model: The LLM service to drive
        registry: Existing registry to use (options from config are ignored)
        config: Configuration (defaults to ``get_config()``)
    """
    # Import here to avoid circular dependency
    from reactloop.config import get_config

    config = config or get_config()
    if registry is None:
        registry = PluginRegistry(options=config.plugins)
    return AgenticLoop(model=model, registry=registry, config=config.loop)


async def run_loop(
    model: ModelProtocol,
    user_message: str,
    *,
    registry: PluginRegistry | None = None,
    session_id: str = "default",
    system_prompt: str | None = None,
    max_iterations: int | None = None,
    on_event: EventObserver | None = None,
    cancel_token: CancellationToken | None = None,
) -> LoopResult:
    """Convenience function to run the loop once.

    Args:
        model: The LLM service to drive
        user_message: What to accomplish
        registry: Plugin registry providing tools
        session_id: Session identifier for events and tool context
        system_prompt: Optional system prompt
        max_iterations: Override the configured iteration limit
        on_event: Observer for stream events
        cancel_token: Caller cancellation token

    Returns:
        LoopResult of the run
    """
    loop = create_loop(model, registry)
    return await loop.run(
        user_message,
        ToolContext(session_id=session_id),
        RunOptions(
            system_prompt=system_prompt,
            max_iterations=max_iterations,
            on_event=on_event,
            cancel_token=cancel_token,
            session_id=session_id,
        ),
    )
