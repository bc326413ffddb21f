"""Scripted model for tests and replays."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

from reactloop.agent.cancellation import CancellationToken
from reactloop.core.errors import OperationCancelledError
from reactloop.models.protocol import ChunkCallback, Message, ModelResponse
from reactloop.tools.types import ToolDefinition


@dataclass(frozen=True, slots=True)
class ScriptedCall:
    """What the model received on one call."""

    task_kind: str
    messages: tuple[Message, ...]
    tools: tuple[ToolDefinition, ...]


@dataclass(slots=True)
class ScriptedModel:
    """Mock model that replays configured responses in order.

    Responses cycle once exhausted. An exception in the script is raised
    instead of returned. With ``stream=True`` content is delivered word by
    word through ``on_chunk`` before the call returns. With ``delay`` set, each
    call waits that many seconds or until its token trips, in which case it
    raises ``OperationCancelledError``.

    Example:
        model = ScriptedModel([
            ModelResponse(tool_calls=(ToolCall(id="1", name="lookup_status", arguments={}),)),
            ModelResponse(content="All orders shipped."),
        ])
    """

    responses: list[ModelResponse | Exception] = field(default_factory=list)
    stream: bool = False
    delay: float = 0.0
    _calls: list[ScriptedCall] = field(default_factory=list, init=False)

    @property
    def call_count(self) -> int:
        """Number of times call was invoked."""
        return len(self._calls)

    @property
    def calls(self) -> list[ScriptedCall]:
        """Everything received, one entry per call."""
        return self._calls

    async def call(
        self,
        task_kind: str,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        *,
        cancel_token: CancellationToken | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> ModelResponse:
        """Return the next scripted response."""
        self._calls.append(ScriptedCall(task_kind, tuple(messages), tuple(tools)))

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
            if self.delay > 0:
                await self._wait(cancel_token)
        elif self.delay > 0:
            await asyncio.sleep(self.delay)

        if self.responses:
            item = self.responses[(self.call_count - 1) % len(self.responses)]
        else:
            item = ModelResponse(content=f"Mock response #{self.call_count}")

        if isinstance(item, Exception):
            raise item

        if self.stream and on_chunk is not None and item.content:
            for word in item.content.split(" "):
                on_chunk(word + " ")
        return item

    async def _wait(self, token: CancellationToken) -> None:
        waiter = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait({waiter}, timeout=self.delay)
        finally:
            if not waiter.done():
                waiter.cancel()
        if done:
            raise OperationCancelledError(token.reason or "user_cancelled")
