"""Model protocol - the LLM completion service the loop drives.

The loop only needs one call that returns content and/or requested tool
calls, optionally honouring a cancellation token and streaming content
through a chunk callback.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reactloop.agent.cancellation import CancellationToken
    from reactloop.tools.types import ToolDefinition

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant", "tool"]
ChunkCallback = Callable[[str], None]


# =============================================================================
# Message Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation requested by the LLM.

    ``arguments`` is kept exactly as the model produced it: either an
    already-decoded mapping or a JSON string.
    """

    id: str
    name: str
    arguments: Mapping[str, Any] | str = "{}"

    def parse_arguments(self) -> dict[str, Any]:
        """Decode the arguments into a dict.

        Raises:
            ValueError: If the payload is not valid JSON or not an object.
        """
        if isinstance(self.arguments, Mapping):
            return dict(self.arguments)
        raw = self.arguments.strip() if isinstance(self.arguments, str) else self.arguments
        if raw == "":
            return {}
        decoded = json.loads(raw)
        if not isinstance(decoded, dict):
            raise ValueError(f"arguments must be a JSON object, got {type(decoded).__name__}")
        return decoded


@dataclass(frozen=True, slots=True)
class Message:
    """A conversation message for multi-turn interactions.

    Supports system, user, assistant, and tool result messages.
    """

    role: Role
    content: str = ""

    # For assistant messages with tool calls
    tool_calls: tuple[ToolCall, ...] = ()

    # For tool result messages
    tool_call_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            result["tool_calls"] = [
                {"id": c.id, "name": c.name, "arguments": c.arguments} for c in self.tool_calls
            ]
        if self.tool_call_id is not None:
            result["tool_call_id"] = self.tool_call_id
        return result


@dataclass(frozen=True, slots=True)
class ModelResponse:
    """Result of one LLM call."""

    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()

    @property
    def has_tool_calls(self) -> bool:
        """Check if this response requests tool calls."""
        return len(self.tool_calls) > 0


# =============================================================================
# Model Protocol
# =============================================================================


@runtime_checkable
class ModelProtocol(Protocol):
    """Protocol for LLM completion services.

    Implementations must raise ``OperationCancelledError`` when the token
    trips, so the loop can tell a cancellation from an ordinary failure.
    """

    async def call(
        self,
        task_kind: str,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        *,
        cancel_token: CancellationToken | None = None,
        on_chunk: ChunkCallback | None = None,
    ) -> ModelResponse:
        """Run one completion.

        Args:
            task_kind: Kind of task, used by services to route to a model.
            messages: The full transcript, in order.
            tools: Tool schemas the model may call.
            cancel_token: Trips on caller cancellation or iteration timeout.
            on_chunk: Receives incremental content when the service streams.

        Returns:
            ModelResponse with content and any requested tool calls.
        """
        ...
