"""LLM service protocol and message types."""

from reactloop.models.mock import ScriptedCall, ScriptedModel
from reactloop.models.protocol import (
    ChunkCallback,
    Message,
    ModelProtocol,
    ModelResponse,
    ToolCall,
)

__all__ = [
    "ChunkCallback",
    "Message",
    "ModelProtocol",
    "ModelResponse",
    "ScriptedCall",
    "ScriptedModel",
    "ToolCall",
]
