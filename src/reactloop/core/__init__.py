"""Core error types for reactloop."""

from reactloop.core.errors import (
    ConfigError,
    ErrorCode,
    LoopError,
    OperationCancelledError,
    PluginError,
    ReactLoopError,
)

__all__ = [
    "ConfigError",
    "ErrorCode",
    "LoopError",
    "OperationCancelledError",
    "PluginError",
    "ReactLoopError",
]
