"""reactloop Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Context for debugging

Tool-level failures are never raised through this hierarchy. They travel as
data inside ``ToolResult`` (see ``reactloop.tools.types``).
"""


from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Model/Provider errors
        3xxx - Tool/Plugin errors
        5xxx - Configuration errors
        6xxx - Runtime errors
    """

    # 1xxx - Model/Provider Errors
    MODEL_API_ERROR = 1006
    MODEL_RESPONSE_INVALID = 1010

    # 3xxx - Tool/Plugin Errors
    PLUGIN_INVALID = 3201
    PLUGIN_DUPLICATE = 3202
    PLUGIN_DEPENDENCY_MISSING = 3203
    PLUGIN_CIRCULAR_DEPENDENCY = 3204
    PLUGIN_TOOL_CONFLICT = 3205
    PLUGIN_LOAD_FAILED = 3206

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5002

    # 6xxx - Runtime Errors
    RUNTIME_CANCELLED = 6004
    RUNTIME_INVALID_OPTIONS = 6005

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "model",
            3: "plugin",
            5: "config",
            6: "runtime",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether this error type is typically recoverable."""
        non_recoverable = {
            ErrorCode.CONFIG_INVALID,
            ErrorCode.PLUGIN_CIRCULAR_DEPENDENCY,
            ErrorCode.RUNTIME_INVALID_OPTIONS,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.MODEL_API_ERROR: "LLM call failed: {detail}",
    ErrorCode.MODEL_RESPONSE_INVALID: "Invalid response from model: {detail}",

    ErrorCode.PLUGIN_INVALID: "Invalid plugin '{plugin}': {detail}",
    ErrorCode.PLUGIN_DUPLICATE: "Plugin '{plugin}' is already registered.",
    ErrorCode.PLUGIN_DEPENDENCY_MISSING: "Plugin '{plugin}' depends on '{dependency}', which is not loaded.",
    ErrorCode.PLUGIN_CIRCULAR_DEPENDENCY: "Circular dependency detected while loading '{plugin}'.",
    ErrorCode.PLUGIN_TOOL_CONFLICT: "Tool '{tool}' from plugin '{plugin}' conflicts with an existing tool.",
    ErrorCode.PLUGIN_LOAD_FAILED: "Failed to load plugin '{plugin}': {detail}",

    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",

    ErrorCode.RUNTIME_CANCELLED: "Operation was cancelled ({reason}).",
    ErrorCode.RUNTIME_INVALID_OPTIONS: "Invalid run options: {detail}",
}


class ReactLoopError(Exception):
    """Base error type for all reactloop errors.

    Example:
        >>> err = ReactLoopError(
        ...     code=ErrorCode.CONFIG_INVALID,
        ...     context={"key": "loop.max_iterations", "detail": "must be >= 1"},
        ... )
        >>> print(err)
        [RL-5002] Invalid configuration for 'loop.max_iterations': must be >= 1
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            # Fallback if context doesn't have all keys
            return template

    @property
    def is_recoverable(self) -> bool:
        """Whether this error is typically recoverable."""
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        """Get the error category."""
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'RL-3202')."""
        return f"RL-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging/API responses."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "context": self.context,
        }


class PluginError(ReactLoopError):
    """Raised when a plugin cannot be validated, loaded, or registered.

    Identifies the offending plugin and, where applicable, the tool and
    parameter together with the rule that was violated.
    """

    def __init__(
        self,
        code: ErrorCode,
        plugin_name: str,
        reason: str,
        *,
        tool_name: str | None = None,
        parameter_name: str | None = None,
        cause: Exception | None = None,
        **extra: Any,
    ):
        self.plugin_name = plugin_name
        self.reason = reason
        self.tool_name = tool_name
        self.parameter_name = parameter_name
        context: dict[str, Any] = {"plugin": plugin_name, "detail": reason, **extra}
        if tool_name is not None:
            context["tool"] = tool_name
        if parameter_name is not None:
            context["parameter"] = parameter_name
        super().__init__(code=code, context=context, cause=cause)


class OperationCancelledError(ReactLoopError):
    """Raised by cancellable operations once their token trips.

    This is the marker that distinguishes a cancellation from an ordinary
    failure surfaced by an LLM call.
    """

    def __init__(self, reason: str = "user_cancelled", cause: Exception | None = None):
        self.reason = reason
        super().__init__(
            code=ErrorCode.RUNTIME_CANCELLED,
            context={"reason": reason},
            cause=cause,
        )


class LoopError(ReactLoopError):
    """Raised by ``AgenticLoop.run`` when its options are structurally invalid."""

    def __init__(self, detail: str):
        super().__init__(code=ErrorCode.RUNTIME_INVALID_OPTIONS, context={"detail": detail})


class ConfigError(ReactLoopError):
    """Raised when configuration files or environment overrides are invalid."""

    def __init__(self, key: str, detail: str, cause: Exception | None = None):
        super().__init__(
            code=ErrorCode.CONFIG_INVALID,
            context={"key": key, "detail": detail},
            cause=cause,
        )
