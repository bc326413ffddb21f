"""Configuration for the agentic loop."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LoopConfig:
    """Configuration for the agentic loop."""

    max_iterations: int = 10
    """Maximum iterations before stopping (prevents infinite loops)."""

    iteration_timeout: float | None = 30.0
    """Seconds each LLM call may take before its token trips. None disables."""

    parallel_tool_calls: bool = True
    """Run the tool calls of one response concurrently when there are several."""

    validate_arguments: bool = True
    """Check tool arguments against declared parameters before execution."""

    task_kind: str = "tool_calling"
    """Task kind passed to the LLM service on every call."""

    def validate(self) -> list[str]:
        """Return a list of problems with this configuration."""
        problems: list[str] = []
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int):
            problems.append(f"max_iterations must be an integer, got {self.max_iterations!r}")
        elif self.max_iterations < 1:
            problems.append("max_iterations must be >= 1")
        timeout = self.iteration_timeout
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                problems.append(f"iteration_timeout must be a number or None, got {timeout!r}")
            elif timeout <= 0:
                problems.append("iteration_timeout must be > 0 or None")
        if not self.task_kind:
            problems.append("task_kind must be non-empty")
        return problems
