"""Pytest fixtures for reactloop tests."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from reactloop.agent.events.types import EventType, StreamEvent
from reactloop.config import reset_config
from reactloop.plugins import Plugin, PluginRegistry
from reactloop.tools import Tool, ToolContext, ToolParameter, ToolResult


class EventRecorder:
    """Observer that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[StreamEvent] = []

    def __call__(self, event: StreamEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[EventType]:
        return [e.type for e in self.events]

    def of_type(self, event_type: EventType) -> list[StreamEvent]:
        return [e for e in self.events if e.type is event_type]


def _make_tool(
    name: str,
    content: str = "ok",
    *,
    data: Any = None,
    parameters: tuple[ToolParameter, ...] = (),
    calls: list[dict[str, Any]] | None = None,
) -> Tool:
    """A tool returning a fixed successful result, recording its arguments."""

    async def execute(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
        if calls is not None:
            calls.append(args)
        return ToolResult.ok(content, data=data)

    return Tool(name=name, description=f"Test tool {name}", parameters=parameters, execute=execute)


def _make_plugin(name: str, *tools: Tool, namespace: str | None = None, **kwargs: Any) -> Plugin:
    return Plugin(
        name=name,
        version="1.0.0",
        description=f"Test plugin {name}",
        tools=list(tools),
        namespace=namespace,
        **kwargs,
    )


@pytest.fixture
def make_tool():
    """Factory for tools returning a fixed successful result."""
    return _make_tool


@pytest.fixture
def make_plugin():
    """Factory for plugins with version and description filled in."""
    return _make_plugin


@pytest.fixture
def recorder() -> EventRecorder:
    """Event observer that records everything."""
    return EventRecorder()


@pytest.fixture
def tool_context() -> ToolContext:
    return ToolContext(session_id="test-session")


@pytest.fixture
def registry() -> PluginRegistry:
    """Empty registry with default options."""
    return PluginRegistry()


@pytest.fixture
def restore_root_logger() -> Iterator[logging.Logger]:
    """Undo configure_logging changes to the root logger."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep tests independent of the developer's config files and env."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("REACTLOOP_"):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()
