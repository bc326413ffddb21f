"""Plugin types: declarations, lifecycle hooks, and registry bookkeeping."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from reactloop.tools.types import Tool

ConflictStrategy = Literal["error", "replace", "skip"]

LoadHook = Callable[["PluginContext"], Awaitable[None] | None]
UnloadHook = Callable[[], Awaitable[None] | None]
HealthCheck = Callable[[], Awaitable[bool] | bool]


class PluginStatus(Enum):
    """Lifecycle status of a registered plugin."""

    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"
    UNLOADED = "unloaded"


@dataclass(frozen=True, slots=True)
class PluginContext:
    """Dependency-injection bag passed to plugin load hooks."""

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("reactloop.plugins"))
    config: Mapping[str, Any] = field(default_factory=dict)
    services: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Plugin:
    """A named bundle of tools with optional lifecycle hooks.

    Hooks are passed as the ``on_load``, ``on_unload`` and ``health_check``
    fields. Subclasses may instead define ``initialize(ctx)`` and ``cleanup()``
    methods, which take precedence over the fields. The registry resolves
    them once, when the plugin is loaded.

    Example:
        >>> plugin = Plugin(
        ...     name="orders",
        ...     version="1.0.0",
        ...     description="Order lookups",
        ...     namespace="orders",
        ...     tools=[lookup_tool],
        ... )
        >>> await registry.load(plugin)
        >>> registry.has_tool("orders_lookup_status")
        True
    """

    name: str
    version: str
    description: str
    tools: list[Tool] | tuple[Tool, ...] = ()
    namespace: str | None = None
    dependencies: tuple[str, ...] = ()

    on_load: LoadHook | None = None
    on_unload: UnloadHook | None = None
    health_check: HealthCheck | None = None


@dataclass(frozen=True, slots=True)
class PluginLifecycle:
    """Lifecycle hooks of one plugin, resolved once at load time."""

    load: LoadHook | None = None
    unload: UnloadHook | None = None
    health: HealthCheck | None = None

    @classmethod
    def resolve(cls, plugin: Plugin) -> PluginLifecycle:
        """Pick the hook implementations a plugin provides.

        ``initialize``/``cleanup`` methods win over the ``on_load``/``on_unload``
        fields when both are present.
        """
        load = getattr(plugin, "initialize", None)
        unload = getattr(plugin, "cleanup", None)
        return cls(
            load=load if callable(load) else plugin.on_load,
            unload=unload if callable(unload) else plugin.on_unload,
            health=plugin.health_check,
        )


@dataclass(slots=True)
class PluginState:
    """Registry bookkeeping for one plugin."""

    plugin: Plugin
    status: PluginStatus
    lifecycle: PluginLifecycle = field(default_factory=PluginLifecycle)
    tool_names: list[str] = field(default_factory=list)
    """Registered names owned by this plugin, in registration order."""

    error: str | None = None


@dataclass(frozen=True, slots=True)
class PluginInfo:
    """Read-only summary of a registered plugin."""

    name: str
    version: str
    description: str
    namespace: str | None
    tool_count: int
    tool_names: tuple[str, ...]
    status: PluginStatus
    error: str | None = None


@dataclass(frozen=True, slots=True)
class PluginRegistryOptions:
    """Options for a ``PluginRegistry``."""

    conflict_strategy: ConflictStrategy = "error"
    """What to do when a tool name is already registered."""

    auto_namespace: bool = True
    """Prefix tool names with the plugin namespace, when one is declared."""

    strict_validation: bool = True
    """Validate plugin and tool declarations on load."""
