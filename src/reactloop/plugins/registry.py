"""Plugin registry: validated, namespaced, dependency-ordered tool activation.

The registry owns the shared tool table the agentic loop resolves tool calls
against. It performs no internal locking: ``load``/``unload``/``clear`` must be
serialized by the caller.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any

from reactloop.core.errors import ErrorCode, PluginError
from reactloop.plugins.types import (
    Plugin,
    PluginContext,
    PluginInfo,
    PluginLifecycle,
    PluginRegistryOptions,
    PluginState,
    PluginStatus,
)
from reactloop.tools.types import Tool, ToolDefinition, tool_to_definition
from reactloop.tools.validation import IDENTIFIER_PATTERN, NAME_PATTERN, validate_tool

logger = logging.getLogger(__name__)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(slots=True)
class PluginRegistry:
    """Registry of plugins and the tools they expose.

    Example:
        >>> registry = PluginRegistry()
        >>> await registry.load(orders_plugin)
        >>> tool = registry.get_tool("orders_lookup_status")
        >>> definitions = registry.get_tool_definitions()
    """

    options: PluginRegistryOptions = field(default_factory=PluginRegistryOptions)

    _plugins: dict[str, PluginState] = field(default_factory=dict, init=False)
    _tools: dict[str, Tool] = field(default_factory=dict, init=False)
    _owners: dict[str, str] = field(default_factory=dict, init=False)
    """Registered tool name -> owning plugin name."""

    _loading: set[str] = field(default_factory=set, init=False)
    _context: PluginContext | None = field(default=None, init=False)

    def set_context(self, context: PluginContext) -> None:
        """Set the context handed to plugin load hooks."""
        self._context = context

    # =========================================================================
    # Load / unload
    # =========================================================================

    async def load(self, plugin: Plugin) -> None:
        """Validate and activate a plugin.

        The plugin's load hook runs to completion before any of its tools are
        added to the shared table. Loading is atomic: if registration fails,
        tools added (or displaced) by this call are rolled back and the plugin
        is kept with status ``error``.

        Raises:
            PluginError: On validation failure, duplicate or circular loads,
                missing dependencies, tool conflicts, or a failing load hook.
        """
        if self.options.strict_validation:
            self._validate(plugin)

        name = plugin.name
        if name in self._loading:
            raise PluginError(
                ErrorCode.PLUGIN_CIRCULAR_DEPENDENCY,
                name,
                f"Circular dependency detected: plugin '{name}' is already loading",
            )

        if name in self._plugins:
            raise PluginError(
                ErrorCode.PLUGIN_DUPLICATE,
                name,
                f"Plugin '{name}' is already registered",
            )

        for dependency in plugin.dependencies:
            dep_state = self._plugins.get(dependency)
            if dep_state is None or dep_state.status is not PluginStatus.LOADED:
                raise PluginError(
                    ErrorCode.PLUGIN_DEPENDENCY_MISSING,
                    name,
                    f"Dependency '{dependency}' is not loaded",
                    dependency=dependency,
                )

        state = PluginState(
            plugin=plugin,
            status=PluginStatus.LOADING,
            lifecycle=PluginLifecycle.resolve(plugin),
        )
        self._plugins[name] = state
        self._loading.add(name)

        added: list[str] = []
        displaced: dict[str, tuple[Tool, str]] = {}
        try:
            if state.lifecycle.load is not None:
                await _maybe_await(state.lifecycle.load(self._context_for(plugin)))

            for tool in plugin.tools:
                self._register_tool(state, tool, added, displaced)

            state.status = PluginStatus.LOADED
            logger.info(
                "Loaded plugin %s v%s (%d tools)",
                name,
                plugin.version,
                len(state.tool_names),
            )
        except Exception as e:
            self._rollback(state, added, displaced)
            state.status = PluginStatus.ERROR
            state.error = str(e.reason) if isinstance(e, PluginError) else str(e)
            logger.warning("Failed to load plugin %s: %s", name, state.error)
            if isinstance(e, PluginError):
                raise
            raise PluginError(
                ErrorCode.PLUGIN_LOAD_FAILED,
                name,
                f"Failed to load plugin: {e}",
                cause=e,
            ) from e
        finally:
            self._loading.discard(name)

    async def unload(self, name: str) -> bool:
        """Deactivate a plugin and remove its tools.

        The unload hook runs first. If it raises, the error is logged and the
        tools are removed anyway.

        Returns:
            True if the plugin was registered, False otherwise.
        """
        state = self._plugins.get(name)
        if state is None:
            return False

        if state.lifecycle.unload is not None:
            try:
                await _maybe_await(state.lifecycle.unload())
            except Exception:
                logger.exception("Error during cleanup of plugin %s", name)

        for tool_name in state.tool_names:
            if self._owners.get(tool_name) == name:
                del self._tools[tool_name]
                del self._owners[tool_name]

        state.status = PluginStatus.UNLOADED
        del self._plugins[name]
        logger.info("Unloaded plugin %s", name)
        return True

    async def clear(self) -> None:
        """Unload every plugin, most recently loaded first."""
        for name in reversed(list(self._plugins)):
            await self.unload(name)

    # =========================================================================
    # Tool lookup
    # =========================================================================

    def get_tool(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def list_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def list_tool_names(self) -> list[str]:
        return list(self._tools)

    def get_tool_definitions(self) -> list[ToolDefinition]:
        """Schema view of every registered tool, for the LLM."""
        return [tool_to_definition(tool) for tool in self._tools.values()]

    @property
    def tool_count(self) -> int:
        return len(self._tools)

    # =========================================================================
    # Plugin lookup
    # =========================================================================

    def get_plugin(self, name: str) -> Plugin | None:
        state = self._plugins.get(name)
        return state.plugin if state else None

    def has_plugin(self, name: str) -> bool:
        return name in self._plugins

    def get_status(self, name: str) -> PluginStatus | None:
        state = self._plugins.get(name)
        return state.status if state else None

    def list_plugins(self) -> list[PluginInfo]:
        """Summaries of every registered plugin, in load order."""
        return [
            PluginInfo(
                name=state.plugin.name,
                version=state.plugin.version,
                description=state.plugin.description,
                namespace=state.plugin.namespace,
                tool_count=len(state.tool_names),
                tool_names=tuple(state.tool_names),
                status=state.status,
                error=state.error,
            )
            for state in self._plugins.values()
        ]

    @property
    def plugin_count(self) -> int:
        return len(self._plugins)

    async def health_check(self) -> dict[str, bool]:
        """Check the health of every plugin.

        Plugins without a health check are healthy iff their status is ``loaded``.
        A health check that raises counts as unhealthy.
        """
        results: dict[str, bool] = {}
        for name, state in self._plugins.items():
            check = state.lifecycle.health
            if check is None:
                results[name] = state.status is PluginStatus.LOADED
                continue
            try:
                results[name] = bool(await _maybe_await(check()))
            except Exception as e:
                logger.warning("Health check for plugin %s failed: %s", name, e)
                results[name] = False
        return results

    # =========================================================================
    # Internals
    # =========================================================================

    def _context_for(self, plugin: Plugin) -> PluginContext:
        if self._context is not None:
            return self._context
        return PluginContext(logger=logging.getLogger(f"reactloop.plugins.{plugin.name}"))

    def _registered_name(self, plugin: Plugin, tool: Tool) -> str:
        if self.options.auto_namespace and plugin.namespace:
            return f"{plugin.namespace}_{tool.name}"
        return tool.name

    def _register_tool(
        self,
        state: PluginState,
        tool: Tool,
        added: list[str],
        displaced: dict[str, tuple[Tool, str]],
    ) -> None:
        plugin_name = state.plugin.name
        registered = self._registered_name(state.plugin, tool)

        if registered in self._tools:
            strategy = self.options.conflict_strategy
            if strategy == "skip":
                logger.debug("Skipping tool %s from %s: name already registered", registered, plugin_name)
                return
            if strategy == "error":
                raise PluginError(
                    ErrorCode.PLUGIN_TOOL_CONFLICT,
                    plugin_name,
                    f"Tool '{registered}' is already registered",
                    tool_name=registered,
                )
            previous_owner = self._owners[registered]
            if registered not in displaced and registered not in added:
                displaced[registered] = (self._tools[registered], previous_owner)
            owner_state = self._plugins.get(previous_owner)
            if owner_state is not None and previous_owner != plugin_name:
                owner_state.tool_names.remove(registered)
            logger.info("Tool %s from %s replaces the one from %s", registered, plugin_name, previous_owner)

        self._tools[registered] = tool.with_name(registered) if registered != tool.name else tool
        self._owners[registered] = plugin_name
        if registered not in state.tool_names:
            state.tool_names.append(registered)
        if registered not in added:
            added.append(registered)

    def _rollback(
        self,
        state: PluginState,
        added: list[str],
        displaced: dict[str, tuple[Tool, str]],
    ) -> None:
        for tool_name in added:
            self._tools.pop(tool_name, None)
            self._owners.pop(tool_name, None)
        for tool_name, (tool, owner) in displaced.items():
            self._tools[tool_name] = tool
            self._owners[tool_name] = owner
            owner_state = self._plugins.get(owner)
            if owner_state is not None and tool_name not in owner_state.tool_names:
                owner_state.tool_names.append(tool_name)
        state.tool_names.clear()

    def _validate(self, plugin: Any) -> None:
        name = getattr(plugin, "name", None)
        if not isinstance(name, str) or not NAME_PATTERN.match(name):
            raise PluginError(
                ErrorCode.PLUGIN_INVALID,
                str(name),
                f"Invalid plugin name {name!r}: must start with a letter and contain "
                "only letters, digits, underscores, and hyphens",
            )
        for attr in ("version", "description"):
            value = getattr(plugin, attr, None)
            if not isinstance(value, str) or not value.strip():
                raise PluginError(ErrorCode.PLUGIN_INVALID, name, f"Plugin must have a {attr}")

        tools = getattr(plugin, "tools", None)
        if not isinstance(tools, (list, tuple)):
            raise PluginError(ErrorCode.PLUGIN_INVALID, name, "Plugin tools must be a list")

        namespace = getattr(plugin, "namespace", None)
        if namespace is not None and (
            not isinstance(namespace, str) or not IDENTIFIER_PATTERN.match(namespace)
        ):
            raise PluginError(
                ErrorCode.PLUGIN_INVALID,
                name,
                f"Invalid namespace {namespace!r}: must start with a letter and contain "
                "only letters, digits, and underscores",
            )

        dependencies = getattr(plugin, "dependencies", ())
        if not isinstance(dependencies, (list, tuple)) or not all(
            isinstance(d, str) and d.strip() for d in dependencies
        ):
            raise PluginError(
                ErrorCode.PLUGIN_INVALID,
                name,
                "Plugin dependencies must be non-empty strings",
            )

        for tool in tools:
            validate_tool(tool, name)
