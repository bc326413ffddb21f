"""Tests for PluginRegistry: validation, namespacing, conflicts, and lifecycle."""

import pytest

from reactloop.core.errors import ErrorCode, PluginError
from reactloop.plugins import (
    Plugin,
    PluginContext,
    PluginRegistry,
    PluginRegistryOptions,
    PluginStatus,
)


class TestLoading:
    """Basic load and lookup."""

    @pytest.mark.asyncio
    async def test_load_registers_tools(self, registry, make_plugin, make_tool) -> None:
        await registry.load(make_plugin("orders", make_tool("lookup_status"), make_tool("cancel_order")))

        assert registry.has_plugin("orders")
        assert registry.get_status("orders") is PluginStatus.LOADED
        assert registry.list_tool_names() == ["lookup_status", "cancel_order"]
        assert registry.tool_count == 2
        assert registry.plugin_count == 1

    @pytest.mark.asyncio
    async def test_namespace_prefixes_tool_names(self, registry, make_plugin, make_tool) -> None:
        await registry.load(make_plugin("orders", make_tool("lookup_status"), namespace="orders"))

        assert registry.has_tool("orders_lookup_status")
        assert not registry.has_tool("lookup_status")
        assert registry.get_tool("orders_lookup_status").name == "orders_lookup_status"
        assert [d.name for d in registry.get_tool_definitions()] == ["orders_lookup_status"]

    @pytest.mark.asyncio
    async def test_auto_namespace_disabled(self, make_plugin, make_tool) -> None:
        registry = PluginRegistry(options=PluginRegistryOptions(auto_namespace=False))
        await registry.load(make_plugin("orders", make_tool("lookup_status"), namespace="orders"))
        assert registry.list_tool_names() == ["lookup_status"]

    @pytest.mark.asyncio
    async def test_duplicate_plugin_rejected(self, registry, make_plugin, make_tool) -> None:
        await registry.load(make_plugin("orders", make_tool("a")))
        with pytest.raises(PluginError) as exc_info:
            await registry.load(make_plugin("orders", make_tool("b")))
        assert exc_info.value.code is ErrorCode.PLUGIN_DUPLICATE
        assert not registry.has_tool("b")

    @pytest.mark.asyncio
    async def test_list_plugins(self, registry, make_plugin, make_tool) -> None:
        await registry.load(make_plugin("orders", make_tool("lookup"), namespace="orders"))
        [info] = registry.list_plugins()
        assert info.name == "orders"
        assert info.version == "1.0.0"
        assert info.namespace == "orders"
        assert info.tool_count == 1
        assert info.tool_names == ("orders_lookup",)
        assert info.status is PluginStatus.LOADED


class TestValidation:
    """Strict validation of plugin declarations."""

    @pytest.mark.asyncio
    async def test_invalid_plugin_name(self, registry, make_plugin) -> None:
        with pytest.raises(PluginError) as exc_info:
            await registry.load(make_plugin("9lives"))
        assert exc_info.value.code is ErrorCode.PLUGIN_INVALID
        assert not registry.has_plugin("9lives")

    @pytest.mark.asyncio
    async def test_hyphen_rejected_in_namespace(self, registry, make_plugin, make_tool) -> None:
        with pytest.raises(PluginError, match="namespace"):
            await registry.load(make_plugin("orders", make_tool("a"), namespace="my-orders"))

    @pytest.mark.asyncio
    async def test_missing_version(self, registry, make_tool) -> None:
        plugin = Plugin(name="orders", version="", description="Orders", tools=[make_tool("a")])
        with pytest.raises(PluginError, match="version"):
            await registry.load(plugin)

    @pytest.mark.asyncio
    async def test_invalid_tool_rejects_whole_plugin(self, registry, make_plugin, make_tool) -> None:
        with pytest.raises(PluginError) as exc_info:
            await registry.load(make_plugin("orders", make_tool("good"), make_tool("bad name")))
        assert exc_info.value.tool_name == "bad name"
        assert registry.tool_count == 0

    @pytest.mark.asyncio
    async def test_lenient_mode_skips_validation(self, make_plugin, make_tool) -> None:
        registry = PluginRegistry(options=PluginRegistryOptions(strict_validation=False))
        await registry.load(make_plugin("orders", make_tool("bad name")))
        assert registry.has_tool("bad name")


class TestConflicts:
    """Behaviour of each conflict strategy."""

    @pytest.mark.asyncio
    async def test_error_strategy_raises_and_rolls_back(self, registry, make_plugin, make_tool) -> None:
        await registry.load(make_plugin("first", make_tool("search", "first")))

        with pytest.raises(PluginError) as exc_info:
            await registry.load(make_plugin("second", make_tool("fetch"), make_tool("search", "second")))

        assert exc_info.value.code is ErrorCode.PLUGIN_TOOL_CONFLICT
        assert exc_info.value.tool_name == "search"
        assert registry.list_tool_names() == ["search"]
        assert registry.get_status("second") is PluginStatus.ERROR
        [_, info] = registry.list_plugins()
        assert info.tool_names == ()
        assert info.error

    @pytest.mark.asyncio
    async def test_skip_strategy_keeps_existing(self, make_plugin, make_tool, tool_context) -> None:
        registry = PluginRegistry(options=PluginRegistryOptions(conflict_strategy="skip"))
        await registry.load(make_plugin("first", make_tool("search", "first")))
        await registry.load(make_plugin("second", make_tool("search", "second"), make_tool("fetch")))

        result = await registry.get_tool("search").execute({}, tool_context)
        assert result.content == "first"
        assert registry.has_tool("fetch")
        assert registry.list_plugins()[1].tool_names == ("fetch",)

    @pytest.mark.asyncio
    async def test_replace_strategy_moves_ownership(self, make_plugin, make_tool, tool_context) -> None:
        registry = PluginRegistry(options=PluginRegistryOptions(conflict_strategy="replace"))
        await registry.load(make_plugin("first", make_tool("search", "first"), make_tool("other")))
        await registry.load(make_plugin("second", make_tool("search", "second")))

        result = await registry.get_tool("search").execute({}, tool_context)
        assert result.content == "second"

        # Unloading the previous owner must not remove the replaced tool
        await registry.unload("first")
        assert registry.has_tool("search")
        assert not registry.has_tool("other")

    @pytest.mark.asyncio
    async def test_replace_rolled_back_on_failure(self, make_plugin, make_tool, tool_context) -> None:
        registry = PluginRegistry(
            options=PluginRegistryOptions(conflict_strategy="replace", strict_validation=False)
        )
        await registry.load(make_plugin("first", make_tool("search", "first")))

        # The second entry is not a tool, so registration fails after the replace
        with pytest.raises(PluginError) as exc_info:
            await registry.load(make_plugin("second", make_tool("search", "second"), "not a tool"))
        assert exc_info.value.code is ErrorCode.PLUGIN_LOAD_FAILED

        result = await registry.get_tool("search").execute({}, tool_context)
        assert result.content == "first"
        assert registry.list_plugins()[0].tool_names == ("search",)
        assert registry.get_status("second") is PluginStatus.ERROR


class TestDependencies:
    """Dependency ordering and cycle detection."""

    @pytest.mark.asyncio
    async def test_missing_dependency(self, registry, make_plugin, make_tool) -> None:
        with pytest.raises(PluginError) as exc_info:
            await registry.load(make_plugin("reports", make_tool("a"), dependencies=("orders",)))
        assert exc_info.value.code is ErrorCode.PLUGIN_DEPENDENCY_MISSING
        assert exc_info.value.context["dependency"] == "orders"
        assert not registry.has_plugin("reports")

    @pytest.mark.asyncio
    async def test_dependency_loaded_first(self, registry, make_plugin, make_tool) -> None:
        await registry.load(make_plugin("orders", make_tool("a")))
        await registry.load(make_plugin("reports", make_tool("b"), dependencies=("orders",)))
        assert registry.get_status("reports") is PluginStatus.LOADED

    @pytest.mark.asyncio
    async def test_errored_dependency_does_not_count(self, registry, make_plugin, make_tool) -> None:
        def broken(ctx: PluginContext) -> None:
            raise RuntimeError("no database")

        with pytest.raises(PluginError):
            await registry.load(make_plugin("orders", make_tool("a"), on_load=broken))
        with pytest.raises(PluginError) as exc_info:
            await registry.load(make_plugin("reports", make_tool("b"), dependencies=("orders",)))
        assert exc_info.value.code is ErrorCode.PLUGIN_DEPENDENCY_MISSING

    @pytest.mark.asyncio
    async def test_reentrant_load_is_circular(self, registry, make_plugin, make_tool) -> None:
        plugin = make_plugin("orders", make_tool("a"))

        async def load_again(ctx: PluginContext) -> None:
            await registry.load(plugin)

        plugin.on_load = load_again
        with pytest.raises(PluginError) as exc_info:
            await registry.load(plugin)
        assert exc_info.value.code is ErrorCode.PLUGIN_CIRCULAR_DEPENDENCY
        assert exc_info.value.plugin_name == "orders"
        assert registry.get_status("orders") is PluginStatus.ERROR


class TestLifecycle:
    """Load hooks, unload hooks, and health checks."""

    @pytest.mark.asyncio
    async def test_load_hook_runs_before_tools_are_visible(self, registry, make_plugin, make_tool) -> None:
        seen: list[int] = []

        def on_load(ctx: PluginContext) -> None:
            seen.append(registry.tool_count)
            ctx.logger.info("loading")

        await registry.load(make_plugin("orders", make_tool("a"), make_tool("b"), on_load=on_load))
        assert seen == [0]
        assert registry.tool_count == 2

    @pytest.mark.asyncio
    async def test_load_hook_receives_registry_context(self, registry, make_plugin, make_tool) -> None:
        received: list[PluginContext] = []
        context = PluginContext(config={"db": "sqlite://"})
        registry.set_context(context)

        await registry.load(make_plugin("orders", make_tool("a"), on_load=received.append))
        assert received == [context]

    @pytest.mark.asyncio
    async def test_default_context_logger_is_per_plugin(self, registry, make_plugin, make_tool) -> None:
        received: list[PluginContext] = []
        await registry.load(make_plugin("orders", make_tool("a"), on_load=received.append))
        assert received[0].logger.name == "reactloop.plugins.orders"

    @pytest.mark.asyncio
    async def test_failing_load_hook(self, registry, make_plugin, make_tool) -> None:
        async def on_load(ctx: PluginContext) -> None:
            raise RuntimeError("no database")

        with pytest.raises(PluginError) as exc_info:
            await registry.load(make_plugin("orders", make_tool("a"), on_load=on_load))

        assert exc_info.value.code is ErrorCode.PLUGIN_LOAD_FAILED
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert registry.get_status("orders") is PluginStatus.ERROR
        assert registry.tool_count == 0
        assert "no database" in registry.list_plugins()[0].error

    @pytest.mark.asyncio
    async def test_subclass_methods_win_over_fields(self, registry, make_tool) -> None:
        calls: list[str] = []

        class Orders(Plugin):
            __slots__ = ()

            async def initialize(self, ctx: PluginContext) -> None:
                calls.append("initialize")

            async def cleanup(self) -> None:
                calls.append("cleanup")

        plugin = Orders(
            name="orders",
            version="1.0.0",
            description="Orders",
            tools=[make_tool("a")],
            on_load=lambda ctx: calls.append("on_load"),
        )
        await registry.load(plugin)
        await registry.unload("orders")
        assert calls == ["initialize", "cleanup"]

    @pytest.mark.asyncio
    async def test_unload_removes_tools(self, registry, make_plugin, make_tool) -> None:
        await registry.load(make_plugin("orders", make_tool("a"), namespace="orders"))
        assert await registry.unload("orders") is True
        assert registry.tool_count == 0
        assert not registry.has_plugin("orders")
        assert await registry.unload("orders") is False

    @pytest.mark.asyncio
    async def test_unload_cleanup_error_still_removes_tools(
        self, registry, make_plugin, make_tool, caplog
    ) -> None:
        def on_unload() -> None:
            raise RuntimeError("close failed")

        await registry.load(make_plugin("orders", make_tool("a"), on_unload=on_unload))
        assert await registry.unload("orders") is True
        assert registry.tool_count == 0
        assert "Error during cleanup of plugin orders" in caplog.text

    @pytest.mark.asyncio
    async def test_clear_unloads_in_reverse_order(self, registry, make_plugin, make_tool) -> None:
        order: list[str] = []
        await registry.load(make_plugin("orders", make_tool("a"), on_unload=lambda: order.append("orders")))
        await registry.load(
            make_plugin(
                "reports",
                make_tool("b"),
                dependencies=("orders",),
                on_unload=lambda: order.append("reports"),
            )
        )
        await registry.clear()
        assert order == ["reports", "orders"]
        assert registry.plugin_count == 0

    @pytest.mark.asyncio
    async def test_health_check(self, registry, make_plugin, make_tool) -> None:
        def check_raises() -> bool:
            raise RuntimeError("down")

        async def check_ok() -> bool:
            return True

        await registry.load(make_plugin("plain", make_tool("a")))
        await registry.load(make_plugin("healthy", make_tool("b"), health_check=check_ok))
        await registry.load(make_plugin("broken", make_tool("c"), health_check=check_raises))

        assert await registry.health_check() == {"plain": True, "healthy": True, "broken": False}
