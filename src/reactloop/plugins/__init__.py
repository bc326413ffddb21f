"""Plugin registry and plugin declaration types."""

from reactloop.plugins.registry import PluginRegistry
from reactloop.plugins.types import (
    ConflictStrategy,
    Plugin,
    PluginContext,
    PluginInfo,
    PluginRegistryOptions,
    PluginStatus,
)

__all__ = [
    "ConflictStrategy",
    "Plugin",
    "PluginContext",
    "PluginInfo",
    "PluginRegistry",
    "PluginRegistryOptions",
    "PluginStatus",
]
