"""reactloop configuration management.

Loads configuration from .reactloop/config.yaml with sensible defaults.
All settings can be overridden via environment variables (REACTLOOP_*).

Config layers (lowest to highest priority):
1. Built-in defaults (the LoopConfig / PluginRegistryOptions dataclasses)
2. ~/.reactloop/config.yaml (user-global)
3. .reactloop/config.yaml (project-local)
4. Explicit path passed to load_config()
5. Environment variables, e.g. REACTLOOP_LOOP_MAX_ITERATIONS=5

Thread Safety:
    Uses threading.Lock for thread-safe lazy initialization.
"""

import logging
import os
import threading
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from reactloop.agent.loop.config import LoopConfig
from reactloop.core.errors import ConfigError
from reactloop.plugins.types import PluginRegistryOptions

logger = logging.getLogger(__name__)

ENV_PREFIX = "REACTLOOP_"

_SECTIONS: dict[str, type] = {
    "loop": LoopConfig,
    "plugins": PluginRegistryOptions,
}

_CONFLICT_STRATEGIES = ("error", "replace", "skip")


@dataclass(frozen=True, slots=True)
class ReactLoopConfig:
    """Root configuration for reactloop."""

    loop: LoopConfig = field(default_factory=LoopConfig)
    """Agentic loop defaults."""

    plugins: PluginRegistryOptions = field(default_factory=PluginRegistryOptions)
    """Plugin registry options."""

    debug: bool = False
    """Enable debug logging by default."""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Global config instance (lazy-loaded, thread-safe)
_config: ReactLoopConfig | None = None
_config_lock = threading.Lock()


def _defaults() -> dict[str, Any]:
    """Defaults from the dataclass definitions (single source of truth)."""
    return ReactLoopConfig().to_dict()


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str) -> Any:
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null", ""):
        return None
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply environment variable overrides.

    Variables follow the pattern REACTLOOP_<SECTION>_<KEY>, plus the
    top-level REACTLOOP_DEBUG.

    Examples:
        REACTLOOP_LOOP_MAX_ITERATIONS=5
        REACTLOOP_LOOP_PARALLEL_TOOL_CALLS=false
        REACTLOOP_PLUGINS_CONFLICT_STRATEGY=replace
    """
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = key[len(ENV_PREFIX):].lower()

        if path == "debug":
            config_dict["debug"] = _coerce(value)
            continue

        for section in _SECTIONS:
            if path.startswith(section + "_"):
                field_name = path[len(section) + 1:]
                config_dict.setdefault(section, {})[field_name] = _coerce(value)
                logger.debug("Config override from %s", key)
                break

    return config_dict


def _build_section(section: str, data: Any) -> Any:
    cls = _SECTIONS[section]
    if not isinstance(data, dict):
        raise ConfigError(section, f"expected a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{section}.{unknown[0]}", "unknown setting")
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigError(section, str(e), cause=e) from e


def _dict_to_config(data: dict) -> ReactLoopConfig:
    """Convert a dict to ReactLoopConfig, validating values."""
    unknown = sorted(set(data) - {"loop", "plugins", "debug"})
    if unknown:
        raise ConfigError(unknown[0], "unknown section")

    loop = _build_section("loop", data.get("loop", {}))
    plugins = _build_section("plugins", data.get("plugins", {}))

    problems = loop.validate()
    if problems:
        raise ConfigError("loop", "; ".join(problems))
    if plugins.conflict_strategy not in _CONFLICT_STRATEGIES:
        raise ConfigError(
            "plugins.conflict_strategy",
            f"must be one of {', '.join(_CONFLICT_STRATEGIES)}, got {plugins.conflict_strategy!r}",
        )

    return ReactLoopConfig(loop=loop, plugins=plugins, debug=bool(data.get("debug", False)))


def _read_yaml(path: Path) -> dict:
    try:
        with open(path) as f:
            content = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(str(path), f"invalid YAML: {e}", cause=e) from e
    if not isinstance(content, dict):
        raise ConfigError(str(path), "top level must be a mapping")
    return content


def config_paths(path: str | Path | None = None) -> list[Path]:
    """Config files consulted, lowest priority first."""
    paths = [
        Path.home() / ".reactloop" / "config.yaml",
        Path(".reactloop/config.yaml"),
    ]
    if path:
        paths.append(Path(path))
    return paths


def load_config(path: str | Path | None = None) -> ReactLoopConfig:
    """Load configuration from files with defaults and env overrides.

    Args:
        path: Optional explicit config file path. Must exist if given.

    Returns:
        Merged ReactLoopConfig instance.

    Raises:
        ConfigError: If a file is unreadable YAML or a value is invalid.
    """
    global _config

    if path and not Path(path).exists():
        raise ConfigError(str(path), "config file not found")

    config_dict = _defaults()
    for config_path in config_paths(path):
        if config_path.exists():
            logger.debug("Loading config from %s", config_path)
            _deep_update(config_dict, _read_yaml(config_path))

    config_dict = _apply_env_overrides(config_dict)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> ReactLoopConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    # Fast path: already initialized
    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None
