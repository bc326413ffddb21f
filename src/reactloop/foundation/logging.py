"""Logging configuration for reactloop.

Provides centralized logging setup with sensible defaults:
- Default: WARNING level (quiet operation)
- --debug flag: DEBUG level with full context
- REACTLOOP_DEBUG=true or REACTLOOP_LOG_LEVEL=DEBUG env vars: Override for CI/scripting
- Persistent logs (opt-in): Stored in .reactloop/logs/ with session rotation

Usage:
    from reactloop.foundation.logging import configure_logging
    configure_logging(debug=args.debug)

Priority for level resolution (highest to lowest):
    1. Explicit `level` parameter (programmatic override)
    2. REACTLOOP_LOG_LEVEL env var (any level: DEBUG, INFO, WARNING, etc.)
    3. REACTLOOP_DEBUG=true env var (simple boolean)
    4. `debug=True` parameter (--debug flag or `debug: true` in config)
    5. WARNING (default)
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

# Format includes module path for tracing issues
_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"

# Noisy libraries we want to quiet even in debug mode
_NOISY_LOGGERS = (
    "asyncio",
    "markdown_it",
)

# Session log retention
_MAX_LOG_SESSIONS = 10  # Keep last N session logs


def _get_log_directory() -> Path:
    """Get or create the persistent log directory (.reactloop/logs/)."""
    log_dir = Path.cwd() / ".reactloop" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _cleanup_old_logs(log_dir: Path, max_sessions: int = _MAX_LOG_SESSIONS) -> None:
    """Remove old session logs, keeping only the most recent N."""
    log_files = sorted(
        log_dir.glob("session_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,  # Newest first
    )
    for old_log in log_files[max_sessions:]:
        try:
            old_log.unlink()
        except OSError as e:
            logging.getLogger(__name__).debug("Could not remove %s: %s", old_log, e)


def resolve_level(*, debug: bool = False, level: int | str | None = None) -> int:
    """Resolve the effective log level (see module docstring for priority)."""
    if level is not None:
        return _parse_level(level)
    if env_level := os.environ.get("REACTLOOP_LOG_LEVEL"):
        return _parse_level(env_level)
    if os.environ.get("REACTLOOP_DEBUG", "").lower() in ("true", "1", "yes"):
        return logging.DEBUG
    if debug:
        return logging.DEBUG
    return logging.WARNING


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: TextIO | None = None,
    persist: bool = False,
) -> None:
    """Configure logging for the reactloop CLI.

    Args:
        debug: Enable DEBUG level with detailed format
        level: Override log level (int or string like "DEBUG", "INFO")
        stream: Output stream (default: stderr)
        persist: Also write a session log to .reactloop/logs/
    """
    resolved_level = resolve_level(debug=debug, level=level)

    console_format = _DEBUG_FORMAT if resolved_level <= logging.DEBUG else _DEFAULT_FORMAT

    root_logger = logging.getLogger()
    # When persisting to file, root must allow DEBUG through so file handler can capture it
    root_logger.setLevel(logging.DEBUG if persist else resolved_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    if persist:
        try:
            log_dir = _get_log_directory()
            _cleanup_old_logs(log_dir)

            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            file_handler = logging.FileHandler(
                log_dir / f"session_{timestamp}.log", mode="w", encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(_DEBUG_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            # Non-fatal: log to stderr if file logging fails
            sys.stderr.write(f"Warning: Could not enable persistent logging: {e}\n")

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, debug=%s, persist=%s",
        logging.getLevelName(resolved_level),
        debug,
        persist,
    )


def _parse_level(level: int | str) -> int:
    """Parse log level from int or string."""
    if isinstance(level, int):
        return level
    numeric = getattr(logging, level.upper(), None)
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return logging.WARNING
