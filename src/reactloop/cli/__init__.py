"""Command-line interface for reactloop."""

from reactloop.cli.main import main

__all__ = ["main"]
