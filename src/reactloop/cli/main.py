"""Main CLI entry point.

    reactloop config            # Show resolved configuration
    reactloop replay demo.yaml  # Run the loop against a scripted model
"""

from __future__ import annotations

import click

from reactloop import __version__
from reactloop.cli.config_cmd import config
from reactloop.cli.replay_cmd import replay
from reactloop.foundation.logging import configure_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--persist-logs", is_flag=True, help="Also write logs to .reactloop/logs/")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, debug: bool, persist_logs: bool) -> None:
    """reactloop: an agentic tool-calling loop with a plugin registry."""
    configure_logging(debug=debug, persist=persist_logs)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


main.add_command(config)
main.add_command(replay)
