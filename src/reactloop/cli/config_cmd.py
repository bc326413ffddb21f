"""Config command - Show the resolved reactloop configuration."""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from reactloop.config import config_paths, load_config
from reactloop.core.errors import ConfigError

console = Console()


@click.command()
@click.option("--path", type=click.Path(), help="Extra config file (highest file priority)")
def config(path: str | None) -> None:
    """Show the resolved configuration.

    Configuration is merged from (lowest to highest priority):
    1. Built-in defaults
    2. ~/.reactloop/config.yaml (user-global)
    3. .reactloop/config.yaml (project-local)
    4. --path FILE
    5. Environment variables (REACTLOOP_*)

    Environment overrides:

        REACTLOOP_LOOP_MAX_ITERATIONS=5 reactloop config
        REACTLOOP_PLUGINS_CONFLICT_STRATEGY=replace reactloop config
    """
    try:
        cfg = load_config(path)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(2) from e

    console.print(Panel("[bold]reactloop Configuration[/bold]", border_style="cyan"))
    rendered = yaml.safe_dump(cfg.to_dict(), sort_keys=False)
    console.print(Syntax(rendered, "yaml", theme="ansi_dark"))

    console.print("[dim]Config sources:[/dim]")
    for config_path in config_paths(path):
        if Path(config_path).exists():
            console.print(f"  [green]✓[/green] {config_path}")
        else:
            console.print(f"  [dim]○[/dim] {config_path} (not found)")
