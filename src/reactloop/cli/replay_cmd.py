"""Replay command - Run the agentic loop against a scripted model."""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console

from reactloop.agent.events.types import EventType, StreamEvent
from reactloop.agent.loop.result import LoopResult
from reactloop.agent.loop.runner import create_loop
from reactloop.agent.loop.state import LoopStatus, RunOptions
from reactloop.cli.script import ReplayScript, load_script
from reactloop.config import load_config
from reactloop.core.errors import ConfigError, ReactLoopError
from reactloop.tools.types import ToolContext

console = Console()

_STATUS_STYLE = {
    LoopStatus.COMPLETED: "green",
    LoopStatus.MAX_ITERATIONS: "yellow",
    LoopStatus.CANCELLED: "yellow",
    LoopStatus.ERROR: "red",
}


def render_event(event: StreamEvent) -> None:
    """Print one event as a single line."""
    data = event.data
    match event.type:
        case EventType.ITERATION_STARTED:
            console.print(f"[cyan]◎ Iteration {data['iteration']}/{data['max_iterations']}[/cyan]")
        case EventType.ITERATION_COMPLETED:
            console.print(
                f"[dim]  iteration {data['iteration']} done in {data['duration_ms']}ms, "
                f"{data['tool_call_count']} tool call(s)[/dim]"
            )
        case EventType.CONTENT_CHUNK:
            if data["content"]:
                console.print(data["content"], markup=False, end="" if not data["is_complete"] else "\n")
        case EventType.TOOL_CALL_STARTED:
            console.print(f"  [blue]⚙ {data['tool_name']}[/blue] {json.dumps(data['arguments'])}")
        case EventType.TOOL_CALL_COMPLETED:
            console.print(f"  [green]✓ {data['tool_name']}[/green] [dim]({data['duration_ms']}ms)[/dim]")
        case EventType.TOOL_ERROR:
            console.print(f"  [red]✗ {data['tool_name']}[/red]: {data['error']}")
        case EventType.DECISION:
            console.print(f"[bold]→ {data['reason']}[/bold]")
        case EventType.ERROR:
            console.print(f"[red]✗ {data['code']}: {data['message']}[/red]")


async def _replay(script: ReplayScript, max_iterations: int | None, as_json: bool) -> LoopResult:
    loop = create_loop(script.build_model(), config=load_config())
    await loop.registry.load(script.build_plugin())

    if as_json:
        def observer(event: StreamEvent) -> None:
            click.echo(json.dumps(event.to_dict(), default=str))
    else:
        observer = render_event

    return await loop.run(
        script.message,
        ToolContext(session_id="replay"),
        RunOptions(
            system_prompt=script.system_prompt,
            max_iterations=max_iterations,
            on_event=observer,
            session_id="replay",
        ),
    )


@click.command()
@click.argument("script_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--max-iterations", "-n", type=int, default=None, help="Override the iteration limit")
@click.option("--json", "as_json", is_flag=True, help="Emit NDJSON events and the result")
def replay(script_path: str, max_iterations: int | None, as_json: bool) -> None:
    """Run the loop against a scripted model and stub tools.

    Exits 0 when the loop completes, 1 otherwise.

    Examples:

        reactloop replay examples/order_status.yaml
        reactloop replay demo.yaml --json | jq .type
    """
    try:
        script = load_script(script_path)
        result = asyncio.run(_replay(script, max_iterations, as_json))
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(2) from e
    except ReactLoopError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e

    if as_json:
        click.echo(json.dumps({"type": "result", **result.to_dict()}, default=str))
    else:
        style = _STATUS_STYLE.get(result.status, "white")
        console.print(
            f"\n[{style}]{result.status.value}[/{style}] after {result.iterations} iteration(s), "
            f"{len(result.tool_calls)} tool call(s), {result.duration_ms}ms"
        )
        if result.error:
            console.print(f"[red]{result.error}[/red]")

    if result.status is not LoopStatus.COMPLETED:
        raise SystemExit(1)
