"""``switcher plan`` — show what ``switch`` would build, without building."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from switcher.cli.commands._runner import load_settings, run_pipeline
from switcher.core.orchestrator import Orchestrator

console = Console()


def plan_cmd(
    ctx: typer.Context,
    flake: str = typer.Option(
        None,
        "--flake",
        help="Flake reference to build, e.g. github:owner/repo (no fragment).",
    ),
    host: str = typer.Option(None, "--host", "-H", help="Host to plan for."),
    user: list[str] = typer.Option(None, "--user", "-U", help="User(s) to plan for."),
) -> None:
    """Resolve the latest commit and list the buildables."""
    config = load_settings(ctx, flake=flake, host=host, users=user or None)

    plan = run_pipeline(config, Orchestrator.preview)

    table = Table(title=f"Buildables for {plan.host}")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Flake")
    for buildable in plan.buildables():
        table.add_row(buildable.kind.value, buildable.name, buildable.flake)

    console.print(f"[bold]Pinned:[/bold] {plan.base}")
    console.print(table)
