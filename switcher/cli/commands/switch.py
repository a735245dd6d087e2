"""``switcher switch`` — build and activate the latest configuration.

Resolves the tip commit of the configured flake, builds the host's system
toplevel and the users' activation packages from that exact commit, then
switches the system and the invoking user's home configuration.
"""

from __future__ import annotations

import typer
from rich.console import Console

from switcher.cli.commands._runner import load_settings, run_pipeline
from switcher.core.orchestrator import Orchestrator

console = Console()


def switch_cmd(
    ctx: typer.Context,
    flake: str = typer.Option(
        None,
        "--flake",
        help="Flake reference to build, e.g. github:owner/repo (no fragment).",
    ),
    host: str = typer.Option(
        None,
        "--host",
        "-H",
        help="Host to build (defaults to the current hostname).",
    ),
    user: list[str] = typer.Option(
        None,
        "--user",
        "-U",
        help="User(s) to build (defaults to the current user).",
    ),
    only_system: bool = typer.Option(
        False,
        "--only-system",
        help="Ignore users and build the host only.",
    ),
    only_user: bool = typer.Option(
        False,
        "--only-user",
        help="Skip the system configuration.",
    ),
    keep_temp: bool = typer.Option(
        False,
        "--keep-temp",
        help="Keep the temporary build directory when a step fails.",
    ),
) -> None:
    """Build and switch to the latest commit of the configuration flake."""
    if only_system and only_user:
        raise typer.BadParameter("--only-system and --only-user are mutually exclusive")

    config = load_settings(
        ctx,
        flake=flake,
        host=host,
        users=user or None,
        activate_user=False if only_system else None,
        activate_system=False if only_user else None,
        keep_temp_on_failure=keep_temp or None,
    )

    plan = run_pipeline(config, Orchestrator.run)

    console.print(
        f"[bold green]Switched[/bold green] {plan.host} to [bold]{plan.base}[/bold]"
    )
