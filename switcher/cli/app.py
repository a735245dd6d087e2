"""Main Typer application — imports and registers all CLI commands.

Entry point: ``switcher`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

from enum import Enum

import typer

from switcher.cli.commands.completions import completions_cmd
from switcher.cli.commands.plan import plan_cmd
from switcher.cli.commands.switch import switch_cmd

app = typer.Typer(
    name="switcher",
    help="Yet another nix deployment tool.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


class LogFormat(str, Enum):
    COMPACT = "compact"
    PRETTY = "pretty"
    JSON = "json"


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase verbosity (up to 2 times)."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Omit any output except warnings and errors."
    ),
    log_format: LogFormat = typer.Option(
        None, "--format", "-f", help="Log format."
    ),
) -> None:
    """Yet another nix deployment tool."""
    ctx.obj = {
        "verbose": min(verbose, 2),
        "quiet": quiet,
        "format": log_format.value if log_format else None,
    }


# Register subcommands
app.command(name="switch", help="Build and switch to the latest configuration.")(switch_cmd)
app.command(name="plan", help="Show the buildables without building.")(plan_cmd)
app.command(name="completions", help="Generate shell completions.")(completions_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
