"""``switcher completions`` — print a shell completion script."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer
from click.shell_completion import get_completion_class

PROG_NAME = "switcher"
COMPLETE_VAR = "_SWITCHER_COMPLETE"


class Shell(str, Enum):
    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"


def completions_cmd(
    ctx: typer.Context,
    shell: Shell = typer.Argument(..., help="Shell to generate completions for."),
    file: Path = typer.Option(
        None,
        "--file",
        "-f",
        help="File to write the completions to (stdout if omitted).",
    ),
) -> None:
    """Generate a completion script for SHELL."""
    root = ctx.find_root()

    completion_class = get_completion_class(shell.value)
    if completion_class is None:
        raise typer.BadParameter(f"unsupported shell {shell.value}")
    script = completion_class(root.command, {}, PROG_NAME, COMPLETE_VAR).source()

    if file is None:
        typer.echo(script)
    else:
        file.write_text(script + "\n", encoding="utf-8")
