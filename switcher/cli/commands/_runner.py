"""Shared plumbing for pipeline commands: config, logging, error mapping."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console

from switcher.config import SwitcherConfig, load_config
from switcher.core.orchestrator import Orchestrator, default_provider
from switcher.core.system import LocalSystem
from switcher.errors import MissingToolError, SwitcherError
from switcher.logging_utils import configure_logging, resolve_level

T = TypeVar("T")

EXIT_ERROR = 1
EXIT_MISSING_TOOL = 3

err_console = Console(stderr=True)


def load_settings(ctx: typer.Context, **overrides: Any) -> SwitcherConfig:
    """Load configuration and configure logging from the global options."""
    opts: dict[str, Any] = ctx.obj or {}
    if opts.get("format") is not None:
        overrides.setdefault("log_format", opts["format"])
    try:
        config = load_config(**overrides)
    except ValidationError as exc:
        err_console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(EXIT_ERROR) from exc

    verbose = opts.get("verbose", 0)
    configure_logging(
        resolve_level(config.log_level, verbose, opts.get("quiet", False)),
        config.log_format,
        verbose,
    )
    return config


def run_pipeline(
    config: SwitcherConfig,
    step: Callable[[Orchestrator], Awaitable[T]],
) -> T:
    """Run *step* on a fresh Orchestrator and map errors onto exit codes."""
    try:
        system = LocalSystem()
        orchestrator = Orchestrator(
            config,
            system=system,
            provider=default_provider(config, system),
        )
        return asyncio.run(step(orchestrator))
    except MissingToolError as exc:
        err_console.print(f"[bold red]Fatal:[/bold red] {exc}")
        raise typer.Exit(EXIT_MISSING_TOOL) from exc
    except SwitcherError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(EXIT_ERROR) from exc
