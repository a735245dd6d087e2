"""Switcher CLI — Typer-based command-line interface.

Provides the ``switcher`` command with subcommands for switching to the
latest configuration, previewing the build plan, and generating shell
completions.

All user-facing output uses Rich.
"""
