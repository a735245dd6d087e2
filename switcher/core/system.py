"""System/Exec capability — the only code that touches the process table.

Defines the ``System`` Protocol the orchestrator depends on, along with
``LocalSystem``, the production implementation backed by
``asyncio.create_subprocess_exec``.  Tests substitute a canned-response
implementation so the orchestrator's decisions can be exercised without
spawning anything.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from switcher.errors import CommandError, CommandFailedError, EncodingError

logger = logging.getLogger(__name__)

NIXOS_MARKER = Path("/etc/NIXOS")


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class System(Protocol):
    """Protocol for system capability backends."""

    async def run_captured(self, program: str, *args: str) -> str:
        """Run *program* to completion and return its trimmed UTF-8 stdout."""
        ...

    async def run_interactive(self, program: str, *args: str) -> int:
        """Run *program* with inherited stdio; non-zero exit raises."""
        ...

    async def which(self, program: str) -> Path | None:
        ...

    async def get_hostname(self) -> str:
        ...

    async def get_username(self) -> str:
        ...

    async def make_temp_dir(self) -> Path:
        ...

    async def remove_dir(self, path: Path) -> None:
        ...

    async def is_nixos(self) -> bool:
        ...


# ---------------------------------------------------------------------------
# Production implementation
# ---------------------------------------------------------------------------


class LocalSystem:
    """Spawns real processes on the local machine.

    Only ``run_captured``, ``run_interactive`` and ``is_nixos`` touch the
    operating system directly; every other query is built on top of them.
    """

    async def run_captured(self, program: str, *args: str) -> str:
        """Spawn *program*, wait for it and return its trimmed stdout.

        A non-zero exit status is not an error here (``which`` relies on
        that); termination by a signal is.

        Raises
        ------
        CommandError
            If the program cannot be spawned or was killed by a signal.
        EncodingError
            If stdout is not valid UTF-8.
        """
        logger.debug("running %s %s", program, " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as exc:
            raise CommandError(program, f"could not be spawned: {exc}") from exc

        if proc.returncode is not None and proc.returncode < 0:
            raise CommandError(program, f"terminated by signal {-proc.returncode}")
        if proc.returncode:
            logger.debug(
                "%s exited with status %d: %s",
                program,
                proc.returncode,
                stderr.decode("utf-8", errors="replace").strip(),
            )

        try:
            return stdout.decode("utf-8").strip()
        except UnicodeDecodeError as exc:
            raise EncodingError(program) from exc

    async def run_interactive(self, program: str, *args: str) -> int:
        """Spawn *program* with inherited stdio and wait for it.

        Raises
        ------
        CommandError
            If the program cannot be spawned.
        CommandFailedError
            If the program exits with a non-zero status.
        """
        logger.debug("spawning %s %s", program, " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(program, *args)
        except OSError as exc:
            raise CommandError(program, f"could not be spawned: {exc}") from exc

        returncode = await proc.wait()
        if returncode != 0:
            raise CommandFailedError(program, returncode)
        return returncode

    async def which(self, program: str) -> Path | None:
        """Return the path of *program* on ``PATH``, or ``None``."""
        out = await self.run_captured("which", program)
        return Path(out) if out else None

    async def get_hostname(self) -> str:
        return await self.run_captured("hostname")

    async def get_username(self) -> str:
        return await self.run_captured("whoami")

    async def make_temp_dir(self) -> Path:
        """Create a fresh empty temporary directory via ``mktemp -d``."""
        out = await self.run_captured("mktemp", "-d")
        if not out:
            raise CommandError("mktemp", "did not report a directory")
        return Path(out)

    async def remove_dir(self, path: Path) -> None:
        await self.run_interactive("rm", "-rf", str(path))

    async def is_nixos(self) -> bool:
        return NIXOS_MARKER.exists()
