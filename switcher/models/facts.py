"""Facts gathered about the running system before planning."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict


def missing_tools(tools: Mapping[str, Path | None], required: Iterable[str]) -> list[str]:
    """Return the entries of *required* that *tools* did not locate, in order."""
    return [name for name in required if tools.get(name) is None]


class SystemFacts(BaseModel):
    """Immutable snapshot of the host, produced once per invocation."""

    model_config = ConfigDict(frozen=True)

    hostname: str
    username: str
    temp_dir: Path
    tools: dict[str, Path | None] = {}
    is_nixos: bool = False
