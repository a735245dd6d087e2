"""Shared test fixtures for switcher."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from switcher.config import RepoConfig, SwitcherConfig
from switcher.core.flake_ref import FlakeRef
from switcher.core.system import LocalSystem
from switcher.errors import CommandError

TEMP_DIR = Path("/tmp/switcher-test")


class FakeSystem(LocalSystem):
    """Canned-response System: records every call, spawns nothing.

    Only the OS-touching primitives are replaced, so ``which``,
    ``get_hostname`` and friends still run through ``LocalSystem``.
    """

    def __init__(
        self,
        *,
        hostname: str = "nixos1",
        username: str = "alice",
        temp_dir: Path = TEMP_DIR,
        missing: set[str] | None = None,
        is_nixos: bool = True,
        token: str = "gh-token",
        failures: dict[str, Exception] | None = None,
    ) -> None:
        self.hostname = hostname
        self.username = username
        self.temp_dir = temp_dir
        self.missing = missing or set()
        self.nixos = is_nixos
        self.token = token
        self.failures = failures or {}
        self.captured: list[tuple[str, ...]] = []
        self.calls: list[tuple[str, ...]] = []

    async def run_captured(self, program: str, *args: str) -> str:
        self.captured.append((program, *args))
        if program in self.failures:
            raise self.failures[program]
        if program == "hostname":
            return self.hostname
        if program == "whoami":
            return self.username
        if program == "mktemp":
            return str(self.temp_dir)
        if program == "which":
            return "" if args[0] in self.missing else f"/run/current-system/sw/bin/{args[0]}"
        if program == "gh":
            return self.token
        raise CommandError(program, "unexpected command in test")

    async def run_interactive(self, program: str, *args: str) -> int:
        self.calls.append((program, *args))
        if program in self.failures:
            raise self.failures[program]
        return 0

    async def is_nixos(self) -> bool:
        return self.nixos

    @property
    def programs(self) -> list[str]:
        """Names of the interactive programs run, in order."""
        return [call[0] for call in self.calls]


class FakeProvider:
    """CommitProvider stand-in returning a fixed commit or raising."""

    def __init__(self, commit_id: str = "abc", error: Exception | None = None) -> None:
        self.commit_id = commit_id
        self.error = error
        self.resolved: list[str] = []

    async def resolve(self, flake_ref: FlakeRef) -> str:
        self.resolved.append(str(flake_ref))
        if self.error is not None:
            raise self.error
        return self.commit_id


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the developer's config files and SWITCHER_* variables out of tests."""
    home = tmp_path / "xdg-home"
    system = tmp_path / "xdg-system"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(system))
    for key in list(os.environ):
        if key.startswith("SWITCHER_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return home


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config() -> Callable[..., SwitcherConfig]:
    """Factory fixture: build a SwitcherConfig pointing at github:o/r."""

    def _factory(**overrides: Any) -> SwitcherConfig:
        defaults: dict[str, Any] = {
            "repo": RepoConfig(owner="o", repo="r"),
            "github_token": "test-token",
        }
        defaults.update(overrides)
        return SwitcherConfig(**defaults)

    return _factory


@pytest.fixture
def fake_system() -> FakeSystem:
    return FakeSystem()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def make_system() -> Callable[..., FakeSystem]:
    """Factory fixture: a FakeSystem with overridden canned responses."""
    return FakeSystem


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    """Factory fixture: a FakeProvider returning or raising as requested."""
    return FakeProvider
