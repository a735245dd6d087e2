"""Layered configuration — files, environment, CLI overrides.

Settings are read by pydantic-settings from, highest priority first:

1. keyword overrides (the CLI passes its options this way),
2. ``SWITCHER_*`` environment variables (nested with ``__``,
   e.g. ``SWITCHER_REPO__OWNER``),
3. a ``.env`` file in the working directory,
4. ``config.{json,yml,yaml,toml}`` in ``$XDG_CONFIG_HOME/switcher``,
5. the same files in each ``$XDG_CONFIG_DIRS`` entry's ``switcher`` folder,
6. the defaults below.

Examples
--------
Override via environment::

    export SWITCHER_REPO__OWNER=nobbz
    export SWITCHER_REPO__BRANCH=main
    export SWITCHER_LOG_LEVEL=DEBUG

Or via ``~/.config/switcher/config.toml``::

    users = ["alice"]

    [repo]
    owner = "nobbz"
    repo = "nixos-config"
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, SecretStr
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
    YamlConfigSettingsSource,
)

APP_NAME = "switcher"

LogFormat = Literal["compact", "pretty", "json"]


class RepoConfig(BaseModel):
    """Where the system configuration flake lives."""

    model_config = ConfigDict(frozen=True)

    owner: str = ""
    repo: str = "nixos-config"
    branch: str | None = None


def config_dirs() -> list[Path]:
    """Return candidate configuration folders, most specific first."""
    home_config = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    system_configs = os.environ.get("XDG_CONFIG_DIRS") or "/etc/xdg"

    dirs = [Path(home_config) / APP_NAME]
    dirs.extend(Path(d) / APP_NAME for d in system_configs.split(os.pathsep) if d)
    return dirs


class SwitcherConfig(BaseSettings):
    """Runtime configuration for a switcher invocation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SWITCHER_",
        env_nested_delimiter="__",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    repo: RepoConfig = RepoConfig()

    # Explicit flake reference; derived from ``repo`` when unset
    flake: str | None = None

    # Build targets
    host: str | None = None
    users: list[str] = []

    # Activators
    activate_system: bool = True
    activate_user: bool = True

    # External tools
    build_tool: str = "nom"
    system_switch_tool: str = "nixos-rebuild"
    user_switch_tool: str = "home-manager"
    credential_tool: str = "gh"

    # GitHub
    github_token: SecretStr | None = None
    github_endpoint: str = "https://api.github.com/graphql"
    http_timeout: float = 30.0

    # Keep the temporary build directory when a step fails
    keep_temp_on_failure: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: LogFormat = "compact"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        file_sources: list[PydanticBaseSettingsSource] = []
        for folder in config_dirs():
            file_sources.extend([
                JsonConfigSettingsSource(settings_cls, json_file=folder / "config.json"),
                YamlConfigSettingsSource(settings_cls, yaml_file=folder / "config.yml"),
                YamlConfigSettingsSource(settings_cls, yaml_file=folder / "config.yaml"),
                TomlConfigSettingsSource(settings_cls, toml_file=folder / "config.toml"),
            ])
        return (init_settings, env_settings, dotenv_settings, *file_sources)

    def repo_flake(self) -> str:
        """Return the base flake reference string (without pin or fragment)."""
        if self.flake:
            return self.flake
        parts = [self.repo.owner, self.repo.repo]
        if self.repo.branch:
            parts.append(self.repo.branch)
        return "github:" + "/".join(parts)


def load_config(**overrides: object) -> SwitcherConfig:
    """Build a ``SwitcherConfig``, dropping overrides that are ``None``."""
    return SwitcherConfig(**{k: v for k, v in overrides.items() if v is not None})
