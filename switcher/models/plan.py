"""Build plan models — turning resolved facts into buildable references."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from switcher.core.flake_ref import FlakeRef


class BuildableKind(str, Enum):
    USER = "user"
    SYSTEM = "system"


class Buildable(BaseModel):
    """One fully qualified build output."""

    model_config = ConfigDict(frozen=True)

    kind: BuildableKind
    name: str
    flake: str


def user_fragment(user: str, host: str) -> str:
    return f"homeConfigurations.{user}@{host}.activationPackage"


def system_fragment(host: str) -> str:
    return f"nixosConfigurations.{host}.config.system.build.toplevel"


class BuildPlan(BaseModel):
    """Everything the execute phase needs, assembled once per invocation.

    ``base`` is already pinned to a commit and carries no fragment.  Every
    derived reference is built from a clone of it.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base: FlakeRef
    host: str
    users: list[str] = []
    activate_system: bool = True
    activate_user: bool = True
    is_nixos: bool = False

    @property
    def includes_system(self) -> bool:
        """Whether the system toplevel is built and switched."""
        return self.activate_system and self.is_nixos

    @property
    def includes_users(self) -> bool:
        return self.activate_user and bool(self.users)

    def _with_fragment(self, fragment: str) -> str:
        flake_ref = self.base.clone()
        flake_ref.set_fragment(fragment)
        return str(flake_ref)

    def buildables(self) -> list[Buildable]:
        """Return user activation packages first, then the system toplevel."""
        result: list[Buildable] = []
        if self.includes_users:
            for user in self.users:
                result.append(
                    Buildable(
                        kind=BuildableKind.USER,
                        name=user,
                        flake=self._with_fragment(user_fragment(user, self.host)),
                    )
                )
        if self.includes_system:
            result.append(
                Buildable(
                    kind=BuildableKind.SYSTEM,
                    name=self.host,
                    flake=self._with_fragment(system_fragment(self.host)),
                )
            )
        return result

    def system_switch_target(self) -> str:
        """Argument for ``nixos-rebuild switch --flake``: ``<pinned>#<host>``."""
        return self._with_fragment(self.host)

    def user_switch_target(self, user: str) -> str:
        """Argument for ``home-manager switch --flake``: ``<pinned>#<user>@<host>``."""
        return self._with_fragment(f"{user}@{self.host}")
