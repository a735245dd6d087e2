"""Commit coordinates parsed from a flake reference path."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from switcher.errors import InvalidPathError


class CommitRef(BaseModel):
    """Owner, repository, and optional branch of a hosted repository.

    ``branch=None`` means "resolve the hosting provider's default branch".
    """

    model_config = ConfigDict(frozen=True)

    owner: str
    repository: str
    branch: str | None = None

    @classmethod
    def from_path(cls, path: str) -> CommitRef:
        """Parse ``owner/repo[/branch/parts...]``.

        Raises ``InvalidPathError`` when fewer than two non-empty leading
        segments are present.
        """
        segments = path.strip("/").split("/")
        if len(segments) < 2 or not segments[0] or not segments[1]:
            raise InvalidPathError(
                f"expected '<owner>/<repo>[/<branch>]', got {path!r}"
            )
        owner, repository, *rest = segments
        branch = "/".join(rest) or None
        return cls(owner=owner, repository=repository, branch=branch)
