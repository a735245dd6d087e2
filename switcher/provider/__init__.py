"""Commit providers — resolve "latest commit" per flake reference scheme."""

from __future__ import annotations

import logging

from switcher.core.flake_ref import FlakeRef
from switcher.core.schemes import SourceScheme
from switcher.errors import UnsupportedProviderError
from switcher.models.commit import CommitRef
from switcher.provider.github import GitHubClient

logger = logging.getLogger(__name__)


class CommitProvider:
    """Dispatches commit resolution on the flake reference scheme."""

    def __init__(self, github: GitHubClient) -> None:
        self._github = github

    async def resolve(self, flake_ref: FlakeRef) -> str:
        """Return the commit id the pin of *flake_ref* should reference.

        Raises
        ------
        UnsupportedProviderError
            For schemes without a provider.
        InvalidPathError
            If the path is not ``owner/repo[/branch]``.
        """
        scheme = SourceScheme.for_provider(flake_ref.scheme)
        logger.debug("resolving commit for %s via %s", flake_ref, scheme.value)

        if scheme is SourceScheme.GITHUB:
            return await self._github.latest_commit(CommitRef.from_path(flake_ref.path))

        raise UnsupportedProviderError(scheme.value)


__all__ = ["CommitProvider", "GitHubClient"]
