"""GitHub commit lookups over the GraphQL API.

One authenticated POST per lookup.  The response is walked field by field
so that a missing ``data``, ``repository``, ``ref`` or ``target`` is
reported under its own name rather than collapsed into a generic failure.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from switcher.core.system import System
from switcher.errors import (
    MissingFieldError,
    NotACommitError,
    ProviderRequestError,
)
from switcher.models.commit import CommitRef

logger = logging.getLogger(__name__)

ENDPOINT = "https://api.github.com/graphql"
USER_AGENT = "switcher/0.1"

TokenSource = Callable[[], Awaitable[str]]

LATEST_COMMIT_QUERY = """
query LatestCommit($owner: String!, $repo: String!, $branch: String!) {
  repository(owner: $owner, name: $repo) {
    ref(qualifiedName: $branch) {
      target {
        __typename
        ... on Commit {
          oid
        }
      }
    }
  }
}
"""

LATEST_COMMIT_DEFAULT_BRANCH_QUERY = """
query LatestCommitDefaultBranch($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    defaultBranchRef {
      target {
        __typename
        ... on Commit {
          oid
        }
      }
    }
  }
}
"""


# ---------------------------------------------------------------------------
# Response shape
# ---------------------------------------------------------------------------


class _Target(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    typename: str | None = Field(default=None, alias="__typename")
    oid: str | None = None


class _Ref(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: _Target | None = None


class _Repository(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ref: _Ref | None = None
    default_branch_ref: _Ref | None = Field(default=None, alias="defaultBranchRef")


class _Data(BaseModel):
    model_config = ConfigDict(frozen=True)

    repository: _Repository | None = None


class _GraphQLError(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    message: str = ""


class GraphQLResponse(BaseModel):
    """Top-level GraphQL envelope for both commit queries."""

    model_config = ConfigDict(frozen=True)

    data: _Data | None = None
    errors: list[_GraphQLError] = []


def extract_commit_id(payload: dict[str, Any], ref_field: str = "ref") -> str:
    """Walk a decoded GraphQL response down to the commit object id.

    *ref_field* is ``"ref"`` for named branches and ``"defaultBranchRef"``
    for the default branch query.

    Raises
    ------
    MissingFieldError
        Naming the first field that is absent along the path.
    NotACommitError
        If the ref target is some other object type (e.g. a ``Tag``).
    ProviderRequestError
        If the payload does not have the GraphQL response shape at all.
    """
    try:
        response = GraphQLResponse.model_validate(payload)
    except ValidationError as exc:
        raise ProviderRequestError(f"unexpected response shape: {exc}") from exc

    errors = "; ".join(e.message for e in response.errors)
    if response.data is None:
        raise MissingFieldError("data", errors)
    if response.data.repository is None:
        raise MissingFieldError("repository", errors)

    repository = response.data.repository
    ref = repository.default_branch_ref if ref_field == "defaultBranchRef" else repository.ref
    if ref is None:
        raise MissingFieldError(ref_field, errors)
    if ref.target is None:
        raise MissingFieldError("target", errors)

    target = ref.target
    if target.typename is None:
        raise MissingFieldError("__typename")
    if target.typename != "Commit":
        raise NotACommitError(target.typename)
    if not target.oid:
        raise MissingFieldError("oid")
    return target.oid


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


def static_token(token: str) -> TokenSource:
    """Wrap an already known token as a ``TokenSource``."""

    async def _token() -> str:
        return token

    return _token


def gh_cli_token(system: System, program: str = "gh") -> TokenSource:
    """Return a ``TokenSource`` that asks ``gh auth token``."""

    async def _token() -> str:
        token = await system.run_captured(program, "auth", "token")
        if not token:
            raise ProviderRequestError(
                f"'{program} auth token' returned no token; run '{program} auth login'"
            )
        return token

    return _token


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GitHubClient:
    """Resolves the tip commit of a branch on GitHub.

    Parameters
    ----------
    token_source:
        Coroutine factory producing a bearer token.
    endpoint:
        GraphQL endpoint URL.
    timeout:
        HTTP timeout in seconds.
    transport:
        Optional ``httpx`` transport; tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        token_source: TokenSource,
        *,
        endpoint: str = ENDPOINT,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_source = token_source
        self._endpoint = endpoint
        self._timeout = timeout
        self._transport = transport

    async def latest_commit(self, commit_ref: CommitRef) -> str:
        """Return the object id of the tip of *commit_ref*'s branch.

        An absent branch resolves the repository's default branch.
        """
        variables: dict[str, str] = {
            "owner": commit_ref.owner,
            "repo": commit_ref.repository,
        }
        if commit_ref.branch is not None:
            query = LATEST_COMMIT_QUERY
            variables["branch"] = commit_ref.branch
            ref_field = "ref"
        else:
            query = LATEST_COMMIT_DEFAULT_BRANCH_QUERY
            ref_field = "defaultBranchRef"

        payload = await self._post(query, variables)
        commit_id = extract_commit_id(payload, ref_field)
        logger.info(
            "resolved %s/%s@%s to %s",
            commit_ref.owner,
            commit_ref.repository,
            commit_ref.branch or "<default>",
            commit_id,
        )
        return commit_id

    async def _post(self, query: str, variables: dict[str, str]) -> dict[str, Any]:
        token = await self._token_source()
        headers = {
            "Authorization": f"bearer {token}",
            "User-Agent": USER_AGENT,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._endpoint,
                    json={"query": query, "variables": variables},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ProviderRequestError(
                f"GitHub answered {exc.response.status_code} for {self._endpoint}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderRequestError(f"querying {self._endpoint} failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderRequestError(f"GitHub returned invalid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise ProviderRequestError(f"unexpected response type {type(payload).__name__}")
        return payload
