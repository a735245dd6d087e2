"""Unit tests for the GitHub GraphQL commit lookup and provider dispatch."""

from __future__ import annotations

import json

import httpx
import pytest

from switcher.core.flake_ref import FlakeRef
from switcher.errors import (
    InvalidPathError,
    MissingFieldError,
    NotACommitError,
    ProviderRequestError,
    UnsupportedProviderError,
)
from switcher.models.commit import CommitRef
from switcher.provider import CommitProvider
from switcher.provider.github import (
    GitHubClient,
    extract_commit_id,
    gh_cli_token,
    static_token,
)

OID = "0123456789abcdef0123456789abcdef01234567"


def _response(ref_field: str = "ref", target: dict | None = None) -> dict:
    if target is None:
        target = {"__typename": "Commit", "oid": OID}
    return {"data": {"repository": {ref_field: {"target": target}}}}


def _client(handler, token: str = "tok") -> GitHubClient:
    return GitHubClient(static_token(token), transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Test: response walking
# ---------------------------------------------------------------------------


class TestExtractCommitId:
    def test_named_ref(self):
        assert extract_commit_id(_response()) == OID

    def test_default_branch_ref(self):
        payload = _response("defaultBranchRef")
        assert extract_commit_id(payload, "defaultBranchRef") == OID

    def test_tag_target_is_not_a_commit(self):
        payload = _response(target={"__typename": "Tag"})
        with pytest.raises(NotACommitError) as excinfo:
            extract_commit_id(payload)
        assert excinfo.value.variant == "Tag"

    @pytest.mark.parametrize(
        ("payload", "field"),
        [
            ({}, "data"),
            ({"data": None, "errors": [{"message": "Bad credentials"}]}, "data"),
            ({"data": {}}, "repository"),
            ({"data": {"repository": None}}, "repository"),
            ({"data": {"repository": {}}}, "ref"),
            ({"data": {"repository": {"ref": None}}}, "ref"),
            ({"data": {"repository": {"ref": {}}}}, "target"),
            ({"data": {"repository": {"ref": {"target": {"oid": OID}}}}}, "__typename"),
            ({"data": {"repository": {"ref": {"target": {"__typename": "Commit"}}}}}, "oid"),
        ],
    )
    def test_missing_field_named(self, payload, field):
        with pytest.raises(MissingFieldError) as excinfo:
            extract_commit_id(payload)
        assert excinfo.value.field == field

    def test_missing_default_branch_ref_named(self):
        with pytest.raises(MissingFieldError) as excinfo:
            extract_commit_id(_response("ref"), "defaultBranchRef")
        assert excinfo.value.field == "defaultBranchRef"

    def test_graphql_errors_in_message(self):
        payload = {"data": {"repository": None}, "errors": [{"message": "Could not resolve"}]}
        with pytest.raises(MissingFieldError, match="Could not resolve"):
            extract_commit_id(payload)

    def test_malformed_shape(self):
        with pytest.raises(ProviderRequestError):
            extract_commit_id({"data": {"repository": "nope"}})


# ---------------------------------------------------------------------------
# Test: GitHubClient over a mock transport
# ---------------------------------------------------------------------------


class TestGitHubClient:
    @pytest.mark.asyncio
    async def test_named_branch_query(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_response())

        commit = await _client(handler).latest_commit(CommitRef.from_path("o/r/main"))

        assert commit == OID
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.github.com/graphql"
        assert request.headers["Authorization"] == "bearer tok"
        body = json.loads(request.content)
        assert body["variables"] == {"owner": "o", "repo": "r", "branch": "main"}
        assert "ref(qualifiedName: $branch)" in body["query"]

    @pytest.mark.asyncio
    async def test_default_branch_query(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=_response("defaultBranchRef"))

        commit = await _client(handler).latest_commit(CommitRef.from_path("o/r"))

        assert commit == OID
        assert bodies[0]["variables"] == {"owner": "o", "repo": "r"}
        assert "defaultBranchRef" in bodies[0]["query"]

    @pytest.mark.asyncio
    async def test_not_a_commit_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_response(target={"__typename": "Tree"}))

        with pytest.raises(NotACommitError):
            await _client(handler).latest_commit(CommitRef.from_path("o/r/main"))

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "Bad credentials"})

        with pytest.raises(ProviderRequestError, match="401"):
            await _client(handler).latest_commit(CommitRef.from_path("o/r"))

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>")

        with pytest.raises(ProviderRequestError):
            await _client(handler).latest_commit(CommitRef.from_path("o/r"))

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        with pytest.raises(ProviderRequestError, match="offline"):
            await _client(handler).latest_commit(CommitRef.from_path("o/r"))


# ---------------------------------------------------------------------------
# Test: credentials
# ---------------------------------------------------------------------------


class TestCredentials:
    @pytest.mark.asyncio
    async def test_static_token(self):
        assert await static_token("abc")() == "abc"

    @pytest.mark.asyncio
    async def test_gh_cli_token(self, make_system):
        system = make_system(token="from-gh")
        assert await gh_cli_token(system)() == "from-gh"
        assert system.captured == [("gh", "auth", "token")]

    @pytest.mark.asyncio
    async def test_gh_cli_empty_token(self, make_system):
        with pytest.raises(ProviderRequestError):
            await gh_cli_token(make_system(token=""))()


# ---------------------------------------------------------------------------
# Test: scheme dispatch
# ---------------------------------------------------------------------------


class TestCommitProvider:
    @pytest.mark.asyncio
    async def test_github_dispatch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_response())

        provider = CommitProvider(_client(handler))
        assert await provider.resolve(FlakeRef.parse("github:o/r/main")) == OID

    @pytest.mark.asyncio
    async def test_unsupported_scheme(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = CommitProvider(_client(handler))
        with pytest.raises(UnsupportedProviderError):
            await provider.resolve(FlakeRef.parse("gitlab:o/r"))

    @pytest.mark.asyncio
    async def test_invalid_path(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = CommitProvider(_client(handler))
        with pytest.raises(InvalidPathError):
            await provider.resolve(FlakeRef.parse("github:onlyowner"))
