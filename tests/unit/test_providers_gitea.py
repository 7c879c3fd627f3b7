"""Tests for vcs_toolkit/providers/gitea_rest.py - Gitea REST API provider.

The HTTP pool is replaced by an ``AsyncMock(spec=HTTPConnectionPool)`` whose
``request`` returns real ``httpx.Response`` objects.
"""

import base64
from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from vcs_toolkit.enums import Capability
from vcs_toolkit.exceptions import ProviderAPIError
from vcs_toolkit.models.domain import FileChange
from vcs_toolkit.providers.base import supports
from vcs_toolkit.providers.gitea_rest import GiteaRestProvider, normalize_api_base
from vcs_toolkit.utils.connection_pool import HTTPConnectionPool


def _response(status: int = 200, json=None, method: str = "GET", path: str = "/") -> httpx.Response:
    request = httpx.Request(method, f"https://git.example.com/api/v1{path}")
    if json is None:
        return httpx.Response(status, request=request)
    return httpx.Response(status, json=json, request=request)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_pool() -> AsyncMock:
    return AsyncMock(spec=HTTPConnectionPool)


@pytest.fixture
def provider(mock_pool: AsyncMock) -> GiteaRestProvider:
    provider = GiteaRestProvider(base_url="https://git.example.com/", token=" gitea-token ")
    provider._pool = mock_pool
    return provider


# =============================================================================
# Initialization
# =============================================================================


class TestInit:
    @pytest.mark.parametrize(
        "url",
        [
            "https://git.example.com",
            "https://git.example.com/",
            "https://git.example.com/api",
            "https://git.example.com/api/v1",
            "https://git.example.com/api/v1/",
        ],
    )
    def test_normalize_api_base(self, url):
        assert normalize_api_base(url) == "https://git.example.com/api/v1"

    def test_attributes(self):
        provider = GiteaRestProvider(base_url="https://git.example.com/api/v1", token=" abc\n", name="work")

        assert provider.name == "work"
        assert provider.provider_type == "gitea"
        assert provider.token == "abc"
        assert provider.web_base == "https://git.example.com"

    def test_repository_url(self, provider):
        assert provider.get_repository_url("alice", "demo") == "https://git.example.com/alice/demo.git"

    def test_capabilities(self, provider):
        assert supports(provider, Capability.COMPARE_COMMITS)
        assert supports(provider, Capability.SEARCH_ISSUES)
        assert not supports(provider, Capability.LIST_WORKFLOW_RUNS)
        assert not supports(provider, Capability.CREATE_DEPLOYMENT)
        assert not supports(provider, Capability.RUN_SECURITY_SCAN)
        assert not supports(provider, Capability.SEARCH_COMMITS)

    @pytest.mark.asyncio
    async def test_pool_created_with_token_header(self):
        provider = GiteaRestProvider(base_url="https://git.example.com", token="abc")

        with patch.object(HTTPConnectionPool, "initialize", new=AsyncMock()) as mock_initialize:
            pool = await provider._get_pool()
            assert await provider._get_pool() is pool

        mock_initialize.assert_awaited_once()
        assert pool.base_url == "https://git.example.com/api/v1"
        assert pool.headers["Authorization"] == "token abc"

    @pytest.mark.asyncio
    async def test_providers_with_same_name_get_separate_pools(self):
        old = GiteaRestProvider(base_url="https://git.example.com", token="old")
        new = GiteaRestProvider(base_url="https://git.example.com", token="new")

        with patch.object(HTTPConnectionPool, "initialize", new=AsyncMock()):
            old_pool = await old._get_pool()
            new_pool = await new._get_pool()

        assert old_pool is not new_pool
        assert new_pool.headers["Authorization"] == "token new"

    @pytest.mark.asyncio
    async def test_close_releases_pool(self, provider, mock_pool):
        await provider.close()

        mock_pool.close.assert_awaited_once()
        assert provider._pool is None

    @pytest.mark.asyncio
    async def test_close_without_pool(self):
        provider = GiteaRestProvider(base_url="https://git.example.com", token="abc")

        await provider.close()

        assert provider._pool is None


# =============================================================================
# Error handling
# =============================================================================


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_uses_backend_message(self, provider, mock_pool):
        mock_pool.request.return_value = _response(404, {"message": "repo not found"})

        with pytest.raises(ProviderAPIError) as exc_info:
            await provider.get_repository("alice", "missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.provider == "gitea"
        assert str(exc_info.value) == "gitea: repo not found (HTTP 404)"

    @pytest.mark.asyncio
    async def test_http_error_without_json_body(self, provider, mock_pool):
        request = httpx.Request("GET", "https://git.example.com/api/v1/user")
        mock_pool.request.return_value = httpx.Response(500, text="upstream exploded", request=request)

        with pytest.raises(ProviderAPIError, match="upstream exploded"):
            await provider.get_current_user()

    @pytest.mark.asyncio
    async def test_no_content_returns_none(self, provider, mock_pool):
        mock_pool.request.return_value = _response(204)

        assert await provider.delete_repository("alice", "demo") is None
        mock_pool.request.assert_awaited_once_with("DELETE", "/repos/alice/demo")


# =============================================================================
# Users and repositories
# =============================================================================


class TestUsersAndRepositories:
    @pytest.mark.asyncio
    async def test_get_current_user(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, {"login": "alice", "id": 1, "full_name": "Alice"})

        user = await provider.get_current_user()

        assert user.login == "alice"
        assert user.name == "Alice"
        mock_pool.request.assert_awaited_once_with("GET", "/user")

    @pytest.mark.asyncio
    async def test_search_users_unwraps_data(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, {"ok": True, "data": [{"login": "bob"}]})

        assert await provider.search_users("bo") == [{"login": "bob"}]
        mock_pool.request.assert_awaited_once_with(
            "GET", "/users/search", params={"page": 1, "limit": 30, "q": "bo"}
        )

    @pytest.mark.asyncio
    async def test_create_repository(self, provider, mock_pool):
        mock_pool.request.return_value = _response(201, {"name": "demo"})

        await provider.create_repository("demo", description="Demo", private=True)

        mock_pool.request.assert_awaited_once_with(
            "POST",
            "/user/repos",
            json={"name": "demo", "private": True, "auto_init": False, "description": "Demo"},
        )

    @pytest.mark.asyncio
    async def test_list_repositories_of_user(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, [])

        await provider.list_repositories("bob", page=2, limit=10)

        mock_pool.request.assert_awaited_once_with("GET", "/users/bob/repos", params={"page": 2, "limit": 10})

    @pytest.mark.asyncio
    async def test_fork_into_organization(self, provider, mock_pool):
        mock_pool.request.return_value = _response(202, {"full_name": "acme/demo"})

        await provider.fork_repository("alice", "demo", organization="acme")

        mock_pool.request.assert_awaited_once_with("POST", "/repos/alice/demo/forks", json={"organization": "acme"})


# =============================================================================
# Branches, commits and files
# =============================================================================


class TestBranchesAndCommits:
    @pytest.mark.asyncio
    async def test_create_branch(self, provider, mock_pool):
        mock_pool.request.return_value = _response(201, {"name": "feature"})

        await provider.create_branch("alice", "demo", "feature", "main")

        mock_pool.request.assert_awaited_once_with(
            "POST",
            "/repos/alice/demo/branches",
            json={"new_branch_name": "feature", "old_branch_name": "main"},
        )

    @pytest.mark.asyncio
    async def test_list_commits_with_branch(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, [])

        await provider.list_commits("alice", "demo", branch="dev")

        mock_pool.request.assert_awaited_once_with(
            "GET", "/repos/alice/demo/commits", params={"page": 1, "limit": 30, "sha": "dev"}
        )

    @pytest.mark.asyncio
    async def test_create_commit_multi_file(self, provider, mock_pool):
        mock_pool.request.side_effect = [
            _response(200, {"sha": "blob-old", "type": "file"}),
            _response(201, {"commit": {"sha": "c0ffee"}, "files": []}),
        ]
        changes = [
            FileChange(path="new.txt", content="hello", operation="create"),
            FileChange(path="README.md", content="updated"),
            FileChange(path="old.txt", operation="delete", sha="blob-del"),
        ]

        result = await provider.create_commit("alice", "demo", "Batch change", "main", changes)

        assert result == {"sha": "c0ffee"}
        lookup, commit = mock_pool.request.await_args_list
        assert lookup == call("GET", "/repos/alice/demo/contents/README.md", params={"ref": "main"})
        body = commit.kwargs["json"]
        assert body["branch"] == "main"
        assert body["message"] == "Batch change"
        assert body["files"] == [
            {"operation": "create", "path": "new.txt", "content": base64.b64encode(b"hello").decode()},
            {
                "operation": "update",
                "path": "README.md",
                "content": base64.b64encode(b"updated").decode(),
                "sha": "blob-old",
            },
            {"operation": "delete", "path": "old.txt", "sha": "blob-del"},
        ]

    @pytest.mark.asyncio
    async def test_compare_commits(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, {"total_commits": 2})

        result = await provider.compare_commits("alice", "demo", "main", "feature")

        assert result["total_commits"] == 2
        mock_pool.request.assert_awaited_once_with("GET", "/repos/alice/demo/compare/main...feature")


class TestFiles:
    @pytest.mark.asyncio
    async def test_create_file_encodes_content(self, provider, mock_pool):
        mock_pool.request.return_value = _response(201, {"content": {"path": "a.txt"}})

        await provider.create_file("alice", "demo", "a.txt", "héllo", "Add a", branch="dev")

        mock_pool.request.assert_awaited_once_with(
            "POST",
            "/repos/alice/demo/contents/a.txt",
            json={"content": base64.b64encode("héllo".encode()).decode(), "message": "Add a", "branch": "dev"},
        )

    @pytest.mark.asyncio
    async def test_delete_file_sends_body(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, {"commit": {}})

        await provider.delete_file("alice", "demo", "a.txt", "Remove a", "abc123")

        mock_pool.request.assert_awaited_once_with(
            "DELETE",
            "/repos/alice/demo/contents/a.txt",
            json={"message": "Remove a", "sha": "abc123"},
        )

    @pytest.mark.asyncio
    async def test_list_files_wraps_single_entry(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, {"name": "a.txt", "type": "file"})

        assert await provider.list_files("alice", "demo", "a.txt") == [{"name": "a.txt", "type": "file"}]

    @pytest.mark.asyncio
    async def test_list_root(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, [{"name": "src"}])

        await provider.list_files("alice", "demo")

        mock_pool.request.assert_awaited_once_with("GET", "/repos/alice/demo/contents", params=None)


# =============================================================================
# Issues and pull requests
# =============================================================================


class TestIssuesAndPulls:
    @pytest.mark.asyncio
    async def test_create_issue_creates_missing_labels(self, provider, mock_pool):
        mock_pool.request.side_effect = [
            _response(200, [{"id": 1, "name": "bug"}]),
            _response(201, {"id": 9, "name": "urgent"}),
            _response(201, {"number": 5}),
        ]

        result = await provider.create_issue("alice", "demo", "Crash", body="Boom", labels=["bug", "urgent"])

        assert result == {"number": 5}
        create_call = mock_pool.request.await_args_list[-1]
        assert create_call.kwargs["json"] == {"title": "Crash", "body": "Boom", "labels": [1, 9]}

    @pytest.mark.asyncio
    async def test_search_issues_pull_kind(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, [])

        await provider.search_issues("alice", "demo", "fix", kind="pr", state="open")

        mock_pool.request.assert_awaited_once_with(
            "GET",
            "/repos/alice/demo/issues",
            params={"page": 1, "limit": 30, "q": "fix", "type": "pulls", "state": "open"},
        )

    @pytest.mark.asyncio
    async def test_draft_pull_request_gets_wip_prefix(self, provider, mock_pool):
        mock_pool.request.return_value = _response(201, {"number": 3})

        await provider.create_pull_request("alice", "demo", "New feature", "feature", "main", draft=True)

        body = mock_pool.request.call_args.kwargs["json"]
        assert body["title"] == "WIP: New feature"

    @pytest.mark.asyncio
    async def test_merge_pull_request(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200)

        result = await provider.merge_pull_request("alice", "demo", 3, merge_method="squash", title="Squashed")

        assert result == {"merged": True, "number": 3, "merge_method": "squash"}
        mock_pool.request.assert_awaited_once_with(
            "POST",
            "/repos/alice/demo/pulls/3/merge",
            json={"Do": "squash", "MergeTitleField": "Squashed"},
        )


# =============================================================================
# Webhooks
# =============================================================================


class TestWebhooks:
    @pytest.mark.asyncio
    async def test_create_webhook(self, provider, mock_pool):
        mock_pool.request.return_value = _response(201, {"id": 4})

        await provider.create_webhook("alice", "demo", "https://ci.example.com/hook", secret="s3")

        mock_pool.request.assert_awaited_once_with(
            "POST",
            "/repos/alice/demo/hooks",
            json={
                "type": "gitea",
                "config": {"url": "https://ci.example.com/hook", "content_type": "json", "secret": "s3"},
                "events": ["push"],
                "active": True,
            },
        )

    @pytest.mark.asyncio
    async def test_update_webhook_splits_config(self, provider, mock_pool):
        mock_pool.request.return_value = _response(200, {"id": 4})

        await provider.update_webhook("alice", "demo", 4, {"url": "https://new", "active": False})

        mock_pool.request.assert_awaited_once_with(
            "PATCH",
            "/repos/alice/demo/hooks/4",
            json={"config": {"url": "https://new"}, "active": False},
        )


# =============================================================================
# Project upload
# =============================================================================


class TestUploadProject:
    @pytest.mark.asyncio
    async def test_uploads_text_files_and_skips_ignored(self, provider, tmp_path):
        (tmp_path / "main.py").write_text("print('hi')\n")
        (tmp_path / "app.log").write_text("noise")
        (tmp_path / ".env").write_text("SECRET=1")
        (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x00")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "dep.js").write_text("x")
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "lib.py").write_text("x = 1\n")

        provider.get_file = AsyncMock(
            side_effect=[
                ProviderAPIError("Not Found", provider="gitea", status_code=404),
                {"sha": "old-sha"},
            ]
        )
        provider.create_file = AsyncMock(return_value={})
        provider.update_file = AsyncMock(return_value={})

        result = await provider.upload_project("alice", "demo", tmp_path, "Upload")

        assert result.uploaded == 2
        assert result.errors == []
        provider.create_file.assert_awaited_once_with("alice", "demo", "main.py", "print('hi')\n", "Upload", None)
        provider.update_file.assert_awaited_once_with("alice", "demo", "src/lib.py", "x = 1\n", "Upload", "old-sha", None)

    @pytest.mark.asyncio
    async def test_collects_per_file_errors(self, provider, tmp_path):
        (tmp_path / "a.txt").write_text("a")
        provider.get_file = AsyncMock(side_effect=ProviderAPIError("Not Found", provider="gitea", status_code=404))
        provider.create_file = AsyncMock(side_effect=ProviderAPIError("Forbidden", provider="gitea", status_code=403))

        result = await provider.upload_project("alice", "demo", tmp_path, "Upload")

        assert result.uploaded == 0
        assert result.errors == ["a.txt: gitea: Forbidden (HTTP 403)"]

    @pytest.mark.asyncio
    async def test_rejects_missing_directory(self, provider, tmp_path):
        with pytest.raises(NotADirectoryError):
            await provider.upload_project("alice", "demo", tmp_path / "missing", "Upload")
