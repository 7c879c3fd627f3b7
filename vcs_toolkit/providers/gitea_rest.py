"""Gitea provider implementation using direct REST API calls."""

import base64
from typing import Any

import structlog

from vcs_toolkit.enums import FileOperation, ProviderName
from vcs_toolkit.models.domain import CurrentUser, FileChange
from vcs_toolkit.providers.base import VcsOperations, check_response, response_body
from vcs_toolkit.utils.connection_pool import HTTPConnectionPool

log = structlog.get_logger(__name__)


def normalize_api_base(base_url: str) -> str:
    """Return the ``/api/v1`` root for a Gitea URL.

    ``https://git.example.com``, ``https://git.example.com/api`` and
    ``https://git.example.com/api/v1`` all map to the latter.
    """
    url = base_url.strip().rstrip("/")
    if url.endswith("/api/v1"):
        return url
    if url.endswith("/api"):
        return f"{url}/v1"
    return f"{url}/api/v1"


def _encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class GiteaRestProvider(VcsOperations):
    """Gitea implementation using direct REST API calls.

    Implements every required operation plus the ``compare_commits`` and
    ``search_issues`` capabilities. Gitea has no Actions, deployment or
    security-scanning API, so those capabilities are absent.
    """

    provider_type = ProviderName.GITEA.value

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        name: str = ProviderName.GITEA.value,
    ):
        """Initialize Gitea provider.

        Args:
            base_url: Gitea URL, with or without the ``/api/v1`` suffix
            token: API token
            timeout: HTTP timeout in seconds
            name: Registry name, used in logs and errors
        """
        self.name = name
        self.api_base = normalize_api_base(base_url)
        self.web_base = self.api_base[: -len("/api/v1")]
        self.token = token.strip() if token else token
        self.timeout = timeout
        self._pool: HTTPConnectionPool | None = None

    async def _get_pool(self) -> HTTPConnectionPool:
        if self._pool is None:
            pool = HTTPConnectionPool(
                base_url=self.api_base,
                timeout=self.timeout,
                headers={
                    "Authorization": f"token {self.token}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
            await pool.initialize()
            self._pool = pool
        return self._pool

    async def close(self) -> None:
        """Close the HTTP pool of this provider."""
        if self._pool is not None:
            pool, self._pool = self._pool, None
            await pool.close()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        pool = await self._get_pool()
        response = await pool.request(method, path, **kwargs)
        check_response(response, self.name)
        return response_body(response)

    @staticmethod
    def _paging(page: int, limit: int, **extra: Any) -> dict[str, Any]:
        params = {"page": page, "limit": limit}
        params.update({key: value for key, value in extra.items() if value is not None})
        return params

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def get_current_user(self) -> CurrentUser:
        """Get the authenticated user."""
        log.info("get_current_user", provider=self.name)
        return CurrentUser.from_payload(await self._request("GET", "/user"))

    async def get_user(self, username: str) -> dict[str, Any]:
        log.info("get_user", username=username)
        return await self._request("GET", f"/users/{username}")

    async def search_users(self, query: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("search_users", query=query)
        result = await self._request("GET", "/users/search", params=self._paging(page, limit, q=query))
        return result.get("data", []) if isinstance(result, dict) else result

    async def list_user_organizations(self, username: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_user_organizations", username=username)
        return await self._request("GET", f"/users/{username}/orgs", params=self._paging(page, limit))

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------

    async def create_repository(
        self,
        name: str,
        description: str | None = None,
        private: bool = False,
        auto_init: bool = False,
    ) -> dict[str, Any]:
        log.info("create_repository", name=name, private=private)
        data: dict[str, Any] = {"name": name, "private": private, "auto_init": auto_init}
        if description is not None:
            data["description"] = description
        return await self._request("POST", "/user/repos", json=data)

    async def list_repositories(
        self,
        username: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        log.info("list_repositories", username=username)
        path = f"/users/{username}/repos" if username else "/user/repos"
        return await self._request("GET", path, params=self._paging(page, limit))

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        log.info("get_repository", owner=owner, repo=repo)
        return await self._request("GET", f"/repos/{owner}/{repo}")

    async def update_repository(self, owner: str, repo: str, updates: dict[str, Any]) -> dict[str, Any]:
        log.info("update_repository", owner=owner, repo=repo, fields=sorted(updates))
        return await self._request("PATCH", f"/repos/{owner}/{repo}", json=updates)

    async def delete_repository(self, owner: str, repo: str) -> None:
        log.info("delete_repository", owner=owner, repo=repo)
        await self._request("DELETE", f"/repos/{owner}/{repo}")

    async def fork_repository(self, owner: str, repo: str, organization: str | None = None) -> dict[str, Any]:
        log.info("fork_repository", owner=owner, repo=repo, organization=organization)
        data = {"organization": organization} if organization else {}
        return await self._request("POST", f"/repos/{owner}/{repo}/forks", json=data)

    async def search_repositories(self, query: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("search_repositories", query=query)
        result = await self._request("GET", "/repos/search", params=self._paging(page, limit, q=query))
        return result.get("data", []) if isinstance(result, dict) else result

    def get_repository_url(self, owner: str, repo: str) -> str:
        return f"{self.web_base}/{owner}/{repo}.git"

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    async def create_branch(self, owner: str, repo: str, name: str, from_branch: str) -> dict[str, Any]:
        log.info("create_branch", owner=owner, repo=repo, branch=name, from_branch=from_branch)
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/branches",
            json={"new_branch_name": name, "old_branch_name": from_branch},
        )

    async def list_branches(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_branches", owner=owner, repo=repo)
        return await self._request("GET", f"/repos/{owner}/{repo}/branches", params=self._paging(page, limit))

    async def get_branch(self, owner: str, repo: str, name: str) -> dict[str, Any]:
        log.info("get_branch", owner=owner, repo=repo, branch=name)
        return await self._request("GET", f"/repos/{owner}/{repo}/branches/{name}")

    async def delete_branch(self, owner: str, repo: str, name: str) -> None:
        log.info("delete_branch", owner=owner, repo=repo, branch=name)
        await self._request("DELETE", f"/repos/{owner}/{repo}/branches/{name}")

    # -------------------------------------------------------------------------
    # Commits
    # -------------------------------------------------------------------------

    async def list_commits(
        self,
        owner: str,
        repo: str,
        branch: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        log.info("list_commits", owner=owner, repo=repo, branch=branch)
        return await self._request(
            "GET",
            f"/repos/{owner}/{repo}/commits",
            params=self._paging(page, limit, sha=branch),
        )

    async def get_commit(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        log.info("get_commit", owner=owner, repo=repo, sha=sha)
        return await self._request("GET", f"/repos/{owner}/{repo}/git/commits/{sha}")

    async def create_commit(
        self,
        owner: str,
        repo: str,
        message: str,
        branch: str,
        changes: list[FileChange],
    ) -> dict[str, Any]:
        """Create one commit through the multi-file contents endpoint.

        Updates and deletes without a known SHA look the current blob up first.
        """
        log.info("create_commit", owner=owner, repo=repo, branch=branch, files=len(changes))

        files: list[dict[str, Any]] = []
        for change in changes:
            entry: dict[str, Any] = {"operation": change.operation.value, "path": change.path}
            if change.content is not None and change.operation != FileOperation.DELETE:
                entry["content"] = _encode(change.content)
            sha = change.sha
            if sha is None and change.operation != FileOperation.CREATE:
                sha = (await self.get_file(owner, repo, change.path, ref=branch)).get("sha")
            if sha:
                entry["sha"] = sha
            files.append(entry)

        result = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/contents",
            json={"branch": branch, "message": message, "files": files},
        )
        return result.get("commit", result) if isinstance(result, dict) else result

    async def compare_commits(self, owner: str, repo: str, base: str, head: str) -> dict[str, Any]:
        """Compare two refs (``base...head``)."""
        log.info("compare_commits", owner=owner, repo=repo, base=base, head=head)
        return await self._request("GET", f"/repos/{owner}/{repo}/compare/{base}...{head}")

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    async def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str | None = None,
        labels: list[str] | None = None,
        assignees: list[str] | None = None,
    ) -> dict[str, Any]:
        log.info("create_issue", owner=owner, repo=repo, title=title)

        data: dict[str, Any] = {"title": title, "body": body or ""}
        if assignees:
            data["assignees"] = assignees
        if labels:
            data["labels"] = await self._get_or_create_label_ids(owner, repo, labels)

        return await self._request("POST", f"/repos/{owner}/{repo}/issues", json=data)

    async def list_issues(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        log.info("list_issues", owner=owner, repo=repo, state=state)
        return await self._request(
            "GET",
            f"/repos/{owner}/{repo}/issues",
            params=self._paging(page, limit, state=state, type="issues"),
        )

    async def get_issue(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        log.info("get_issue", owner=owner, repo=repo, number=number)
        return await self._request("GET", f"/repos/{owner}/{repo}/issues/{number}")

    async def update_issue(self, owner: str, repo: str, number: int, updates: dict[str, Any]) -> dict[str, Any]:
        log.info("update_issue", owner=owner, repo=repo, number=number, fields=sorted(updates))

        fields = dict(updates)
        # Gitea replaces labels through a dedicated endpoint taking IDs
        labels = fields.pop("labels", None)
        if labels is not None:
            label_ids = await self._get_or_create_label_ids(owner, repo, labels)
            await self._request(
                "PUT",
                f"/repos/{owner}/{repo}/issues/{number}/labels",
                json={"labels": label_ids},
            )

        if fields:
            return await self._request("PATCH", f"/repos/{owner}/{repo}/issues/{number}", json=fields)
        return await self.get_issue(owner, repo, number)

    async def add_comment(self, owner: str, repo: str, number: int, body: str) -> dict[str, Any]:
        log.info("add_comment", owner=owner, repo=repo, number=number)
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{number}/comments",
            json={"body": body},
        )

    async def search_issues(
        self,
        owner: str,
        repo: str,
        query: str,
        kind: str = "issue",
        state: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """Search issues (``kind="issue"``) or pull requests (``kind="pr"``) of a repository."""
        log.info("search_issues", owner=owner, repo=repo, query=query, kind=kind)
        issue_type = "pulls" if kind == "pr" else "issues"
        return await self._request(
            "GET",
            f"/repos/{owner}/{repo}/issues",
            params=self._paging(page, limit, q=query, type=issue_type, state=state),
        )

    async def _get_or_create_label_ids(self, owner: str, repo: str, label_names: list[str]) -> list[int]:
        """Resolve label names to IDs, creating missing labels.

        Gitea requires label IDs (not names) when creating or updating
        issues. Auto-created labels get a neutral gray color.
        """
        labels_path = f"/repos/{owner}/{repo}/labels"
        existing = await self._request("GET", labels_path, params={"limit": 100})
        label_map = {label["name"]: label["id"] for label in existing or []}

        label_ids = []
        for name in label_names:
            if name not in label_map:
                log.info("creating_label", name=name)
                created = await self._request("POST", labels_path, json={"name": name, "color": "#ededed"})
                label_map[name] = created["id"]
            label_ids.append(label_map[name])

        return label_ids

    # -------------------------------------------------------------------------
    # Pull requests
    # -------------------------------------------------------------------------

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        head: str,
        base: str,
        body: str | None = None,
        draft: bool = False,
    ) -> dict[str, Any]:
        log.info("create_pull_request", owner=owner, repo=repo, head=head, base=base, draft=draft)
        # Gitea marks drafts by title prefix
        if draft and not title.startswith("WIP:"):
            title = f"WIP: {title}"
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls",
            json={"title": title, "head": head, "base": base, "body": body or ""},
        )

    async def list_pull_requests(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        log.info("list_pull_requests", owner=owner, repo=repo, state=state)
        return await self._request(
            "GET",
            f"/repos/{owner}/{repo}/pulls",
            params=self._paging(page, limit, state=state),
        )

    async def get_pull_request(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        log.info("get_pull_request", owner=owner, repo=repo, number=number)
        return await self._request("GET", f"/repos/{owner}/{repo}/pulls/{number}")

    async def update_pull_request(self, owner: str, repo: str, number: int, updates: dict[str, Any]) -> dict[str, Any]:
        log.info("update_pull_request", owner=owner, repo=repo, number=number, fields=sorted(updates))
        return await self._request("PATCH", f"/repos/{owner}/{repo}/pulls/{number}", json=updates)

    async def merge_pull_request(
        self,
        owner: str,
        repo: str,
        number: int,
        merge_method: str = "merge",
        title: str | None = None,
        message: str | None = None,
    ) -> dict[str, Any]:
        log.info("merge_pull_request", owner=owner, repo=repo, number=number, merge_method=merge_method)
        data: dict[str, Any] = {"Do": merge_method}
        if title:
            data["MergeTitleField"] = title
        if message:
            data["MergeMessageField"] = message
        await self._request("POST", f"/repos/{owner}/{repo}/pulls/{number}/merge", json=data)
        return {"merged": True, "number": number, "merge_method": merge_method}

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    async def create_tag(
        self,
        owner: str,
        repo: str,
        tag_name: str,
        target: str,
        message: str | None = None,
    ) -> dict[str, Any]:
        log.info("create_tag", owner=owner, repo=repo, tag=tag_name, target=target)
        data: dict[str, Any] = {"tag_name": tag_name, "target": target}
        if message:
            data["message"] = message
        return await self._request("POST", f"/repos/{owner}/{repo}/tags", json=data)

    async def list_tags(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_tags", owner=owner, repo=repo)
        return await self._request("GET", f"/repos/{owner}/{repo}/tags", params=self._paging(page, limit))

    async def delete_tag(self, owner: str, repo: str, tag_name: str) -> None:
        log.info("delete_tag", owner=owner, repo=repo, tag=tag_name)
        await self._request("DELETE", f"/repos/{owner}/{repo}/tags/{tag_name}")

    # -------------------------------------------------------------------------
    # Releases
    # -------------------------------------------------------------------------

    async def create_release(
        self,
        owner: str,
        repo: str,
        tag_name: str,
        name: str | None = None,
        body: str | None = None,
        draft: bool = False,
        prerelease: bool = False,
        target: str | None = None,
    ) -> dict[str, Any]:
        log.info("create_release", owner=owner, repo=repo, tag=tag_name)
        data: dict[str, Any] = {
            "tag_name": tag_name,
            "name": name or tag_name,
            "body": body or "",
            "draft": draft,
            "prerelease": prerelease,
        }
        if target:
            data["target_commitish"] = target
        return await self._request("POST", f"/repos/{owner}/{repo}/releases", json=data)

    async def list_releases(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_releases", owner=owner, repo=repo)
        return await self._request("GET", f"/repos/{owner}/{repo}/releases", params=self._paging(page, limit))

    async def get_release(self, owner: str, repo: str, release_id: int) -> dict[str, Any]:
        log.info("get_release", owner=owner, repo=repo, release_id=release_id)
        return await self._request("GET", f"/repos/{owner}/{repo}/releases/{release_id}")

    async def update_release(
        self,
        owner: str,
        repo: str,
        release_id: int,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        log.info("update_release", owner=owner, repo=repo, release_id=release_id, fields=sorted(updates))
        return await self._request("PATCH", f"/repos/{owner}/{repo}/releases/{release_id}", json=updates)

    async def delete_release(self, owner: str, repo: str, release_id: int) -> None:
        log.info("delete_release", owner=owner, repo=repo, release_id=release_id)
        await self._request("DELETE", f"/repos/{owner}/{repo}/releases/{release_id}")

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    async def create_webhook(
        self,
        owner: str,
        repo: str,
        url: str,
        events: list[str] | None = None,
        secret: str | None = None,
        content_type: str = "json",
        active: bool = True,
    ) -> dict[str, Any]:
        log.info("create_webhook", owner=owner, repo=repo, url=url, events=events)
        config = {"url": url, "content_type": content_type}
        if secret:
            config["secret"] = secret
        return await self._request(
            "POST",
            f"/repos/{owner}/{repo}/hooks",
            json={"type": "gitea", "config": config, "events": events or ["push"], "active": active},
        )

    async def list_webhooks(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_webhooks", owner=owner, repo=repo)
        return await self._request("GET", f"/repos/{owner}/{repo}/hooks", params=self._paging(page, limit))

    async def get_webhook(self, owner: str, repo: str, webhook_id: int) -> dict[str, Any]:
        log.info("get_webhook", owner=owner, repo=repo, webhook_id=webhook_id)
        return await self._request("GET", f"/repos/{owner}/{repo}/hooks/{webhook_id}")

    async def update_webhook(
        self,
        owner: str,
        repo: str,
        webhook_id: int,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        log.info("update_webhook", owner=owner, repo=repo, webhook_id=webhook_id, fields=sorted(updates))
        data: dict[str, Any] = {}
        config = {key: updates[key] for key in ("url", "content_type", "secret") if updates.get(key) is not None}
        if config:
            data["config"] = config
        for key in ("events", "active"):
            if updates.get(key) is not None:
                data[key] = updates[key]
        return await self._request("PATCH", f"/repos/{owner}/{repo}/hooks/{webhook_id}", json=data)

    async def delete_webhook(self, owner: str, repo: str, webhook_id: int) -> None:
        log.info("delete_webhook", owner=owner, repo=repo, webhook_id=webhook_id)
        await self._request("DELETE", f"/repos/{owner}/{repo}/hooks/{webhook_id}")

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    async def get_file(self, owner: str, repo: str, path: str, ref: str | None = None) -> dict[str, Any]:
        log.info("get_file", owner=owner, repo=repo, path=path, ref=ref)
        params = {"ref": ref} if ref else None
        return await self._request("GET", f"/repos/{owner}/{repo}/contents/{path}", params=params)

    async def create_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        log.info("create_file", owner=owner, repo=repo, path=path, branch=branch)
        data: dict[str, Any] = {"content": _encode(content), "message": message}
        if branch:
            data["branch"] = branch
        return await self._request("POST", f"/repos/{owner}/{repo}/contents/{path}", json=data)

    async def update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        sha: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        log.info("update_file", owner=owner, repo=repo, path=path, branch=branch)
        data: dict[str, Any] = {"content": _encode(content), "message": message, "sha": sha}
        if branch:
            data["branch"] = branch
        return await self._request("PUT", f"/repos/{owner}/{repo}/contents/{path}", json=data)

    async def delete_file(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        sha: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        log.info("delete_file", owner=owner, repo=repo, path=path, branch=branch)
        data: dict[str, Any] = {"message": message, "sha": sha}
        if branch:
            data["branch"] = branch
        return await self._request("DELETE", f"/repos/{owner}/{repo}/contents/{path}", json=data)

    async def list_files(
        self,
        owner: str,
        repo: str,
        path: str = "",
        ref: str | None = None,
    ) -> list[dict[str, Any]]:
        log.info("list_files", owner=owner, repo=repo, path=path, ref=ref)
        params = {"ref": ref} if ref else None
        endpoint = f"/repos/{owner}/{repo}/contents/{path}" if path else f"/repos/{owner}/{repo}/contents"
        result = await self._request("GET", endpoint, params=params)
        # A file path yields a single entry rather than a listing
        return result if isinstance(result, list) else [result]
