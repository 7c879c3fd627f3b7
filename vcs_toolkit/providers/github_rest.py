"""GitHub provider implementation using PyGithub and REST API.

Single-object reads and all mutations of the core model go through
PyGithub. Listings, searches, and the Actions, deployment and security
endpoints use the REST API directly through the connection pool: they
return the documented JSON shapes (``total_count`` envelopes and friends)
and avoid PyGithub's lazy per-item completion requests.
"""

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import structlog
from github import Auth, Github, GithubException, InputGitTreeElement  # type: ignore[import-not-found]
from github.Repository import Repository as GHRepository  # type: ignore[import-not-found]

from vcs_toolkit.config.settings import DEFAULT_GITHUB_URL
from vcs_toolkit.enums import FileOperation, ProviderName
from vcs_toolkit.exceptions import ProviderAPIError
from vcs_toolkit.models.domain import CurrentUser, FileChange
from vcs_toolkit.providers.base import VcsOperations, check_response, response_body
from vcs_toolkit.utils.connection_pool import HTTPConnectionPool

log = structlog.get_logger(__name__)

T = TypeVar("T")

SCAN_TYPES = ("code", "secrets", "dependencies")
SECURITY_FEATURES = ("advanced_security", "secret_scanning", "secret_scanning_push_protection")


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous function in a thread pool.

    This prevents blocking the event loop when calling synchronous
    PyGithub methods.
    """
    return await asyncio.to_thread(func)


def _github_error_message(error: GithubException) -> str:
    data = error.data
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(error)


def _present(**kwargs: Any) -> dict[str, Any]:
    """Keyword arguments whose value is not None (PyGithub expects NotSet, not None)."""
    return {key: value for key, value in kwargs.items() if value is not None}


def web_url_for(api_url: str) -> str:
    """Map a GitHub API URL to the web host used for clone URLs."""
    url = api_url.rstrip("/")
    if url == DEFAULT_GITHUB_URL:
        return "https://github.com"
    if url.endswith("/api/v3"):
        return url[: -len("/api/v3")]
    return url


class GitHubRestProvider(VcsOperations):
    """GitHub implementation using the PyGithub library and the REST API.

    Implements every required operation and every optional capability.
    """

    provider_type = ProviderName.GITHUB.value

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_GITHUB_URL,
        timeout: float = 30.0,
        name: str = ProviderName.GITHUB.value,
    ):
        """Initialize GitHub provider.

        Args:
            token: GitHub personal access token or App token
            base_url: GitHub API base URL (for GitHub Enterprise)
            timeout: HTTP timeout in seconds
            name: Registry name, used in logs and errors
        """
        self.name = name
        self.token = token.strip() if token else token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Github | None = None
        self._pool: HTTPConnectionPool | None = None

    def _get_client(self) -> Github:
        if self._client is None:
            self._client = Github(
                auth=Auth.Token(self.token),
                base_url=self.base_url,
                timeout=max(1, int(self.timeout)),
            )
        return self._client

    async def _get_pool(self) -> HTTPConnectionPool:
        if self._pool is None:
            pool = HTTPConnectionPool(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                },
            )
            await pool.initialize()
            self._pool = pool
        return self._pool

    async def close(self) -> None:
        """Close the PyGithub client and the HTTP pool."""
        if self._client is not None:
            client, self._client = self._client, None
            await _run_sync(client.close)
        if self._pool is not None:
            pool, self._pool = self._pool, None
            await pool.close()

    async def _call(self, operation: str, func: Callable[[], T]) -> T:
        """Run a PyGithub call off the event loop, translating its errors."""
        try:
            return await _run_sync(func)
        except GithubException as e:
            log.error("github_request_failed", operation=operation, status=e.status, error=str(e))
            raise ProviderAPIError(_github_error_message(e), provider=self.name, status_code=e.status) from e

    async def _rest(self, method: str, path: str, **kwargs: Any) -> Any:
        pool = await self._get_pool()
        response = await pool.request(method, path, **kwargs)
        check_response(response, self.name)
        return response_body(response)

    async def _rest_exists(self, path: str) -> bool:
        """True for a 2xx answer, False for 404; other errors propagate."""
        try:
            await self._rest("GET", path)
        except ProviderAPIError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    @staticmethod
    def _paging(page: int, limit: int, **extra: Any) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "per_page": limit}
        params.update(_present(**extra))
        return params

    def _repo(self, owner: str, repo: str) -> GHRepository:
        return self._get_client().get_repo(f"{owner}/{repo}")

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def get_current_user(self) -> CurrentUser:
        """Get the authenticated user."""
        log.info("get_current_user", provider=self.name)
        data = await self._call("get_current_user", lambda: self._get_client().get_user().raw_data)
        return CurrentUser.from_payload(data)

    async def get_user(self, username: str) -> dict[str, Any]:
        log.info("get_user", username=username)
        return await self._call("get_user", lambda: self._get_client().get_user(username).raw_data)

    async def search_users(self, query: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("search_users", query=query)
        result = await self._rest("GET", "/search/users", params=self._paging(page, limit, q=query))
        return result.get("items", [])

    async def list_user_organizations(self, username: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_user_organizations", username=username)
        return await self._rest("GET", f"/users/{username}/orgs", params=self._paging(page, limit))

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

        def _create() -> dict[str, Any]:
            user = self._get_client().get_user()
            repository = user.create_repo(
                name,
                private=private,
                auto_init=auto_init,
                **_present(description=description),
            )
            return repository.raw_data

        return await self._call("create_repository", _create)

    async def list_repositories(
        self,
        username: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        log.info("list_repositories", username=username)
        path = f"/users/{username}/repos" if username else "/user/repos"
        return await self._rest("GET", path, params=self._paging(page, limit))

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        log.info("get_repository", owner=owner, repo=repo)
        return await self._call("get_repository", lambda: self._repo(owner, repo).raw_data)

    async def update_repository(self, owner: str, repo: str, updates: dict[str, Any]) -> dict[str, Any]:
        log.info("update_repository", owner=owner, repo=repo, fields=sorted(updates))

        def _update() -> dict[str, Any]:
            repository = self._repo(owner, repo)
            repository.edit(**updates)
            return repository.raw_data

        return await self._call("update_repository", _update)

    async def delete_repository(self, owner: str, repo: str) -> None:
        log.info("delete_repository", owner=owner, repo=repo)
        await self._call("delete_repository", lambda: self._repo(owner, repo).delete())

    async def fork_repository(self, owner: str, repo: str, organization: str | None = None) -> dict[str, Any]:
        log.info("fork_repository", owner=owner, repo=repo, organization=organization)
        return await self._call(
            "fork_repository",
            lambda: self._repo(owner, repo).create_fork(**_present(organization=organization)).raw_data,
        )

    async def search_repositories(self, query: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("search_repositories", query=query)
        result = await self._rest("GET", "/search/repositories", params=self._paging(page, limit, q=query))
        return result.get("items", [])

    def get_repository_url(self, owner: str, repo: str) -> str:
        return f"{web_url_for(self.base_url)}/{owner}/{repo}.git"

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    async def create_branch(self, owner: str, repo: str, name: str, from_branch: str) -> dict[str, Any]:
        log.info("create_branch", owner=owner, repo=repo, branch=name, from_branch=from_branch)

        def _create() -> dict[str, Any]:
            repository = self._repo(owner, repo)
            source = repository.get_branch(from_branch)
            repository.create_git_ref(ref=f"refs/heads/{name}", sha=source.commit.sha)
            return repository.get_branch(name).raw_data

        return await self._call("create_branch", _create)

    async def list_branches(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_branches", owner=owner, repo=repo)
        return await self._rest("GET", f"/repos/{owner}/{repo}/branches", params=self._paging(page, limit))

    async def get_branch(self, owner: str, repo: str, name: str) -> dict[str, Any]:
        log.info("get_branch", owner=owner, repo=repo, branch=name)
        return await self._call("get_branch", lambda: self._repo(owner, repo).get_branch(name).raw_data)

    async def delete_branch(self, owner: str, repo: str, name: str) -> None:
        log.info("delete_branch", owner=owner, repo=repo, branch=name)
        await self._call("delete_branch", lambda: self._repo(owner, repo).get_git_ref(f"heads/{name}").delete())

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
        return await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/commits",
            params=self._paging(page, limit, sha=branch),
        )

    async def get_commit(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        log.info("get_commit", owner=owner, repo=repo, sha=sha)
        return await self._call("get_commit", lambda: self._repo(owner, repo).get_commit(sha).raw_data)

    async def create_commit(
        self,
        owner: str,
        repo: str,
        message: str,
        branch: str,
        changes: list[FileChange],
    ) -> dict[str, Any]:
        """Create one commit with the Git Data API (tree, commit, ref update)."""
        log.info("create_commit", owner=owner, repo=repo, branch=branch, files=len(changes))

        def _commit() -> dict[str, Any]:
            repository = self._repo(owner, repo)
            ref = repository.get_git_ref(f"heads/{branch}")
            parent = repository.get_git_commit(ref.object.sha)

            elements = []
            for change in changes:
                if change.operation == FileOperation.DELETE:
                    elements.append(InputGitTreeElement(change.path, "100644", "blob", sha=None))
                else:
                    elements.append(InputGitTreeElement(change.path, "100644", "blob", content=change.content))

            tree = repository.create_git_tree(elements, base_tree=parent.tree)
            commit = repository.create_git_commit(message, tree, [parent])
            ref.edit(sha=commit.sha)
            return commit.raw_data

        return await self._call("create_commit", _commit)

    async def compare_commits(self, owner: str, repo: str, base: str, head: str) -> dict[str, Any]:
        """Compare two refs (``base...head``)."""
        log.info("compare_commits", owner=owner, repo=repo, base=base, head=head)
        return await self._rest("GET", f"/repos/{owner}/{repo}/compare/{base}...{head}")

    async def search_commits(
        self,
        owner: str,
        repo: str,
        query: str,
        page: int = 1,
        limit: int = 30,
    ) -> dict[str, Any]:
        """Search commit messages of a repository."""
        log.info("search_commits", owner=owner, repo=repo, query=query)
        return await self._rest(
            "GET",
            "/search/commits",
            params=self._paging(page, limit, q=f"repo:{owner}/{repo} {query}".strip()),
        )

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
        log.info("create_issue", owner=owner, repo=repo, title=title, labels=labels)
        return await self._call(
            "create_issue",
            lambda: self._repo(owner, repo)
            .create_issue(title=title, labels=labels or [], assignees=assignees or [], **_present(body=body))
            .raw_data,
        )

    async def list_issues(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        log.info("list_issues", owner=owner, repo=repo, state=state)
        items = await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/issues",
            params=self._paging(page, limit, state=state),
        )
        # The issues endpoint also returns pull requests
        return [item for item in items if "pull_request" not in item]

    async def get_issue(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        log.info("get_issue", owner=owner, repo=repo, number=number)
        return await self._call("get_issue", lambda: self._repo(owner, repo).get_issue(number).raw_data)

    async def update_issue(self, owner: str, repo: str, number: int, updates: dict[str, Any]) -> dict[str, Any]:
        log.info("update_issue", owner=owner, repo=repo, number=number, fields=sorted(updates))

        def _update() -> dict[str, Any]:
            issue = self._repo(owner, repo).get_issue(number)
            issue.edit(**updates)
            return issue.raw_data

        return await self._call("update_issue", _update)

    async def add_comment(self, owner: str, repo: str, number: int, body: str) -> dict[str, Any]:
        log.info("add_comment", owner=owner, repo=repo, number=number)
        return await self._call(
            "add_comment",
            lambda: self._repo(owner, repo).get_issue(number).create_comment(body).raw_data,
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
        terms = [f"repo:{owner}/{repo}", f"is:{kind}"]
        if state and state != "all":
            terms.append(f"state:{state}")
        if query:
            terms.append(query)
        result = await self._rest("GET", "/search/issues", params=self._paging(page, limit, q=" ".join(terms)))
        return result.get("items", [])

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
        return await self._call(
            "create_pull_request",
            lambda: self._repo(owner, repo)
            .create_pull(base=base, head=head, title=title, body=body or "", draft=draft)
            .raw_data,
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
        return await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/pulls",
            params=self._paging(page, limit, state=state),
        )

    async def get_pull_request(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        log.info("get_pull_request", owner=owner, repo=repo, number=number)
        return await self._call("get_pull_request", lambda: self._repo(owner, repo).get_pull(number).raw_data)

    async def update_pull_request(self, owner: str, repo: str, number: int, updates: dict[str, Any]) -> dict[str, Any]:
        log.info("update_pull_request", owner=owner, repo=repo, number=number, fields=sorted(updates))

        def _update() -> dict[str, Any]:
            pull = self._repo(owner, repo).get_pull(number)
            pull.edit(**updates)
            return pull.raw_data

        return await self._call("update_pull_request", _update)

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

        def _merge() -> dict[str, Any]:
            pull = self._repo(owner, repo).get_pull(number)
            status = pull.merge(merge_method=merge_method, **_present(commit_title=title, commit_message=message))
            return {
                "merged": status.merged,
                "sha": status.sha,
                "message": status.message,
                "number": number,
                "merge_method": merge_method,
            }

        return await self._call("merge_pull_request", _merge)

    # -------------------------------------------------------------------------
    # Pull request reviews
    # -------------------------------------------------------------------------

    async def list_pull_request_files(
        self,
        owner: str,
        repo: str,
        number: int,
        page: int = 1,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """List the files changed by a pull request with their patch and line counts."""
        log.info("list_pull_request_files", owner=owner, repo=repo, number=number)
        return await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/pulls/{number}/files",
            params=self._paging(page, limit),
        )

    async def create_pull_request_review(
        self,
        owner: str,
        repo: str,
        number: int,
        body: str,
        event: str = "COMMENT",
        comments: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Submit a review; ``comments`` entries carry ``path``, ``line`` and ``body``."""
        log.info("create_pull_request_review", owner=owner, repo=repo, number=number, event=event)
        payload: dict[str, Any] = {"body": body, "event": event}
        if comments:
            payload["comments"] = comments
        return await self._rest("POST", f"/repos/{owner}/{repo}/pulls/{number}/reviews", json=payload)

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

        def _create() -> dict[str, Any]:
            repository = self._repo(owner, repo)
            commit_sha = repository.get_commit(target).sha
            ref_sha = commit_sha
            if message:
                ref_sha = repository.create_git_tag(tag_name, message, commit_sha, "commit").sha
            ref = repository.create_git_ref(ref=f"refs/tags/{tag_name}", sha=ref_sha)
            return {"name": tag_name, "ref": ref.ref, "commit": {"sha": commit_sha}, "message": message}

        return await self._call("create_tag", _create)

    async def list_tags(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_tags", owner=owner, repo=repo)
        return await self._rest("GET", f"/repos/{owner}/{repo}/tags", params=self._paging(page, limit))

    async def delete_tag(self, owner: str, repo: str, tag_name: str) -> None:
        log.info("delete_tag", owner=owner, repo=repo, tag=tag_name)
        await self._call("delete_tag", lambda: self._repo(owner, repo).get_git_ref(f"tags/{tag_name}").delete())

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
        return await self._call(
            "create_release",
            lambda: self._repo(owner, repo)
            .create_git_release(
                tag=tag_name,
                name=name or tag_name,
                message=body or "",
                draft=draft,
                prerelease=prerelease,
                **_present(target_commitish=target),
            )
            .raw_data,
        )

    async def list_releases(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_releases", owner=owner, repo=repo)
        return await self._rest("GET", f"/repos/{owner}/{repo}/releases", params=self._paging(page, limit))

    async def get_release(self, owner: str, repo: str, release_id: int) -> dict[str, Any]:
        log.info("get_release", owner=owner, repo=repo, release_id=release_id)
        return await self._call("get_release", lambda: self._repo(owner, repo).get_release(release_id).raw_data)

    async def update_release(
        self,
        owner: str,
        repo: str,
        release_id: int,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        log.info("update_release", owner=owner, repo=repo, release_id=release_id, fields=sorted(updates))

        def _update() -> dict[str, Any]:
            release = self._repo(owner, repo).get_release(release_id)
            # update_release resets omitted flags, so carry current values over
            updated = release.update_release(
                name=updates.get("name", release.title),
                message=updates.get("body", release.body or ""),
                draft=updates.get("draft", release.draft),
                prerelease=updates.get("prerelease", release.prerelease),
                **_present(tag_name=updates.get("tag_name"), target_commitish=updates.get("target")),
            )
            return updated.raw_data

        return await self._call("update_release", _update)

    async def delete_release(self, owner: str, repo: str, release_id: int) -> None:
        log.info("delete_release", owner=owner, repo=repo, release_id=release_id)
        await self._call("delete_release", lambda: self._repo(owner, repo).get_release(release_id).delete_release())

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
        config = {"url": url, "content_type": content_type, **_present(secret=secret)}
        return await self._call(
            "create_webhook",
            lambda: self._repo(owner, repo).create_hook("web", config, events or ["push"], active).raw_data,
        )

    async def list_webhooks(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        log.info("list_webhooks", owner=owner, repo=repo)
        return await self._rest("GET", f"/repos/{owner}/{repo}/hooks", params=self._paging(page, limit))

    async def get_webhook(self, owner: str, repo: str, webhook_id: int) -> dict[str, Any]:
        log.info("get_webhook", owner=owner, repo=repo, webhook_id=webhook_id)
        return await self._call("get_webhook", lambda: self._repo(owner, repo).get_hook(webhook_id).raw_data)

    async def update_webhook(
        self,
        owner: str,
        repo: str,
        webhook_id: int,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        log.info("update_webhook", owner=owner, repo=repo, webhook_id=webhook_id, fields=sorted(updates))

        def _update() -> dict[str, Any]:
            hook = self._repo(owner, repo).get_hook(webhook_id)
            # The API masks the stored secret; never send the mask back
            config = {key: value for key, value in (hook.config or {}).items() if key != "secret"}
            config.update(_present(**{key: updates.get(key) for key in ("url", "content_type", "secret")}))
            hook.edit(
                "web",
                config,
                **_present(events=updates.get("events"), active=updates.get("active")),
            )
            return hook.raw_data

        return await self._call("update_webhook", _update)

    async def delete_webhook(self, owner: str, repo: str, webhook_id: int) -> None:
        log.info("delete_webhook", owner=owner, repo=repo, webhook_id=webhook_id)
        await self._call("delete_webhook", lambda: self._repo(owner, repo).get_hook(webhook_id).delete())

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    async def get_file(self, owner: str, repo: str, path: str, ref: str | None = None) -> dict[str, Any]:
        log.info("get_file", owner=owner, repo=repo, path=path, ref=ref)

        def _get() -> dict[str, Any]:
            contents = self._repo(owner, repo).get_contents(path, **_present(ref=ref))
            if isinstance(contents, list):
                raise ProviderAPIError(f"{path} is a directory", provider=self.name, status_code=400)
            return contents.raw_data

        return await self._call("get_file", _get)

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

        def _create() -> dict[str, Any]:
            result = self._repo(owner, repo).create_file(path, message, content, **_present(branch=branch))
            return self._file_commit_payload(path, result)

        return await self._call("create_file", _create)

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

        def _update() -> dict[str, Any]:
            result = self._repo(owner, repo).update_file(path, message, content, sha, **_present(branch=branch))
            return self._file_commit_payload(path, result)

        return await self._call("update_file", _update)

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

        def _delete() -> dict[str, Any]:
            result = self._repo(owner, repo).delete_file(path, message, sha, **_present(branch=branch))
            return {"path": path, "commit": {"sha": result["commit"].sha}}

        return await self._call("delete_file", _delete)

    @staticmethod
    def _file_commit_payload(path: str, result: dict[str, Any]) -> dict[str, Any]:
        content = result["content"]
        return {
            "path": path,
            "sha": content.sha,
            "html_url": content.html_url,
            "commit": {"sha": result["commit"].sha},
        }

    async def list_files(
        self,
        owner: str,
        repo: str,
        path: str = "",
        ref: str | None = None,
    ) -> list[dict[str, Any]]:
        log.info("list_files", owner=owner, repo=repo, path=path, ref=ref)
        params = {"ref": ref} if ref else None
        result = await self._rest("GET", f"/repos/{owner}/{repo}/contents/{path}", params=params)
        return result if isinstance(result, list) else [result]

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    async def list_workflow_runs(
        self,
        owner: str,
        repo: str,
        branch: str | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> dict[str, Any]:
        """List workflow runs as ``{total_count, workflow_runs}``."""
        log.info("list_workflow_runs", owner=owner, repo=repo, branch=branch, status=status)
        return await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/actions/runs",
            params=self._paging(page, limit, branch=branch, status=status),
        )

    async def cancel_workflow_run(self, owner: str, repo: str, run_id: int) -> dict[str, Any]:
        log.info("cancel_workflow_run", owner=owner, repo=repo, run_id=run_id)
        await self._rest("POST", f"/repos/{owner}/{repo}/actions/runs/{run_id}/cancel")
        return {"run_id": run_id, "cancelled": True}

    async def rerun_workflow(self, owner: str, repo: str, run_id: int) -> dict[str, Any]:
        log.info("rerun_workflow", owner=owner, repo=repo, run_id=run_id)
        await self._rest("POST", f"/repos/{owner}/{repo}/actions/runs/{run_id}/rerun")
        return {"run_id": run_id, "rerun_requested": True}

    async def list_artifacts(
        self,
        owner: str,
        repo: str,
        run_id: int | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> dict[str, Any]:
        """List artifacts of one run, or of the whole repository."""
        log.info("list_artifacts", owner=owner, repo=repo, run_id=run_id)
        path = (
            f"/repos/{owner}/{repo}/actions/runs/{run_id}/artifacts"
            if run_id is not None
            else f"/repos/{owner}/{repo}/actions/artifacts"
        )
        return await self._rest("GET", path, params=self._paging(page, limit))

    async def download_artifact(
        self,
        owner: str,
        repo: str,
        artifact_id: int,
        download_path: str | None = None,
    ) -> dict[str, Any]:
        """Describe an artifact and, when ``download_path`` is given, save its zip archive there."""
        log.info("download_artifact", owner=owner, repo=repo, artifact_id=artifact_id)
        artifact = await self._rest("GET", f"/repos/{owner}/{repo}/actions/artifacts/{artifact_id}")
        result = {
            "artifact_id": artifact_id,
            "name": artifact.get("name"),
            "size_in_bytes": artifact.get("size_in_bytes"),
            "expired": artifact.get("expired"),
            "archive_download_url": artifact.get("archive_download_url"),
        }
        if not download_path:
            return result

        pool = await self._get_pool()
        response = await pool.request(
            "GET",
            f"/repos/{owner}/{repo}/actions/artifacts/{artifact_id}/zip",
            follow_redirects=True,
        )
        check_response(response, self.name)

        target = Path(download_path)
        if target.is_dir():
            target = target / f"{artifact.get('name') or artifact_id}.zip"
        await asyncio.to_thread(target.write_bytes, response.content)

        result["download_path"] = str(target)
        log.info("artifact_downloaded", artifact_id=artifact_id, path=str(target), size=len(response.content))
        return result

    async def list_secrets(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> dict[str, Any]:
        """List Actions secret names as ``{total_count, secrets}``; values are never returned."""
        log.info("list_secrets", owner=owner, repo=repo)
        return await self._rest("GET", f"/repos/{owner}/{repo}/actions/secrets", params=self._paging(page, limit))

    async def list_jobs(self, owner: str, repo: str, run_id: int, page: int = 1, limit: int = 30) -> dict[str, Any]:
        """List jobs of a workflow run as ``{total_count, jobs}``."""
        log.info("list_jobs", owner=owner, repo=repo, run_id=run_id)
        return await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs",
            params=self._paging(page, limit),
        )

    # -------------------------------------------------------------------------
    # Deployments
    # -------------------------------------------------------------------------

    async def list_deployments(
        self,
        owner: str,
        repo: str,
        environment: str | None = None,
        ref: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        log.info("list_deployments", owner=owner, repo=repo, environment=environment)
        return await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/deployments",
            params=self._paging(page, limit, environment=environment, ref=ref),
        )

    async def create_deployment(
        self,
        owner: str,
        repo: str,
        ref: str,
        environment: str = "production",
        description: str | None = None,
        task: str | None = None,
        auto_merge: bool = False,
        required_contexts: list[str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        log.info("create_deployment", owner=owner, repo=repo, ref=ref, environment=environment)
        data: dict[str, Any] = {
            "ref": ref,
            "environment": environment,
            "auto_merge": auto_merge,
            "required_contexts": required_contexts or [],
            **_present(description=description, task=task, payload=payload),
        }
        return await self._rest("POST", f"/repos/{owner}/{repo}/deployments", json=data)

    async def update_deployment_status(
        self,
        owner: str,
        repo: str,
        deployment_id: int,
        state: str,
        description: str | None = None,
        log_url: str | None = None,
        environment_url: str | None = None,
    ) -> dict[str, Any]:
        log.info("update_deployment_status", owner=owner, repo=repo, deployment_id=deployment_id, state=state)
        data = {
            "state": state,
            **_present(description=description, log_url=log_url, environment_url=environment_url),
        }
        return await self._rest("POST", f"/repos/{owner}/{repo}/deployments/{deployment_id}/statuses", json=data)

    async def list_environments(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> dict[str, Any]:
        """List deployment environments as ``{total_count, environments}``."""
        log.info("list_environments", owner=owner, repo=repo)
        return await self._rest("GET", f"/repos/{owner}/{repo}/environments", params=self._paging(page, limit))

    async def rollback_deployment(
        self,
        owner: str,
        repo: str,
        deployment_id: int,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Redeploy the ref of the deployment that preceded ``deployment_id`` in its environment."""
        log.info("rollback_deployment", owner=owner, repo=repo, deployment_id=deployment_id)

        current = await self._rest("GET", f"/repos/{owner}/{repo}/deployments/{deployment_id}")
        environment = current.get("environment")
        history = await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/deployments",
            params=self._paging(1, 100, environment=environment),
        )
        previous = [item for item in history if item["id"] < deployment_id]
        if not previous:
            raise ProviderAPIError(
                f"No earlier deployment to roll back to in environment {environment}",
                provider=self.name,
            )

        target = max(previous, key=lambda item: item["id"])
        deployment = await self.create_deployment(
            owner,
            repo,
            ref=target.get("sha") or target["ref"],
            environment=environment or "production",
            description=description or f"Rollback of deployment {deployment_id}",
        )
        return {"rolled_back_from": deployment_id, "restored_deployment": target["id"], "deployment": deployment}

    async def delete_deployment(self, owner: str, repo: str, deployment_id: int) -> dict[str, Any]:
        """Mark a deployment inactive, then delete it (active deployments cannot be deleted)."""
        log.info("delete_deployment", owner=owner, repo=repo, deployment_id=deployment_id)
        await self.update_deployment_status(owner, repo, deployment_id, "inactive")
        await self._rest("DELETE", f"/repos/{owner}/{repo}/deployments/{deployment_id}")
        return {"deployment_id": deployment_id, "deleted": True}

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    async def run_security_scan(
        self,
        owner: str,
        repo: str,
        scan_type: str = "code",
        ref: str | None = None,
    ) -> dict[str, Any]:
        """Collect open alerts of one scanner, or of all of them with ``scan_type="all"``.

        Scanners that are disabled or unavailable are reported in ``errors``.
        """
        log.info("run_security_scan", owner=owner, repo=repo, scan_type=scan_type, ref=ref)
        scan_types = SCAN_TYPES if scan_type == "all" else (scan_type,)
        endpoints = {
            "code": (f"/repos/{owner}/{repo}/code-scanning/alerts", _present(state="open", ref=ref)),
            "secrets": (f"/repos/{owner}/{repo}/secret-scanning/alerts", {"state": "open"}),
            "dependencies": (f"/repos/{owner}/{repo}/dependabot/alerts", {"state": "open"}),
        }

        repository = await self._rest("GET", f"/repos/{owner}/{repo}")
        findings: dict[str, list[dict[str, Any]]] = {}
        errors: list[str] = []
        for kind in scan_types:
            if kind not in endpoints:
                errors.append(f"{kind}: unknown scan type")
                continue
            path, params = endpoints[kind]
            try:
                findings[kind] = await self._rest("GET", path, params={**params, "per_page": 100})
            except ProviderAPIError as e:
                log.warning("security_scan_unavailable", scan_type=kind, error=str(e))
                errors.append(f"{kind}: {e}")

        return {
            "scan_type": scan_type,
            "ref": ref,
            "security_and_analysis": repository.get("security_and_analysis") or {},
            "findings": findings,
            "total_count": sum(len(items) for items in findings.values()),
            "errors": errors,
        }

    async def list_vulnerabilities(
        self,
        owner: str,
        repo: str,
        state: str | None = None,
        severity: str | None = None,
        ecosystem: str | None = None,
        package_name: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> dict[str, Any]:
        """List Dependabot alerts as ``{total_count, vulnerabilities}``."""
        log.info("list_vulnerabilities", owner=owner, repo=repo, state=state, severity=severity)
        alerts = await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/dependabot/alerts",
            params=_present(
                state=state,
                severity=severity,
                ecosystem=ecosystem,
                package=package_name,
                per_page=limit,
                page=page,
            ),
        )
        vulnerabilities = []
        for alert in alerts:
            advisory = alert.get("security_advisory") or {}
            dependency = alert.get("dependency") or {}
            package = dependency.get("package") or {}
            vulnerabilities.append(
                {
                    "number": alert.get("number"),
                    "state": alert.get("state"),
                    "severity": advisory.get("severity"),
                    "summary": advisory.get("summary"),
                    "ghsa_id": advisory.get("ghsa_id"),
                    "created_at": alert.get("created_at"),
                    "dismissed_reason": alert.get("dismissed_reason"),
                    "dependency": {
                        "package": package.get("name"),
                        "ecosystem": package.get("ecosystem"),
                        "manifest_path": dependency.get("manifest_path"),
                    },
                }
            )
        return {"total_count": len(vulnerabilities), "vulnerabilities": vulnerabilities}

    async def manage_security_alerts(
        self,
        owner: str,
        repo: str,
        alert_number: int,
        operation: str = "dismiss",
        dismiss_reason: str | None = None,
        dismiss_comment: str | None = None,
    ) -> dict[str, Any]:
        """Dismiss or reopen a Dependabot alert."""
        log.info("manage_security_alerts", owner=owner, repo=repo, alert_number=alert_number, operation=operation)
        if operation == "dismiss":
            data = {
                "state": "dismissed",
                "dismissed_reason": dismiss_reason or "tolerable_risk",
                **_present(dismissed_comment=dismiss_comment),
            }
        elif operation == "reopen":
            data = {"state": "open"}
        else:
            raise ValueError(f"Unsupported alert operation: {operation}")

        return await self._rest("PATCH", f"/repos/{owner}/{repo}/dependabot/alerts/{alert_number}", json=data)

    async def manage_security_policies(
        self,
        owner: str,
        repo: str,
        operation: str = "get",
        policy: str | None = None,
    ) -> dict[str, Any]:
        """Inspect, enable or disable repository security features.

        ``operation`` is ``get``, ``enable`` or ``disable``. ``policy`` names
        the feature to toggle: ``vulnerability_alerts``,
        ``automated_security_fixes`` or one of the ``security_and_analysis``
        features (``advanced_security``, ``secret_scanning``,
        ``secret_scanning_push_protection``).
        """
        log.info("manage_security_policies", owner=owner, repo=repo, operation=operation, policy=policy)

        if operation in ("enable", "disable"):
            if policy in ("vulnerability_alerts", "automated_security_fixes"):
                method = "PUT" if operation == "enable" else "DELETE"
                await self._rest(method, f"/repos/{owner}/{repo}/{policy.replace('_', '-')}")
            elif policy in SECURITY_FEATURES:
                status = "enabled" if operation == "enable" else "disabled"
                await self._rest(
                    "PATCH",
                    f"/repos/{owner}/{repo}",
                    json={"security_and_analysis": {policy: {"status": status}}},
                )
            else:
                raise ValueError(f"Unknown security policy: {policy}")
        elif operation != "get":
            raise ValueError(f"Unsupported policy operation: {operation}")

        repository = await self._rest("GET", f"/repos/{owner}/{repo}")
        return {
            "security_and_analysis": repository.get("security_and_analysis") or {},
            "vulnerability_alerts": await self._rest_exists(f"/repos/{owner}/{repo}/vulnerability-alerts"),
            "security_policy": await self._has_security_policy(owner, repo),
        }

    async def _has_security_policy(self, owner: str, repo: str) -> bool:
        for path in ("SECURITY.md", ".github/SECURITY.md", "docs/SECURITY.md"):
            if await self._rest_exists(f"/repos/{owner}/{repo}/contents/{path}"):
                return True
        return False

    async def check_compliance(self, owner: str, repo: str, framework: str | None = None) -> dict[str, Any]:
        """Run repository hygiene checks and report each one.

        A check that cannot be evaluated (missing permission, API error) is
        reported as failed with the error as its detail.
        """
        log.info("check_compliance", owner=owner, repo=repo, framework=framework)
        repository = await self._rest("GET", f"/repos/{owner}/{repo}")
        default_branch = repository.get("default_branch") or "main"
        analysis = repository.get("security_and_analysis") or {}

        async def _branch_protection() -> tuple[bool, str]:
            protected = await self._rest_exists(f"/repos/{owner}/{repo}/branches/{default_branch}/protection")
            return protected, f"default branch {default_branch}"

        async def _vulnerability_alerts() -> tuple[bool, str]:
            enabled = await self._rest_exists(f"/repos/{owner}/{repo}/vulnerability-alerts")
            return enabled, "Dependabot alerts"

        async def _security_policy() -> tuple[bool, str]:
            return await self._has_security_policy(owner, repo), "SECURITY.md"

        async def _license() -> tuple[bool, str]:
            license_info = repository.get("license") or {}
            return bool(license_info), license_info.get("spdx_id") or "no license detected"

        async def _secret_scanning() -> tuple[bool, str]:
            status = (analysis.get("secret_scanning") or {}).get("status", "unavailable")
            return status == "enabled", status

        checks = []
        for check_name, check in (
            ("branch_protection", _branch_protection),
            ("vulnerability_alerts", _vulnerability_alerts),
            ("security_policy", _security_policy),
            ("license", _license),
            ("secret_scanning", _secret_scanning),
        ):
            try:
                passed, detail = await check()
            except ProviderAPIError as e:
                passed, detail = False, str(e)
            checks.append({"name": check_name, "passed": passed, "detail": detail})

        passed_count = sum(1 for check in checks if check["passed"])
        return {
            "framework": framework or "baseline",
            "repository": f"{owner}/{repo}",
            "checks": checks,
            "passed": passed_count,
            "total": len(checks),
            "compliant": passed_count == len(checks),
        }

    async def analyze_dependencies(
        self,
        owner: str,
        repo: str,
        ecosystem: str | None = None,
        package_name: str | None = None,
    ) -> dict[str, Any]:
        """Summarize the dependency graph SBOM, optionally filtered by ecosystem or package."""
        log.info("analyze_dependencies", owner=owner, repo=repo, ecosystem=ecosystem)
        result = await self._rest("GET", f"/repos/{owner}/{repo}/dependency-graph/sbom")
        sbom = result.get("sbom") or {}

        packages = []
        for package in sbom.get("packages") or []:
            purl = next(
                (
                    ref.get("referenceLocator", "")
                    for ref in package.get("externalRefs") or []
                    if ref.get("referenceType") == "purl"
                ),
                "",
            )
            package_ecosystem = purl[4:].split("/", 1)[0] if purl.startswith("pkg:") else None
            if ecosystem and package_ecosystem != ecosystem:
                continue
            if package_name and package_name not in (package.get("name") or ""):
                continue
            packages.append(
                {
                    "name": package.get("name"),
                    "version": package.get("versionInfo"),
                    "license": package.get("licenseConcluded") or package.get("licenseDeclared"),
                    "ecosystem": package_ecosystem,
                }
            )

        ecosystems: dict[str, int] = {}
        for package in packages:
            key = package["ecosystem"] or "unknown"
            ecosystems[key] = ecosystems.get(key, 0) + 1

        return {"total_packages": len(packages), "ecosystems": ecosystems, "packages": packages}

    async def list_security_advisories(
        self,
        owner: str,
        repo: str,
        state: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> dict[str, Any]:
        """List repository security advisories as ``{total_count, advisories}``."""
        log.info("list_security_advisories", owner=owner, repo=repo, state=state)
        advisories = await self._rest(
            "GET",
            f"/repos/{owner}/{repo}/security-advisories",
            params=_present(state=state, per_page=limit),
        )
        return {"total_count": len(advisories), "advisories": advisories}
