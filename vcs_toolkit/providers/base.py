"""
Abstract base class for VCS providers.

``VcsOperations`` is the capability interface every backend adapter
implements. Required operations are abstract methods; optional ones
(Actions, deployments, security, commit comparison and search) are not
declared here at all. A provider supports an optional operation exactly
when it exposes a callable attribute of that name, which callers check
with ``supports()`` before invoking it.
"""

import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import httpx
import structlog

from vcs_toolkit.enums import Capability
from vcs_toolkit.exceptions import ProviderAPIError
from vcs_toolkit.models.domain import CurrentUser, FileChange, UploadResult

log = structlog.get_logger(__name__)

UPLOAD_SKIP_DIRS = frozenset({".git", "node_modules", "dist", "__pycache__", ".venv", "venv"})
UPLOAD_SKIP_SUFFIXES = (".log", ".tmp", ".pyc")


def supports(provider: Any, capability: Capability | str) -> bool:
    """Return True if ``provider`` implements the optional ``capability``."""
    return callable(getattr(provider, str(capability), None))


def check_response(response: httpx.Response, provider: str) -> None:
    """Raise ProviderAPIError for an HTTP error response.

    The backend's own ``message`` field is preferred over the raw body.
    """
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        message = response.reason_phrase or "request failed"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            message = str(body["message"])
        elif response.text:
            message = response.text[:500]
        raise ProviderAPIError(message, provider=provider, status_code=response.status_code) from e


def response_body(response: httpx.Response) -> Any:
    """Decoded JSON body, or None for empty responses (204 and friends)."""
    if response.status_code == 204 or not response.content:
        return None
    return response.json()


class VcsOperations(ABC):
    """Abstract base class for Git hosting backends.

    Every repository-scoped method takes an explicit ``owner``; the tool
    layer fills it from the authenticated user when the caller omits it.
    Return values are the backend's JSON payloads as dicts (or lists of
    dicts) so tools can hand them back unchanged.

    All methods except ``get_repository_url`` are coroutines.

    Errors:
        Implementations raise ``ProviderAPIError`` with the provider name,
        HTTP status and the backend's message when a call fails.
    """

    #: Registry-independent backend type (``gitea`` or ``github``)
    provider_type: str = ""

    #: Registry name of this instance, used in logs and errors
    name: str = ""

    async def close(self) -> None:
        """Release network resources held by the provider."""
        return None

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_current_user(self) -> CurrentUser:
        """Get the account that owns the configured token.

        Returns:
            CurrentUser whose ``login`` is used as the implicit owner.

        Raises:
            ProviderAPIError: If the token is rejected or the call fails.
                Implementations never substitute a placeholder user.
        """

    @abstractmethod
    async def get_user(self, username: str) -> dict[str, Any]:
        """Get a user's public profile."""

    @abstractmethod
    async def search_users(self, query: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        """Search users by login or name."""

    @abstractmethod
    async def list_user_organizations(self, username: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        """List organizations a user belongs to."""

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_repository(
        self,
        name: str,
        description: str | None = None,
        private: bool = False,
        auto_init: bool = False,
    ) -> dict[str, Any]:
        """Create a repository owned by the authenticated user.

        Args:
            name: Repository name
            description: Optional description
            private: Create as private repository
            auto_init: Create an initial commit with a README

        Returns:
            Repository payload of the created repository.
        """

    @abstractmethod
    async def list_repositories(
        self,
        username: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """List repositories of ``username``, or of the authenticated user when None."""

    @abstractmethod
    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        """Get a single repository."""

    @abstractmethod
    async def update_repository(self, owner: str, repo: str, updates: dict[str, Any]) -> dict[str, Any]:
        """Update repository settings.

        Args:
            owner: Repository owner
            repo: Repository name
            updates: Fields to change (``name``, ``description``, ``private``,
                ``default_branch``, ``archived``, ...). Only given keys are sent.
        """

    @abstractmethod
    async def delete_repository(self, owner: str, repo: str) -> None:
        """Delete a repository. Irreversible."""

    @abstractmethod
    async def fork_repository(self, owner: str, repo: str, organization: str | None = None) -> dict[str, Any]:
        """Fork a repository into the authenticated account or ``organization``."""

    @abstractmethod
    async def search_repositories(self, query: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        """Search repositories visible to the authenticated user."""

    @abstractmethod
    def get_repository_url(self, owner: str, repo: str) -> str:
        """Return the HTTPS clone URL of a repository without any network call."""

    # -------------------------------------------------------------------------
    # Branches
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_branch(self, owner: str, repo: str, name: str, from_branch: str) -> dict[str, Any]:
        """Create ``name`` pointing at the head of ``from_branch``."""

    @abstractmethod
    async def list_branches(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        """List branches."""

    @abstractmethod
    async def get_branch(self, owner: str, repo: str, name: str) -> dict[str, Any]:
        """Get a single branch with its head commit."""

    @abstractmethod
    async def delete_branch(self, owner: str, repo: str, name: str) -> None:
        """Delete a branch."""

    # -------------------------------------------------------------------------
    # Commits
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_commits(
        self,
        owner: str,
        repo: str,
        branch: str | None = None,
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """List commits, newest first, optionally starting from ``branch``."""

    @abstractmethod
    async def get_commit(self, owner: str, repo: str, sha: str) -> dict[str, Any]:
        """Get a single commit by SHA (or any ref the backend resolves)."""

    @abstractmethod
    async def create_commit(
        self,
        owner: str,
        repo: str,
        message: str,
        branch: str,
        changes: list[FileChange],
    ) -> dict[str, Any]:
        """Create one commit on ``branch`` applying every file change.

        Args:
            owner: Repository owner
            repo: Repository name
            message: Commit message
            branch: Branch to advance
            changes: Files to create, update or delete

        Returns:
            Payload describing the new commit.
        """

    # -------------------------------------------------------------------------
    # Issues
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str | None = None,
        labels: list[str] | None = None,
        assignees: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create an issue."""

    @abstractmethod
    async def list_issues(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """List issues. ``state`` is ``open``, ``closed`` or ``all``."""

    @abstractmethod
    async def get_issue(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        """Get a single issue by its repository-scoped number."""

    @abstractmethod
    async def update_issue(self, owner: str, repo: str, number: int, updates: dict[str, Any]) -> dict[str, Any]:
        """Update issue fields (``title``, ``body``, ``state``, ``assignees``)."""

    @abstractmethod
    async def add_comment(self, owner: str, repo: str, number: int, body: str) -> dict[str, Any]:
        """Comment on an issue or pull request."""

    # -------------------------------------------------------------------------
    # Pull requests
    # -------------------------------------------------------------------------

    @abstractmethod
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
        """Open a pull request merging ``head`` into ``base``."""

    @abstractmethod
    async def list_pull_requests(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        page: int = 1,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """List pull requests."""

    @abstractmethod
    async def get_pull_request(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        """Get a single pull request."""

    @abstractmethod
    async def update_pull_request(self, owner: str, repo: str, number: int, updates: dict[str, Any]) -> dict[str, Any]:
        """Update pull request fields (``title``, ``body``, ``state``, ``base``)."""

    @abstractmethod
    async def merge_pull_request(
        self,
        owner: str,
        repo: str,
        number: int,
        merge_method: str = "merge",
        title: str | None = None,
        message: str | None = None,
    ) -> dict[str, Any]:
        """Merge a pull request with ``merge``, ``rebase`` or ``squash``."""

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_tag(
        self,
        owner: str,
        repo: str,
        tag_name: str,
        target: str,
        message: str | None = None,
    ) -> dict[str, Any]:
        """Create a tag at ``target`` (branch name or commit SHA).

        An annotated tag is created when ``message`` is given.
        """

    @abstractmethod
    async def list_tags(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        """List tags."""

    @abstractmethod
    async def delete_tag(self, owner: str, repo: str, tag_name: str) -> None:
        """Delete a tag."""

    # -------------------------------------------------------------------------
    # Releases
    # -------------------------------------------------------------------------

    @abstractmethod
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
        """Create a release for ``tag_name``; the tag is created at ``target`` if missing."""

    @abstractmethod
    async def list_releases(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        """List releases, newest first."""

    @abstractmethod
    async def get_release(self, owner: str, repo: str, release_id: int) -> dict[str, Any]:
        """Get a release by ID."""

    @abstractmethod
    async def update_release(
        self,
        owner: str,
        repo: str,
        release_id: int,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        """Update release fields (``name``, ``body``, ``draft``, ``prerelease``, ``tag_name``)."""

    @abstractmethod
    async def delete_release(self, owner: str, repo: str, release_id: int) -> None:
        """Delete a release. The tag is kept."""

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    @abstractmethod
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
        """Create a repository webhook delivering ``events`` to ``url``."""

    @abstractmethod
    async def list_webhooks(self, owner: str, repo: str, page: int = 1, limit: int = 30) -> list[dict[str, Any]]:
        """List repository webhooks."""

    @abstractmethod
    async def get_webhook(self, owner: str, repo: str, webhook_id: int) -> dict[str, Any]:
        """Get a webhook by ID."""

    @abstractmethod
    async def update_webhook(
        self,
        owner: str,
        repo: str,
        webhook_id: int,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        """Update a webhook (``url``, ``events``, ``active``, ``secret``, ``content_type``)."""

    @abstractmethod
    async def delete_webhook(self, owner: str, repo: str, webhook_id: int) -> None:
        """Delete a webhook."""

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_file(self, owner: str, repo: str, path: str, ref: str | None = None) -> dict[str, Any]:
        """Get a file's contents entry (base64 ``content`` and blob ``sha``)."""

    @abstractmethod
    async def create_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        """Create a file with text ``content`` in one commit."""

    @abstractmethod
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
        """Replace a file's content. ``sha`` is the blob SHA being replaced."""

    @abstractmethod
    async def delete_file(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        sha: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        """Delete a file. ``sha`` is the blob SHA being removed."""

    @abstractmethod
    async def list_files(
        self,
        owner: str,
        repo: str,
        path: str = "",
        ref: str | None = None,
    ) -> list[dict[str, Any]]:
        """List the entries of a directory (repository root by default)."""

    async def upload_project(
        self,
        owner: str,
        repo: str,
        project_path: str | Path,
        message: str,
        branch: str | None = None,
    ) -> UploadResult:
        """Upload every text file below a local directory.

        Each file becomes its own commit: existing files are updated, new
        ones created. VCS and build directories, hidden files, logs and
        files that are not valid UTF-8 are skipped. A failing file is
        recorded in ``errors`` and the upload continues.

        Args:
            owner: Repository owner
            repo: Repository name
            project_path: Local directory to upload
            message: Commit message used for every file
            branch: Target branch (backend default when None)

        Returns:
            UploadResult with the number of uploaded files and per-file errors

        Raises:
            NotADirectoryError: If ``project_path`` is not a directory
        """
        root = Path(project_path)
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        files = await asyncio.to_thread(_collect_upload_files, root)
        log.info("upload_project", owner=owner, repo=repo, path=str(root), files=len(files))

        result = UploadResult()
        for file_path in files:
            relative = file_path.relative_to(root).as_posix()
            try:
                content = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
            except UnicodeDecodeError:
                log.debug("upload_skipped_binary", path=relative)
                continue
            except OSError as e:
                result.errors.append(f"{relative}: {e}")
                continue

            try:
                existing_sha = await self._existing_file_sha(owner, repo, relative, branch)
                if existing_sha:
                    await self.update_file(owner, repo, relative, content, message, existing_sha, branch)
                else:
                    await self.create_file(owner, repo, relative, content, message, branch)
                result.uploaded += 1
            except ProviderAPIError as e:
                log.warning("upload_file_failed", path=relative, error=str(e))
                result.errors.append(f"{relative}: {e}")

        log.info("upload_project_finished", uploaded=result.uploaded, errors=len(result.errors))
        return result

    async def _existing_file_sha(self, owner: str, repo: str, path: str, ref: str | None) -> str | None:
        try:
            entry = await self.get_file(owner, repo, path, ref=ref)
        except ProviderAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return entry.get("sha")


def _collect_upload_files(root: Path) -> list[Path]:
    collected: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in UPLOAD_SKIP_DIRS and not d.startswith("."))
        for filename in sorted(filenames):
            if filename.startswith(".") or filename.endswith(UPLOAD_SKIP_SUFFIXES):
                continue
            collected.append(Path(dirpath) / filename)
    return collected
