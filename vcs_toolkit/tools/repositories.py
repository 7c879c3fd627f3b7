"""Repository management tool."""

from typing import Any, Literal

from pydantic import Field

from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.tools.base import PagedInput, RepoInput, ToolContext, ToolInput, VcsTool, updates_from
from vcs_toolkit.utils.async_subprocess import quote


class CreateRepositoryInput(ToolInput):
    action: Literal["create"]
    name: str = Field(..., min_length=1, description="Repository name")
    description: str | None = None
    private: bool = False
    auto_init: bool = Field(default=False, description="Create an initial commit with a README")


class ListRepositoriesInput(PagedInput):
    action: Literal["list"]
    username: str | None = Field(default=None, description="List this user's repositories instead of your own")


class GetRepositoryInput(RepoInput):
    action: Literal["get"]


class UpdateRepositoryInput(RepoInput):
    action: Literal["update"]
    new_name: str | None = Field(default=None, description="Rename the repository")
    description: str | None = None
    private: bool | None = None
    default_branch: str | None = None
    archived: bool | None = None
    has_issues: bool | None = None
    has_wiki: bool | None = None


class DeleteRepositoryInput(RepoInput):
    action: Literal["delete"]


class ForkRepositoryInput(RepoInput):
    action: Literal["fork"]
    organization: str | None = Field(default=None, description="Fork into this organization")


class SearchRepositoriesInput(PagedInput):
    action: Literal["search"]
    query: str = Field(..., min_length=1)


class InitRepositoryInput(RepoInput):
    action: Literal["init"]
    path: str = Field(..., min_length=1, description="Local directory to initialize")


class CloneRepositoryInput(RepoInput):
    action: Literal["clone"]
    path: str | None = Field(default=None, description="Local target directory (defaults to the repository name)")


class RepositoriesTool(VcsTool):
    name = "repositories"
    description = (
        "Manage repositories: create, list, get, update, delete, fork and search remote repositories; "
        "init a local repository wired to a remote, or clone one."
    )
    input_models = (
        CreateRepositoryInput,
        ListRepositoriesInput,
        GetRepositoryInput,
        UpdateRepositoryInput,
        DeleteRepositoryInput,
        ForkRepositoryInput,
        SearchRepositoriesInput,
        InitRepositoryInput,
        CloneRepositoryInput,
    )

    async def _create(self, params: CreateRepositoryInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        data = await provider.create_repository(
            params.name,
            description=params.description,
            private=params.private,
            auto_init=params.auto_init,
        )
        return self.success("create", f"Repository {params.name} created", data)

    async def _list(self, params: ListRepositoriesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        data = await provider.list_repositories(params.username, page=params.page, limit=params.limit)
        return self.success("list", f"{len(data)} repositories found", data)

    async def _get(self, params: GetRepositoryInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.get_repository(owner, params.repo)
        return self.success("get", f"Repository {owner}/{params.repo} retrieved", data)

    async def _update(self, params: UpdateRepositoryInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        updates: dict[str, Any] = updates_from(
            params, "description", "private", "default_branch", "archived", "has_issues", "has_wiki"
        )
        if params.new_name:
            updates["name"] = params.new_name
        if not updates:
            raise ValueError("No repository fields to update")

        owner = await self.owner(params, provider)
        data = await provider.update_repository(owner, params.repo, updates)
        return self.success("update", f"Repository {owner}/{params.repo} updated", data)

    async def _delete(self, params: DeleteRepositoryInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        await provider.delete_repository(owner, params.repo)
        return self.success("delete", f"Repository {owner}/{params.repo} deleted", {"deleted": True})

    async def _fork(self, params: ForkRepositoryInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.fork_repository(owner, params.repo, organization=params.organization)
        return self.success("fork", f"Repository {owner}/{params.repo} forked", data)

    async def _search(self, params: SearchRepositoriesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        data = await provider.search_repositories(params.query, page=params.page, limit=params.limit)
        return self.success("search", f"{len(data)} repositories found", data)

    async def _init(self, params: InitRepositoryInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        url = provider.get_repository_url(owner, params.repo)

        init = await self.run_git(context, f"git init {quote(params.path)}", "Initialize local repository")
        remote = await self.run_git(
            context,
            f"git -C {quote(params.path)} remote add origin {quote(url)}",
            "Add origin remote",
        )
        return self.success(
            "init",
            f"Local repository initialized at {params.path}",
            {"path": params.path, "remote_url": url, "output": init.output + remote.output},
        )

    async def _clone(self, params: CloneRepositoryInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        url = provider.get_repository_url(owner, params.repo)
        path = params.path or params.repo

        result = await self.run_git(context, f"git clone {quote(url)} {quote(path)}", "Clone repository")
        return self.success(
            "clone",
            f"Repository {owner}/{params.repo} cloned into {path}",
            {"path": path, "remote_url": url, "output": result.output},
        )
