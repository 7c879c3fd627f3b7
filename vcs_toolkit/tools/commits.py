"""Commit tool: remote history plus local push/pull through the git CLI."""

from typing import Literal

from pydantic import Field

from vcs_toolkit.enums import Capability
from vcs_toolkit.models.domain import FileChange, ToolResult
from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, ToolInput, VcsTool
from vcs_toolkit.utils.async_subprocess import quote


class ListCommitsInput(PagedRepoInput):
    action: Literal["list"]
    branch: str | None = Field(default=None, description="Branch or SHA to start listing from")


class GetCommitInput(RepoInput):
    action: Literal["get"]
    sha: str = Field(..., min_length=1)


class CreateCommitInput(RepoInput):
    action: Literal["create"]
    message: str = Field(..., min_length=1, description="Commit message")
    branch: str = Field(default="main", min_length=1, description="Branch to commit to")
    files: list[FileChange] = Field(..., min_length=1, description="File changes included in the commit")


class CompareCommitsInput(RepoInput):
    action: Literal["compare"]
    base: str = Field(..., min_length=1)
    head: str = Field(..., min_length=1)


class SearchCommitsInput(PagedRepoInput):
    action: Literal["search"]
    query: str = Field(..., min_length=1)


class LocalGitInput(ToolInput):
    path: str = Field(default=".", min_length=1, description="Local repository directory")
    remote: str = Field(default="origin", min_length=1)
    branch: str | None = Field(default=None, description="Branch to push or pull (current branch if omitted)")


class PushInput(LocalGitInput):
    action: Literal["push"]
    set_upstream: bool = False
    force: bool = Field(default=False, description="Force push with lease")


class PullInput(LocalGitInput):
    action: Literal["pull"]
    rebase: bool = False


class CommitsTool(VcsTool):
    name = "commits"
    description = (
        "Work with commits: list, get, create a multi-file commit, compare refs and search messages "
        "remotely, or push/pull a local clone."
    )
    input_models = (
        ListCommitsInput,
        GetCommitInput,
        CreateCommitInput,
        CompareCommitsInput,
        SearchCommitsInput,
        PushInput,
        PullInput,
    )

    async def _list(self, params: ListCommitsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.list_commits(owner, params.repo, params.branch, page=params.page, limit=params.limit)
        return self.success("list", f"{len(data)} commits found", data)

    async def _get(self, params: GetCommitInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.get_commit(owner, params.repo, params.sha)
        return self.success("get", f"Commit {params.sha} retrieved", data)

    async def _create(self, params: CreateCommitInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.create_commit(owner, params.repo, params.message, params.branch, params.files)
        return self.success("create", f"Commit created on {params.branch} with {len(params.files)} file(s)", data)

    async def _compare(self, params: CompareCommitsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.COMPARE_COMMITS):
            return self.unsupported("compare", Capability.COMPARE_COMMITS, {"base": params.base, "head": params.head})

        owner = await self.owner(params, provider)
        data = await provider.compare_commits(owner, params.repo, params.base, params.head)
        return self.success("compare", f"Compared {params.base}...{params.head}", data)

    async def _search(self, params: SearchCommitsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.SEARCH_COMMITS):
            return self.unsupported("search", Capability.SEARCH_COMMITS, {"total_count": 0, "items": []})

        owner = await self.owner(params, provider)
        data = await provider.search_commits(owner, params.repo, params.query, page=params.page, limit=params.limit)
        return self.success("search", f"Commits matching '{params.query}' retrieved", data)

    async def _push(self, params: PushInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        parts = ["git", "-C", quote(params.path), "push"]
        if params.set_upstream:
            parts.append("-u")
        if params.force:
            parts.append("--force-with-lease")
        parts.append(quote(params.remote))
        if params.branch:
            parts.append(quote(params.branch))

        result = await self.run_git(context, " ".join(parts), "Push local commits")
        return self.success("push", f"Pushed to {params.remote}", {"path": params.path, "output": result.output})

    async def _pull(self, params: PullInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        parts = ["git", "-C", quote(params.path), "pull"]
        if params.rebase:
            parts.append("--rebase")
        parts.append(quote(params.remote))
        if params.branch:
            parts.append(quote(params.branch))

        result = await self.run_git(context, " ".join(parts), "Pull remote commits")
        return self.success("pull", f"Pulled from {params.remote}", {"path": params.path, "output": result.output})
