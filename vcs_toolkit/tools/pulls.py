"""Pull request tool."""

from typing import Any, Literal

from pydantic import Field

from vcs_toolkit.enums import Capability
from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool, updates_from

PullState = Literal["open", "closed", "all"]


class CreatePullInput(RepoInput):
    action: Literal["create"]
    title: str = Field(..., min_length=1)
    head: str = Field(..., min_length=1, description="Branch with the changes")
    base: str = Field(default="main", min_length=1, description="Branch to merge into")
    body: str | None = None
    draft: bool = False


class ListPullsInput(PagedRepoInput):
    action: Literal["list"]
    state: PullState = "open"


class GetPullInput(RepoInput):
    action: Literal["get"]
    pull_number: int = Field(..., ge=1)


class UpdatePullInput(RepoInput):
    action: Literal["update"]
    pull_number: int = Field(..., ge=1)
    title: str | None = None
    body: str | None = None
    state: Literal["open", "closed"] | None = None
    base: str | None = None


class MergePullInput(RepoInput):
    action: Literal["merge"]
    pull_number: int = Field(..., ge=1)
    merge_method: Literal["merge", "squash", "rebase"] = "merge"
    commit_title: str | None = None
    commit_message: str | None = None


class SearchPullsInput(PagedRepoInput):
    action: Literal["search"]
    query: str = Field(..., min_length=1)
    state: PullState | None = None


class PullsTool(VcsTool):
    name = "pulls"
    description = "Manage pull requests: create, list, get, update, merge and search."
    input_models = (
        CreatePullInput,
        ListPullsInput,
        GetPullInput,
        UpdatePullInput,
        MergePullInput,
        SearchPullsInput,
    )

    async def _create(self, params: CreatePullInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.create_pull_request(
            owner,
            params.repo,
            params.title,
            params.head,
            params.base,
            body=params.body,
            draft=params.draft,
        )
        return self.success("create", f"Pull request #{data.get('number')} opened", data)

    async def _list(self, params: ListPullsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.list_pull_requests(
            owner, params.repo, params.state, page=params.page, limit=params.limit
        )
        return self.success("list", f"{len(data)} {params.state} pull requests found", data)

    async def _get(self, params: GetPullInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.get_pull_request(owner, params.repo, params.pull_number)
        return self.success("get", f"Pull request #{params.pull_number} retrieved", data)

    async def _update(self, params: UpdatePullInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        updates: dict[str, Any] = updates_from(params, "title", "body", "state", "base")
        if not updates:
            raise ValueError("No pull request fields to update")

        owner = await self.owner(params, provider)
        data = await provider.update_pull_request(owner, params.repo, params.pull_number, updates)
        return self.success("update", f"Pull request #{params.pull_number} updated", data)

    async def _merge(self, params: MergePullInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.merge_pull_request(
            owner,
            params.repo,
            params.pull_number,
            merge_method=params.merge_method,
            title=params.commit_title,
            message=params.commit_message,
        )
        return self.success("merge", f"Pull request #{params.pull_number} merged ({params.merge_method})", data)

    async def _search(self, params: SearchPullsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.SEARCH_ISSUES):
            return self.unsupported("search", Capability.SEARCH_ISSUES, {"items": []})

        owner = await self.owner(params, provider)
        data = await provider.search_issues(
            owner,
            params.repo,
            params.query,
            kind="pr",
            state=params.state,
            page=params.page,
            limit=params.limit,
        )
        return self.success("search", f"{len(data)} pull requests matching '{params.query}'", data)
