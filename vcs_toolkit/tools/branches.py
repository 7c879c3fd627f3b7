"""Branch management tool."""

from typing import Literal

from pydantic import Field

from vcs_toolkit.enums import Capability
from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool


class CreateBranchInput(RepoInput):
    action: Literal["create"]
    branch: str = Field(..., min_length=1, description="New branch name")
    from_branch: str = Field(default="main", min_length=1, description="Branch to start from")


class ListBranchesInput(PagedRepoInput):
    action: Literal["list"]


class GetBranchInput(RepoInput):
    action: Literal["get"]
    branch: str = Field(..., min_length=1)


class DeleteBranchInput(RepoInput):
    action: Literal["delete"]
    branch: str = Field(..., min_length=1)


class CompareBranchesInput(RepoInput):
    action: Literal["compare"]
    base: str = Field(..., min_length=1)
    head: str = Field(..., min_length=1)


class BranchesTool(VcsTool):
    name = "branches"
    description = "Manage branches: create, list, get, delete, and compare two branches."
    input_models = (
        CreateBranchInput,
        ListBranchesInput,
        GetBranchInput,
        DeleteBranchInput,
        CompareBranchesInput,
    )

    async def _create(self, params: CreateBranchInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.create_branch(owner, params.repo, params.branch, params.from_branch)
        return self.success("create", f"Branch {params.branch} created from {params.from_branch}", data)

    async def _list(self, params: ListBranchesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.list_branches(owner, params.repo, page=params.page, limit=params.limit)
        return self.success("list", f"{len(data)} branches found", data)

    async def _get(self, params: GetBranchInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.get_branch(owner, params.repo, params.branch)
        return self.success("get", f"Branch {params.branch} retrieved", data)

    async def _delete(self, params: DeleteBranchInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        await provider.delete_branch(owner, params.repo, params.branch)
        return self.success("delete", f"Branch {params.branch} deleted", {"deleted": True})

    async def _compare(self, params: CompareBranchesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.COMPARE_COMMITS):
            return self.unsupported("compare", Capability.COMPARE_COMMITS, {"base": params.base, "head": params.head})

        owner = await self.owner(params, provider)
        data = await provider.compare_commits(owner, params.repo, params.base, params.head)
        return self.success("compare", f"Compared {params.base}...{params.head}", data)
