"""Tag tool."""

from typing import Literal

from pydantic import Field

from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool


class CreateTagInput(RepoInput):
    action: Literal["create"]
    tag_name: str = Field(..., min_length=1)
    target: str = Field(default="main", min_length=1, description="Branch name or commit SHA to tag")
    message: str | None = Field(default=None, description="Annotation message; creates an annotated tag")


class ListTagsInput(PagedRepoInput):
    action: Literal["list"]


class DeleteTagInput(RepoInput):
    action: Literal["delete"]
    tag_name: str = Field(..., min_length=1)


class TagsTool(VcsTool):
    name = "tags"
    description = "Manage tags: create (lightweight or annotated), list and delete."
    input_models = (CreateTagInput, ListTagsInput, DeleteTagInput)

    async def _create(self, params: CreateTagInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.create_tag(owner, params.repo, params.tag_name, params.target, message=params.message)
        return self.success("create", f"Tag {params.tag_name} created at {params.target}", data)

    async def _list(self, params: ListTagsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.list_tags(owner, params.repo, page=params.page, limit=params.limit)
        return self.success("list", f"{len(data)} tags found", data)

    async def _delete(self, params: DeleteTagInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        await provider.delete_tag(owner, params.repo, params.tag_name)
        return self.success("delete", f"Tag {params.tag_name} deleted", {"deleted": True})
