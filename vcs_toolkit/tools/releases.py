"""Release tool."""

from typing import Any, Literal

from pydantic import Field

from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool, updates_from


class CreateReleaseInput(RepoInput):
    action: Literal["create"]
    tag_name: str = Field(..., min_length=1)
    name: str | None = Field(default=None, description="Release title (defaults to the tag name)")
    body: str | None = None
    draft: bool = False
    prerelease: bool = False
    target: str | None = Field(default=None, description="Commitish the tag is created from when it does not exist")


class ListReleasesInput(PagedRepoInput):
    action: Literal["list"]


class GetReleaseInput(RepoInput):
    action: Literal["get"]
    release_id: int = Field(..., ge=1)


class UpdateReleaseInput(RepoInput):
    action: Literal["update"]
    release_id: int = Field(..., ge=1)
    tag_name: str | None = None
    name: str | None = None
    body: str | None = None
    draft: bool | None = None
    prerelease: bool | None = None


class DeleteReleaseInput(RepoInput):
    action: Literal["delete"]
    release_id: int = Field(..., ge=1)


class ReleasesTool(VcsTool):
    name = "releases"
    description = "Manage releases: create, list, get, update and delete."
    input_models = (
        CreateReleaseInput,
        ListReleasesInput,
        GetReleaseInput,
        UpdateReleaseInput,
        DeleteReleaseInput,
    )

    async def _create(self, params: CreateReleaseInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.create_release(
            owner,
            params.repo,
            params.tag_name,
            name=params.name,
            body=params.body,
            draft=params.draft,
            prerelease=params.prerelease,
            target=params.target,
        )
        return self.success("create", f"Release {params.name or params.tag_name} created", data)

    async def _list(self, params: ListReleasesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.list_releases(owner, params.repo, page=params.page, limit=params.limit)
        return self.success("list", f"{len(data)} releases found", data)

    async def _get(self, params: GetReleaseInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.get_release(owner, params.repo, params.release_id)
        return self.success("get", f"Release {params.release_id} retrieved", data)

    async def _update(self, params: UpdateReleaseInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        updates: dict[str, Any] = updates_from(params, "tag_name", "name", "body", "draft", "prerelease")
        if not updates:
            raise ValueError("No release fields to update")

        owner = await self.owner(params, provider)
        data = await provider.update_release(owner, params.repo, params.release_id, updates)
        return self.success("update", f"Release {params.release_id} updated", data)

    async def _delete(self, params: DeleteReleaseInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        await provider.delete_release(owner, params.repo, params.release_id)
        return self.success("delete", f"Release {params.release_id} deleted", {"deleted": True})
