"""Repository file tool."""

import base64
import binascii
from typing import Any, Literal

from pydantic import Field

from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.tools.base import RepoInput, ToolContext, VcsTool


class GetFileInput(RepoInput):
    action: Literal["get"]
    path: str = Field(..., min_length=1)
    ref: str | None = Field(default=None, description="Branch, tag or SHA to read from")


class CreateFileInput(RepoInput):
    action: Literal["create"]
    path: str = Field(..., min_length=1)
    content: str
    message: str = Field(..., min_length=1, description="Commit message")
    branch: str | None = None


class UpdateFileInput(RepoInput):
    action: Literal["update"]
    path: str = Field(..., min_length=1)
    content: str
    message: str = Field(..., min_length=1, description="Commit message")
    sha: str | None = Field(default=None, description="Current blob SHA; fetched when omitted")
    branch: str | None = None


class DeleteFileInput(RepoInput):
    action: Literal["delete"]
    path: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1, description="Commit message")
    sha: str | None = Field(default=None, description="Current blob SHA; fetched when omitted")
    branch: str | None = None


class ListFilesInput(RepoInput):
    action: Literal["list"]
    path: str = Field(default="", description="Directory path (repository root by default)")
    ref: str | None = None


class UploadProjectInput(RepoInput):
    action: Literal["upload"]
    project_path: str = Field(..., min_length=1, description="Local directory to upload")
    message: str = Field(default="Upload project files", min_length=1)
    branch: str | None = None


def decode_content(payload: dict[str, Any]) -> str | None:
    """Decode base64 ``content`` of a contents payload, if it is text."""
    if payload.get("encoding") != "base64" or not payload.get("content"):
        return None
    try:
        return base64.b64decode(payload["content"]).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


class FilesTool(VcsTool):
    name = "files"
    description = (
        "Read and write repository files: get, create, update, delete, list a directory, or upload a "
        "local project directory."
    )
    input_models = (
        GetFileInput,
        CreateFileInput,
        UpdateFileInput,
        DeleteFileInput,
        ListFilesInput,
        UploadProjectInput,
    )

    async def _current_sha(self, provider: VcsOperations, owner: str, params: UpdateFileInput | DeleteFileInput) -> str:
        current = await provider.get_file(owner, params.repo, params.path, ref=params.branch)
        sha = current.get("sha")
        if not sha:
            raise ValueError(f"Could not determine the current SHA of {params.path}")
        return sha

    async def _get(self, params: GetFileInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.get_file(owner, params.repo, params.path, ref=params.ref)
        decoded = decode_content(data)
        if decoded is not None:
            data = {**data, "decoded_content": decoded}
        return self.success("get", f"File {params.path} retrieved", data)

    async def _create(self, params: CreateFileInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.create_file(
            owner, params.repo, params.path, params.content, params.message, branch=params.branch
        )
        return self.success("create", f"File {params.path} created", data)

    async def _update(self, params: UpdateFileInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        sha = params.sha or await self._current_sha(provider, owner, params)
        data = await provider.update_file(
            owner, params.repo, params.path, params.content, params.message, sha, branch=params.branch
        )
        return self.success("update", f"File {params.path} updated", data)

    async def _delete(self, params: DeleteFileInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        sha = params.sha or await self._current_sha(provider, owner, params)
        data = await provider.delete_file(owner, params.repo, params.path, params.message, sha, branch=params.branch)
        return self.success("delete", f"File {params.path} deleted", data)

    async def _list(self, params: ListFilesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.list_files(owner, params.repo, params.path, ref=params.ref)
        return self.success("list", f"{len(data)} entries in /{params.path}", data)

    async def _upload(self, params: UploadProjectInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        result = await provider.upload_project(
            owner, params.repo, params.project_path, params.message, branch=params.branch
        )
        message = f"Uploaded {result.uploaded} file(s) to {owner}/{params.repo}"
        if result.errors:
            message += f" with {len(result.errors)} error(s)"
        return self.success("upload", message, result.to_dict())
