"""
Domain models shared by providers, tools and the process runner.

Repository, issue, pull request and similar payloads are not modelled
here: providers return the backend's JSON bodies as plain dicts so tools
can pass them through unchanged.

Example:
    Building a failure envelope::

        result = ToolResult(
            success=False,
            action="create",
            message="issues operation failed",
            error="gitea: Not Found (HTTP 404)",
        )
        payload = result.to_dict()
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, model_validator

from vcs_toolkit.enums import FileOperation


@dataclass
class CurrentUser:
    """The authenticated account behind a provider's token.

    ``login`` becomes the implicit ``owner`` of repository-scoped
    operations. Fetched on demand and never cached across calls.
    """

    login: str
    id: int | None = None
    email: str | None = None
    name: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "CurrentUser":
        """Build from a Gitea or GitHub ``/user`` response body."""
        return cls(
            login=data["login"],
            id=data.get("id"),
            email=data.get("email"),
            name=data.get("full_name") or data.get("name"),
            raw=data,
        )


@dataclass
class CommandResult:
    """Outcome of a shell command run by the process runner."""

    exit_code: int
    output: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class UploadResult:
    """Summary of a local directory upload; per-file failures are collected."""

    uploaded: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"uploaded": self.uploaded, "errors": list(self.errors)}


class FileChange(BaseModel):
    """One file touched by a multi-file commit."""

    path: str = Field(..., min_length=1, description="Repository-relative file path")
    content: str | None = Field(default=None, description="New file content (create/update)")
    operation: FileOperation = Field(default=FileOperation.UPDATE, description="Kind of change")
    sha: str | None = Field(default=None, description="Blob SHA of the existing file, if known")

    @model_validator(mode="after")
    def validate_content(self) -> "FileChange":
        """Creates and updates must carry content."""
        if self.operation != FileOperation.DELETE and self.content is None:
            raise ValueError(f"content is required to {self.operation} {self.path}")
        return self


class ToolResult(BaseModel):
    """Uniform result envelope returned by every tool call."""

    success: bool
    action: str
    message: str
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting ``data`` and ``error`` when unset."""
        payload: dict[str, Any] = {
            "success": self.success,
            "action": self.action,
            "message": self.message,
        }
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload
