"""Issue tracking tool."""

from typing import Any, Literal

from pydantic import Field

from vcs_toolkit.enums import Capability
from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool, updates_from

IssueState = Literal["open", "closed", "all"]


class CreateIssueInput(RepoInput):
    action: Literal["create"]
    title: str = Field(..., min_length=1)
    body: str | None = None
    labels: list[str] | None = Field(default=None, description="Label names; missing labels are created on Gitea")
    assignees: list[str] | None = None


class ListIssuesInput(PagedRepoInput):
    action: Literal["list"]
    state: IssueState = "open"


class GetIssueInput(RepoInput):
    action: Literal["get"]
    issue_number: int = Field(..., ge=1)


class UpdateIssueInput(RepoInput):
    action: Literal["update"]
    issue_number: int = Field(..., ge=1)
    title: str | None = None
    body: str | None = None
    state: Literal["open", "closed"] | None = None
    assignees: list[str] | None = None


class CloseIssueInput(RepoInput):
    action: Literal["close"]
    issue_number: int = Field(..., ge=1)
    comment: str | None = Field(default=None, description="Comment posted before closing")


class CommentIssueInput(RepoInput):
    action: Literal["comment"]
    issue_number: int = Field(..., ge=1)
    body: str = Field(..., min_length=1)


class SearchIssuesInput(PagedRepoInput):
    action: Literal["search"]
    query: str = Field(..., min_length=1)
    state: IssueState | None = None


class IssuesTool(VcsTool):
    name = "issues"
    description = "Manage issues: create, list, get, update, close, comment and search."
    input_models = (
        CreateIssueInput,
        ListIssuesInput,
        GetIssueInput,
        UpdateIssueInput,
        CloseIssueInput,
        CommentIssueInput,
        SearchIssuesInput,
    )

    async def _create(self, params: CreateIssueInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.create_issue(
            owner,
            params.repo,
            params.title,
            body=params.body,
            labels=params.labels,
            assignees=params.assignees,
        )
        return self.success("create", f"Issue #{data.get('number')} created", data)

    async def _list(self, params: ListIssuesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.list_issues(owner, params.repo, params.state, page=params.page, limit=params.limit)
        return self.success("list", f"{len(data)} {params.state} issues found", data)

    async def _get(self, params: GetIssueInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.get_issue(owner, params.repo, params.issue_number)
        return self.success("get", f"Issue #{params.issue_number} retrieved", data)

    async def _update(self, params: UpdateIssueInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        updates: dict[str, Any] = updates_from(params, "title", "body", "state", "assignees")
        if not updates:
            raise ValueError("No issue fields to update")

        owner = await self.owner(params, provider)
        data = await provider.update_issue(owner, params.repo, params.issue_number, updates)
        return self.success("update", f"Issue #{params.issue_number} updated", data)

    async def _close(self, params: CloseIssueInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        if params.comment:
            await provider.add_comment(owner, params.repo, params.issue_number, params.comment)
        data = await provider.update_issue(owner, params.repo, params.issue_number, {"state": "closed"})
        return self.success("close", f"Issue #{params.issue_number} closed", data)

    async def _comment(self, params: CommentIssueInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.add_comment(owner, params.repo, params.issue_number, params.body)
        return self.success("comment", f"Comment added to #{params.issue_number}", data)

    async def _search(self, params: SearchIssuesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.SEARCH_ISSUES):
            return self.unsupported("search", Capability.SEARCH_ISSUES, {"items": []})

        owner = await self.owner(params, provider)
        data = await provider.search_issues(
            owner,
            params.repo,
            params.query,
            kind="issue",
            state=params.state,
            page=params.page,
            limit=params.limit,
        )
        return self.success("search", f"{len(data)} issues matching '{params.query}'", data)
