"""User tool."""

from typing import Literal

from pydantic import Field

from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.providers.user_detection import get_current_user
from vcs_toolkit.tools.base import PagedInput, ToolContext, ToolInput, VcsTool


class MeInput(ToolInput):
    action: Literal["me"]


class GetUserInput(ToolInput):
    action: Literal["get"]
    username: str = Field(..., min_length=1)


class SearchUsersInput(PagedInput):
    action: Literal["search"]
    query: str = Field(..., min_length=1)


class ListOrgsInput(PagedInput):
    action: Literal["orgs"]
    username: str | None = Field(default=None, description="Defaults to the authenticated user")


class UsersTool(VcsTool):
    name = "users"
    description = "Look up users: the authenticated user, a user profile, user search and organization membership."
    input_models = (MeInput, GetUserInput, SearchUsersInput, ListOrgsInput)

    async def _me(self, params: MeInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        user = await get_current_user(provider)
        return self.success("me", f"Authenticated as {user.login}", user.raw or {"login": user.login})

    async def _get(self, params: GetUserInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        data = await provider.get_user(params.username)
        return self.success("get", f"User {params.username} retrieved", data)

    async def _search(self, params: SearchUsersInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        data = await provider.search_users(params.query, page=params.page, limit=params.limit)
        return self.success("search", f"{len(data)} users found", data)

    async def _orgs(self, params: ListOrgsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        username = params.username
        if not username:
            user = await get_current_user(provider)
            username = user.login
        data = await provider.list_user_organizations(username, page=params.page, limit=params.limit)
        return self.success("orgs", f"{len(data)} organizations found for {username}", data)
