"""Webhook tool."""

from typing import Any, Literal

from pydantic import Field

from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool, updates_from

ContentType = Literal["json", "form"]


class CreateWebhookInput(RepoInput):
    action: Literal["create"]
    url: str = Field(..., min_length=1, description="Payload delivery URL")
    events: list[str] | None = Field(default=None, description="Subscribed events (default: push)")
    secret: str | None = None
    content_type: ContentType = "json"
    active: bool = True


class ListWebhooksInput(PagedRepoInput):
    action: Literal["list"]


class GetWebhookInput(RepoInput):
    action: Literal["get"]
    webhook_id: int = Field(..., ge=1)


class UpdateWebhookInput(RepoInput):
    action: Literal["update"]
    webhook_id: int = Field(..., ge=1)
    url: str | None = None
    events: list[str] | None = None
    secret: str | None = None
    content_type: ContentType | None = None
    active: bool | None = None


class DeleteWebhookInput(RepoInput):
    action: Literal["delete"]
    webhook_id: int = Field(..., ge=1)


class WebhooksTool(VcsTool):
    name = "webhooks"
    description = "Manage repository webhooks: create, list, get, update and delete."
    input_models = (
        CreateWebhookInput,
        ListWebhooksInput,
        GetWebhookInput,
        UpdateWebhookInput,
        DeleteWebhookInput,
    )

    async def _create(self, params: CreateWebhookInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.create_webhook(
            owner,
            params.repo,
            params.url,
            events=params.events,
            secret=params.secret,
            content_type=params.content_type,
            active=params.active,
        )
        return self.success("create", f"Webhook for {params.url} created", data)

    async def _list(self, params: ListWebhooksInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.list_webhooks(owner, params.repo, page=params.page, limit=params.limit)
        return self.success("list", f"{len(data)} webhooks found", data)

    async def _get(self, params: GetWebhookInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        data = await provider.get_webhook(owner, params.repo, params.webhook_id)
        return self.success("get", f"Webhook {params.webhook_id} retrieved", data)

    async def _update(self, params: UpdateWebhookInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        updates: dict[str, Any] = updates_from(params, "url", "events", "secret", "content_type", "active")
        if not updates:
            raise ValueError("No webhook fields to update")

        owner = await self.owner(params, provider)
        data = await provider.update_webhook(owner, params.repo, params.webhook_id, updates)
        return self.success("update", f"Webhook {params.webhook_id} updated", data)

    async def _delete(self, params: DeleteWebhookInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        owner = await self.owner(params, provider)
        await provider.delete_webhook(owner, params.repo, params.webhook_id)
        return self.success("delete", f"Webhook {params.webhook_id} deleted", {"deleted": True})
