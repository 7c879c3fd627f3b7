"""Deployment tool."""

from typing import Any, Literal

from pydantic import Field

from vcs_toolkit.enums import Capability
from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool

DeploymentState = Literal["error", "failure", "inactive", "in_progress", "queued", "pending", "success"]


class ListDeploymentsInput(PagedRepoInput):
    action: Literal["list"]
    environment: str | None = None
    ref: str | None = None


class CreateDeploymentInput(RepoInput):
    action: Literal["create"]
    ref: str = Field(..., min_length=1, description="Branch, tag or SHA to deploy")
    environment: str = "production"
    description: str | None = None
    task: str | None = Field(default=None, description="Deployment task, e.g. deploy or deploy:migrations")
    auto_merge: bool = False
    required_contexts: list[str] | None = Field(
        default=None, description="Status contexts that must pass; an empty list skips checks"
    )
    payload: dict[str, Any] | None = None


class UpdateStatusInput(RepoInput):
    action: Literal["update-status"]
    deployment_id: int = Field(..., ge=1)
    state: DeploymentState
    description: str | None = None
    log_url: str | None = None
    environment_url: str | None = None


class ListEnvironmentsInput(PagedRepoInput):
    action: Literal["environments"]


class RollbackInput(RepoInput):
    action: Literal["rollback"]
    deployment_id: int = Field(..., ge=1, description="Deployment to roll back from")
    description: str | None = None


class DeleteDeploymentInput(RepoInput):
    action: Literal["delete"]
    deployment_id: int = Field(..., ge=1)


class DeploymentsTool(VcsTool):
    name = "deployments"
    description = (
        "Manage deployments: list, create, update status, list environments, roll back to the previous "
        "deployment and delete."
    )
    input_models = (
        ListDeploymentsInput,
        CreateDeploymentInput,
        UpdateStatusInput,
        ListEnvironmentsInput,
        RollbackInput,
        DeleteDeploymentInput,
    )

    async def _list(self, params: ListDeploymentsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.LIST_DEPLOYMENTS):
            return self.unsupported("list", Capability.LIST_DEPLOYMENTS, {"deployments": []})

        owner = await self.owner(params, provider)
        data = await provider.list_deployments(
            owner,
            params.repo,
            environment=params.environment,
            ref=params.ref,
            page=params.page,
            limit=params.limit,
        )
        return self.success("list", f"{len(data)} deployments found", data)

    async def _create(self, params: CreateDeploymentInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.CREATE_DEPLOYMENT):
            return self.unsupported("create", Capability.CREATE_DEPLOYMENT, {"ref": params.ref})

        owner = await self.owner(params, provider)
        data = await provider.create_deployment(
            owner,
            params.repo,
            params.ref,
            environment=params.environment,
            description=params.description,
            task=params.task,
            auto_merge=params.auto_merge,
            required_contexts=params.required_contexts,
            payload=params.payload,
        )
        return self.success("create", f"Deployment of {params.ref} to {params.environment} created", data)

    async def _update_status(self, params: UpdateStatusInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.UPDATE_DEPLOYMENT_STATUS):
            return self.unsupported(
                "update-status", Capability.UPDATE_DEPLOYMENT_STATUS, {"deployment_id": params.deployment_id}
            )

        owner = await self.owner(params, provider)
        data = await provider.update_deployment_status(
            owner,
            params.repo,
            params.deployment_id,
            params.state,
            description=params.description,
            log_url=params.log_url,
            environment_url=params.environment_url,
        )
        return self.success("update-status", f"Deployment {params.deployment_id} marked {params.state}", data)

    async def _environments(
        self, params: ListEnvironmentsInput, provider: VcsOperations, context: ToolContext
    ) -> ToolResult:
        if not supports(provider, Capability.LIST_ENVIRONMENTS):
            return self.unsupported("environments", Capability.LIST_ENVIRONMENTS, {"total_count": 0, "environments": []})

        owner = await self.owner(params, provider)
        data = await provider.list_environments(owner, params.repo, page=params.page, limit=params.limit)
        return self.success("environments", f"{data.get('total_count', 0)} environments found", data)

    async def _rollback(self, params: RollbackInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.ROLLBACK_DEPLOYMENT):
            return self.unsupported("rollback", Capability.ROLLBACK_DEPLOYMENT, {"deployment_id": params.deployment_id})

        owner = await self.owner(params, provider)
        data = await provider.rollback_deployment(
            owner, params.repo, params.deployment_id, description=params.description
        )
        return self.success("rollback", f"Deployment {params.deployment_id} rolled back", data)

    async def _delete(self, params: DeleteDeploymentInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.DELETE_DEPLOYMENT):
            return self.unsupported("delete", Capability.DELETE_DEPLOYMENT, {"deployment_id": params.deployment_id})

        owner = await self.owner(params, provider)
        data = await provider.delete_deployment(owner, params.repo, params.deployment_id)
        return self.success("delete", f"Deployment {params.deployment_id} deleted", data)
