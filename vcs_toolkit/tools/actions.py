"""CI workflow tool (GitHub Actions)."""

from typing import Literal

from pydantic import Field

from vcs_toolkit.enums import Capability
from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool


class ListRunsInput(PagedRepoInput):
    action: Literal["list-runs"]
    branch: str | None = None
    status: str | None = Field(default=None, description="Run status or conclusion, e.g. completed, failure, in_progress")


class CancelRunInput(RepoInput):
    action: Literal["cancel"]
    run_id: int = Field(..., ge=1)


class RerunInput(RepoInput):
    action: Literal["rerun"]
    run_id: int = Field(..., ge=1)


class ListArtifactsInput(PagedRepoInput):
    action: Literal["artifacts"]
    run_id: int | None = Field(default=None, ge=1, description="Limit to one workflow run")


class DownloadArtifactInput(RepoInput):
    action: Literal["download-artifact"]
    artifact_id: int = Field(..., ge=1)
    download_path: str | None = Field(default=None, description="Local file the zip archive is written to")


class ListSecretsInput(PagedRepoInput):
    action: Literal["secrets"]


class ListJobsInput(PagedRepoInput):
    action: Literal["jobs"]
    run_id: int = Field(..., ge=1)


class ActionsTool(VcsTool):
    name = "actions"
    description = (
        "Inspect and control CI workflows: list runs, cancel, rerun, list and download artifacts, "
        "list secret names and jobs."
    )
    input_models = (
        ListRunsInput,
        CancelRunInput,
        RerunInput,
        ListArtifactsInput,
        DownloadArtifactInput,
        ListSecretsInput,
        ListJobsInput,
    )

    async def _list_runs(self, params: ListRunsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.LIST_WORKFLOW_RUNS):
            return self.unsupported(
                "list-runs", Capability.LIST_WORKFLOW_RUNS, {"total_count": 0, "workflow_runs": []}
            )

        owner = await self.owner(params, provider)
        data = await provider.list_workflow_runs(
            owner,
            params.repo,
            branch=params.branch,
            status=params.status,
            page=params.page,
            limit=params.limit,
        )
        return self.success("list-runs", f"{data.get('total_count', 0)} workflow runs found", data)

    async def _cancel(self, params: CancelRunInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.CANCEL_WORKFLOW_RUN):
            return self.unsupported("cancel", Capability.CANCEL_WORKFLOW_RUN, {"run_id": params.run_id})

        owner = await self.owner(params, provider)
        data = await provider.cancel_workflow_run(owner, params.repo, params.run_id)
        return self.success("cancel", f"Workflow run {params.run_id} cancelled", data)

    async def _rerun(self, params: RerunInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.RERUN_WORKFLOW):
            return self.unsupported("rerun", Capability.RERUN_WORKFLOW, {"run_id": params.run_id})

        owner = await self.owner(params, provider)
        data = await provider.rerun_workflow(owner, params.repo, params.run_id)
        return self.success("rerun", f"Workflow run {params.run_id} re-run requested", data)

    async def _artifacts(self, params: ListArtifactsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.LIST_ARTIFACTS):
            return self.unsupported("artifacts", Capability.LIST_ARTIFACTS, {"total_count": 0, "artifacts": []})

        owner = await self.owner(params, provider)
        data = await provider.list_artifacts(
            owner, params.repo, run_id=params.run_id, page=params.page, limit=params.limit
        )
        return self.success("artifacts", f"{data.get('total_count', 0)} artifacts found", data)

    async def _download_artifact(
        self, params: DownloadArtifactInput, provider: VcsOperations, context: ToolContext
    ) -> ToolResult:
        if not supports(provider, Capability.DOWNLOAD_ARTIFACT):
            return self.unsupported(
                "download-artifact", Capability.DOWNLOAD_ARTIFACT, {"artifact_id": params.artifact_id}
            )

        owner = await self.owner(params, provider)
        data = await provider.download_artifact(
            owner, params.repo, params.artifact_id, download_path=params.download_path
        )
        return self.success("download-artifact", f"Artifact {params.artifact_id} retrieved", data)

    async def _secrets(self, params: ListSecretsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.LIST_SECRETS):
            return self.unsupported("secrets", Capability.LIST_SECRETS, {"total_count": 0, "secrets": []})

        owner = await self.owner(params, provider)
        data = await provider.list_secrets(owner, params.repo, page=params.page, limit=params.limit)
        return self.success("secrets", f"{data.get('total_count', 0)} secrets found", data)

    async def _jobs(self, params: ListJobsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.LIST_JOBS):
            return self.unsupported("jobs", Capability.LIST_JOBS, {"total_count": 0, "jobs": []})

        owner = await self.owner(params, provider)
        data = await provider.list_jobs(owner, params.repo, params.run_id, page=params.page, limit=params.limit)
        return self.success("jobs", f"{data.get('total_count', 0)} jobs found for run {params.run_id}", data)
