"""Security tool.

Always runs against the ``github`` provider; it is unavailable when only
Gitea is configured.
"""

from typing import Literal

from pydantic import Field, model_validator

from vcs_toolkit.enums import Capability
from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.tools.base import PagedRepoInput, RepoInput, ToolContext, VcsTool


class ScanInput(RepoInput):
    action: Literal["scan"]
    scan_type: Literal["code", "secrets", "dependencies", "all"] = "code"
    ref: str | None = Field(default=None, description="Git ref to read code scanning results for")


class VulnerabilitiesInput(PagedRepoInput):
    action: Literal["vulnerabilities"]
    state: Literal["open", "dismissed", "fixed", "auto_dismissed"] | None = None
    severity: Literal["low", "medium", "high", "critical"] | None = None
    ecosystem: str | None = None
    package_name: str | None = None


class AlertsInput(RepoInput):
    action: Literal["alerts"]
    alert_number: int = Field(..., ge=1)
    operation: Literal["dismiss", "reopen"] = "dismiss"
    dismiss_reason: (
        Literal["fix_started", "inaccurate", "no_bandwidth", "not_used", "tolerable_risk"] | None
    ) = None
    dismiss_comment: str | None = None

    @model_validator(mode="after")
    def require_dismiss_reason(self) -> "AlertsInput":
        if self.operation == "dismiss" and self.dismiss_reason is None:
            raise ValueError("dismiss_reason is required to dismiss an alert")
        return self


class PoliciesInput(RepoInput):
    action: Literal["policies"]
    operation: Literal["get", "enable", "disable"] = "get"
    policy: str | None = Field(
        default=None,
        description=(
            "Feature to toggle: vulnerability_alerts, automated_security_fixes, advanced_security, "
            "secret_scanning or secret_scanning_push_protection"
        ),
    )

    @model_validator(mode="after")
    def require_policy(self) -> "PoliciesInput":
        if self.operation != "get" and not self.policy:
            raise ValueError(f"policy is required to {self.operation} a security feature")
        return self


class ComplianceInput(RepoInput):
    action: Literal["compliance"]
    framework: str | None = Field(default=None, description="Label echoed in the report, e.g. SOC2")


class DependenciesInput(RepoInput):
    action: Literal["dependencies"]
    ecosystem: str | None = Field(default=None, description="Package URL type, e.g. pypi or npm")
    package_name: str | None = None


class AdvisoriesInput(PagedRepoInput):
    action: Literal["advisories"]
    state: Literal["triage", "draft", "published", "closed"] | None = None


class SecurityTool(VcsTool):
    name = "security"
    description = (
        "GitHub security features: scan alerts, Dependabot vulnerabilities, alert triage, security "
        "feature policies, compliance checks, dependency analysis and repository advisories."
    )
    input_models = (
        ScanInput,
        VulnerabilitiesInput,
        AlertsInput,
        PoliciesInput,
        ComplianceInput,
        DependenciesInput,
        AdvisoriesInput,
    )
    fixed_provider = "github"

    async def _scan(self, params: ScanInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.RUN_SECURITY_SCAN):
            return self.unsupported("scan", Capability.RUN_SECURITY_SCAN)

        owner = await self.owner(params, provider)
        data = await provider.run_security_scan(owner, params.repo, scan_type=params.scan_type, ref=params.ref)
        return self.success("scan", f"{data.get('total_count', 0)} open findings ({params.scan_type})", data)

    async def _vulnerabilities(
        self, params: VulnerabilitiesInput, provider: VcsOperations, context: ToolContext
    ) -> ToolResult:
        if not supports(provider, Capability.LIST_VULNERABILITIES):
            return self.unsupported("vulnerabilities", Capability.LIST_VULNERABILITIES, {"vulnerabilities": []})

        owner = await self.owner(params, provider)
        data = await provider.list_vulnerabilities(
            owner,
            params.repo,
            state=params.state,
            severity=params.severity,
            ecosystem=params.ecosystem,
            package_name=params.package_name,
            page=params.page,
            limit=params.limit,
        )
        return self.success("vulnerabilities", f"{data.get('total_count', 0)} vulnerabilities found", data)

    async def _alerts(self, params: AlertsInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.MANAGE_SECURITY_ALERTS):
            return self.unsupported("alerts", Capability.MANAGE_SECURITY_ALERTS)

        owner = await self.owner(params, provider)
        data = await provider.manage_security_alerts(
            owner,
            params.repo,
            params.alert_number,
            operation=params.operation,
            dismiss_reason=params.dismiss_reason,
            dismiss_comment=params.dismiss_comment,
        )
        verb = "dismissed" if params.operation == "dismiss" else "reopened"
        return self.success("alerts", f"Alert {params.alert_number} {verb}", data)

    async def _policies(self, params: PoliciesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.MANAGE_SECURITY_POLICIES):
            return self.unsupported("policies", Capability.MANAGE_SECURITY_POLICIES)

        owner = await self.owner(params, provider)
        data = await provider.manage_security_policies(
            owner, params.repo, operation=params.operation, policy=params.policy
        )
        if params.operation == "get":
            message = f"Security policies of {owner}/{params.repo} retrieved"
        else:
            message = f"{params.policy} {params.operation}d"
        return self.success("policies", message, data)

    async def _compliance(self, params: ComplianceInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.CHECK_COMPLIANCE):
            return self.unsupported("compliance", Capability.CHECK_COMPLIANCE)

        owner = await self.owner(params, provider)
        data = await provider.check_compliance(owner, params.repo, framework=params.framework)
        return self.success(
            "compliance",
            f"{data.get('passed', 0)}/{data.get('total', 0)} compliance checks passed",
            data,
        )

    async def _dependencies(
        self, params: DependenciesInput, provider: VcsOperations, context: ToolContext
    ) -> ToolResult:
        if not supports(provider, Capability.ANALYZE_DEPENDENCIES):
            return self.unsupported("dependencies", Capability.ANALYZE_DEPENDENCIES)

        owner = await self.owner(params, provider)
        data = await provider.analyze_dependencies(
            owner, params.repo, ecosystem=params.ecosystem, package_name=params.package_name
        )
        return self.success("dependencies", f"{data.get('total_packages', 0)} dependencies analyzed", data)

    async def _advisories(self, params: AdvisoriesInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.LIST_SECURITY_ADVISORIES):
            return self.unsupported("advisories", Capability.LIST_SECURITY_ADVISORIES, {"advisories": []})

        owner = await self.owner(params, provider)
        data = await provider.list_security_advisories(
            owner, params.repo, state=params.state, page=params.page, limit=params.limit
        )
        return self.success("advisories", f"{data.get('total_count', 0)} security advisories found", data)
