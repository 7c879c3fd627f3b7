"""Enumerations for provider names and optional provider capabilities."""

from enum import Enum


class ProviderName(str, Enum):
    """Git hosting backends supported by vcs-toolkit."""

    GITEA = "gitea"
    GITHUB = "github"

    def __str__(self) -> str:
        return self.value


class Capability(str, Enum):
    """Optional operations a provider may implement.

    The value is the method name looked up on the provider instance.
    A provider supports a capability when it exposes a callable attribute
    of that name; see ``vcs_toolkit.providers.base.supports``.
    """

    # Commits and search
    COMPARE_COMMITS = "compare_commits"
    SEARCH_COMMITS = "search_commits"
    SEARCH_ISSUES = "search_issues"

    # Code review
    LIST_PULL_REQUEST_FILES = "list_pull_request_files"
    CREATE_PULL_REQUEST_REVIEW = "create_pull_request_review"

    # Actions / CI
    LIST_WORKFLOW_RUNS = "list_workflow_runs"
    CANCEL_WORKFLOW_RUN = "cancel_workflow_run"
    RERUN_WORKFLOW = "rerun_workflow"
    LIST_ARTIFACTS = "list_artifacts"
    DOWNLOAD_ARTIFACT = "download_artifact"
    LIST_SECRETS = "list_secrets"
    LIST_JOBS = "list_jobs"

    # Deployments
    LIST_DEPLOYMENTS = "list_deployments"
    CREATE_DEPLOYMENT = "create_deployment"
    UPDATE_DEPLOYMENT_STATUS = "update_deployment_status"
    LIST_ENVIRONMENTS = "list_environments"
    ROLLBACK_DEPLOYMENT = "rollback_deployment"
    DELETE_DEPLOYMENT = "delete_deployment"

    # Security
    RUN_SECURITY_SCAN = "run_security_scan"
    LIST_VULNERABILITIES = "list_vulnerabilities"
    MANAGE_SECURITY_ALERTS = "manage_security_alerts"
    MANAGE_SECURITY_POLICIES = "manage_security_policies"
    CHECK_COMPLIANCE = "check_compliance"
    ANALYZE_DEPENDENCIES = "analyze_dependencies"
    LIST_SECURITY_ADVISORIES = "list_security_advisories"

    def __str__(self) -> str:
        return self.value


class FileOperation(str, Enum):
    """Kind of change applied to a file in a multi-file commit."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    def __str__(self) -> str:
        return self.value
