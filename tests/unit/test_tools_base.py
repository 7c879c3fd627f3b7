"""Tests for vcs_toolkit.tools.base - validation, dispatch and result envelopes."""

from unittest.mock import patch

import pytest

from vcs_toolkit.exceptions import ProviderAPIError, UserDetectionError
from vcs_toolkit.tools import ALL_TOOLS, get_tools
from vcs_toolkit.tools.actions import ActionsTool
from vcs_toolkit.tools.base import ToolContext
from vcs_toolkit.tools.repositories import RepositoriesTool
from vcs_toolkit.tools.security import SecurityTool
from vcs_toolkit.tools.users import UsersTool

ENVELOPE_KEYS = {"success", "action", "message", "data", "error"}


def assert_envelope(result: dict) -> None:
    assert set(result) <= ENVELOPE_KEYS
    assert {"success", "action", "message"} <= set(result)
    assert isinstance(result["success"], bool)
    if result["success"]:
        assert "error" not in result
    else:
        assert result["error"]


# =============================================================================
# Input validation
# =============================================================================


class TestValidation:
    @pytest.mark.asyncio
    async def test_unknown_action(self, gitea_context, mock_gitea):
        result = await RepositoriesTool().handle({"action": "explode", "repo": "demo"}, gitea_context)

        assert_envelope(result)
        assert result["success"] is False
        assert result["action"] == "explode"
        assert result["message"] == "Invalid repositories input"
        mock_gitea.get_current_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_action(self, gitea_context):
        result = await RepositoriesTool().handle({"repo": "demo"}, gitea_context)

        assert result["success"] is False
        assert result["action"] == "unknown"

    @pytest.mark.asyncio
    async def test_missing_required_field_names_the_field(self, gitea_context, mock_gitea):
        result = await RepositoriesTool().handle({"action": "get"}, gitea_context)

        assert result["success"] is False
        assert "repo" in result["error"]
        mock_gitea.get_repository.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_out_of_range_limit(self, gitea_context):
        result = await RepositoriesTool().handle({"action": "list", "limit": 500}, gitea_context)

        assert result["success"] is False
        assert "limit" in result["error"]


# =============================================================================
# Dispatch and envelopes
# =============================================================================


class TestDispatch:
    @pytest.mark.asyncio
    async def test_success_envelope(self, gitea_context, mock_gitea):
        mock_gitea.get_repository.return_value = {"name": "demo"}

        result = await RepositoriesTool().handle({"action": "get", "repo": "demo"}, gitea_context)

        assert_envelope(result)
        assert result == {
            "success": True,
            "action": "get",
            "message": "Repository alice/demo retrieved",
            "data": {"name": "demo"},
        }
        mock_gitea.get_repository.assert_awaited_once_with("alice", "demo")

    @pytest.mark.asyncio
    async def test_explicit_owner_skips_user_lookup(self, gitea_context, mock_gitea):
        mock_gitea.get_repository.return_value = {}

        await RepositoriesTool().handle({"action": "get", "owner": "acme", "repo": "demo"}, gitea_context)

        mock_gitea.get_repository.assert_awaited_once_with("acme", "demo")
        mock_gitea.get_current_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_named_provider_is_used(self, dual_context, mock_gitea, mock_github):
        mock_github.get_repository.return_value = {}

        await RepositoriesTool().handle({"action": "get", "repo": "demo", "provider": "github"}, dual_context)

        mock_github.get_repository.assert_awaited_once_with("bob", "demo")
        mock_gitea.get_repository.assert_not_awaited()
        mock_gitea.get_current_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_provider_falls_back_to_default(self, gitea_context, mock_gitea):
        mock_gitea.get_repository.return_value = {}

        result = await RepositoriesTool().handle(
            {"action": "get", "repo": "demo", "provider": "bitbucket"}, gitea_context
        )

        assert result["success"] is True
        mock_gitea.get_repository.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_provider_error_becomes_failure(self, gitea_context, mock_gitea):
        mock_gitea.get_repository.side_effect = ProviderAPIError("Not Found", provider="gitea", status_code=404)

        result = await RepositoriesTool().handle({"action": "get", "repo": "demo"}, gitea_context)

        assert_envelope(result)
        assert result["success"] is False
        assert result["message"] == "repositories operation failed"
        assert result["error"] == "gitea: Not Found (HTTP 404)"

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_failure(self, gitea_context, mock_gitea):
        mock_gitea.get_repository.side_effect = KeyError("boom")

        with patch("vcs_toolkit.tools.base.log") as mock_log:
            result = await RepositoriesTool().handle({"action": "get", "repo": "demo"}, gitea_context)

        assert result["success"] is False
        assert "boom" in result["error"]
        mock_log.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, gitea_context, mock_gitea):
        result = await RepositoriesTool().handle({"action": "update", "repo": "demo"}, gitea_context)

        assert result["success"] is False
        assert result["error"] == "No repository fields to update"
        mock_gitea.update_repository.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_parameter_hook_error_becomes_failure(self, gitea_context, mock_gitea):
        with patch(
            "vcs_toolkit.tools.base.apply_auto_user_detection",
            side_effect=UserDetectionError("no identity"),
        ):
            result = await RepositoriesTool().handle({"action": "get", "repo": "demo"}, gitea_context)

        assert_envelope(result)
        assert result["success"] is False
        assert result["error"] == "no identity"
        mock_gitea.get_repository.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_parameter_hook_invalid_output_becomes_failure(self, gitea_context, mock_gitea):
        with patch(
            "vcs_toolkit.tools.base.apply_auto_user_detection",
            side_effect=lambda params, provider: {**params, "limit": 0},
        ):
            result = await RepositoriesTool().handle({"action": "list"}, gitea_context)

        assert_envelope(result)
        assert result["success"] is False
        assert result["action"] == "list"
        mock_gitea.list_repositories.assert_not_awaited()


# =============================================================================
# Provider-restricted tools and optional capabilities
# =============================================================================


class TestGitHubOnlyTool:
    @pytest.mark.asyncio
    async def test_without_github_provider_fails(self, gitea_context, mock_gitea):
        result = await SecurityTool().handle({"action": "scan", "repo": "demo"}, gitea_context)

        assert_envelope(result)
        assert result["success"] is False
        assert "GitHub provider not found" in result["error"]
        mock_gitea.get_current_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pinned_to_github_even_when_gitea_is_default(self, dual_context, mock_github):
        mock_github.run_security_scan.return_value = {"total_count": 2, "findings": {}}

        result = await SecurityTool().handle({"action": "scan", "repo": "demo", "provider": "gitea"}, dual_context)

        assert result["success"] is True
        mock_github.run_security_scan.assert_awaited_once()


class TestOptionalCapabilities:
    @pytest.mark.asyncio
    async def test_missing_capability_returns_empty_success(self, gitea_context, mock_gitea):
        result = await ActionsTool().handle({"action": "list-runs", "repo": "demo"}, gitea_context)

        assert_envelope(result)
        assert result["success"] is True
        assert result["data"]["total_count"] == 0
        assert result["data"]["workflow_runs"] == []
        assert result["data"]["note"]
        mock_gitea.get_current_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_present_capability_is_called(self, dual_context, mock_github):
        mock_github.list_workflow_runs.return_value = {"total_count": 1, "workflow_runs": [{"id": 3}]}

        result = await ActionsTool().handle(
            {"action": "list-runs", "repo": "demo", "provider": "github", "branch": "main"}, dual_context
        )

        assert result["success"] is True
        assert result["message"] == "1 workflow runs found"
        mock_github.list_workflow_runs.assert_awaited_once_with(
            "bob", "demo", branch="main", status=None, page=1, limit=30
        )


class TestUserDetectionFailure:
    @pytest.mark.asyncio
    async def test_me_with_rejected_token(self, gitea_context, mock_gitea):
        mock_gitea.get_current_user.side_effect = ProviderAPIError("token is invalid", provider="gitea", status_code=401)

        result = await UsersTool().handle({"action": "me"}, gitea_context)

        assert_envelope(result)
        assert result["success"] is False
        assert "token is invalid" in result["error"]

    @pytest.mark.asyncio
    async def test_owner_derivation_failure_stops_operation(self, gitea_context, mock_gitea):
        mock_gitea.get_current_user.side_effect = ProviderAPIError("unauthorized", provider="gitea", status_code=401)

        result = await RepositoriesTool().handle({"action": "get", "repo": "demo"}, gitea_context)

        assert result["success"] is False
        assert "unauthorized" in result["error"]
        mock_gitea.get_repository.assert_not_awaited()


# =============================================================================
# Schemas and registry
# =============================================================================


class TestSchemas:
    def test_input_schema_lists_actions(self):
        schema = RepositoriesTool().input_schema()

        assert schema["type"] == "object"
        assert schema["properties"]["action"]["enum"] == [
            "create",
            "list",
            "get",
            "update",
            "delete",
            "fork",
            "search",
            "init",
            "clone",
        ]
        assert schema["required"] == ["action"]
        assert "repo" in schema["properties"]
        assert "provider" in schema["properties"]

    def test_common_required_fields(self):
        schema = ActionsTool().input_schema()
        assert schema["required"] == ["action", "repo"]

    def test_registry(self):
        tools = get_tools()

        assert len(tools) == len(ALL_TOOLS) == 14
        assert set(tools) == {
            "repositories",
            "branches",
            "commits",
            "issues",
            "pulls",
            "tags",
            "releases",
            "webhooks",
            "files",
            "users",
            "actions",
            "deployments",
            "security",
            "code_review",
        }

    def test_every_action_has_a_handler(self):
        for tool in get_tools().values():
            for action in tool.actions:
                assert callable(getattr(tool, f"_{action.replace('-', '_')}")), (tool.name, action)


def test_context_defaults(gitea_factory):
    context = ToolContext(factory=gitea_factory)

    assert context.command_timeout == 300.0
    assert context.runner.__name__ == "run_terminal_command"
