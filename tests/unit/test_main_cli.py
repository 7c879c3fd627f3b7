"""Unit tests for the vcs_toolkit.main CLI module.

Covers the ``tools``, ``providers``, ``call`` and ``serve`` commands, their
exit codes and configuration error handling.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner
from structlog.testing import capture_logs

from vcs_toolkit.exceptions import ConfigurationError
from vcs_toolkit.main import cli

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep log output out of the captured CLI output."""
    with patch("vcs_toolkit.main.configure_logging") as mock_configure, capture_logs():
        yield mock_configure


@pytest.fixture
def github_env(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "ght")


# =============================================================================
# Group options
# =============================================================================


class TestCliGroup:
    def test_help(self, cli_runner):
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("serve", "providers", "tools", "call"):
            assert command in result.output

    def test_log_level_option(self, cli_runner, quiet_logging):
        cli_runner.invoke(cli, ["--log-level", "DEBUG", "tools"])

        quiet_logging.assert_called_once_with("DEBUG")

    def test_default_log_level(self, cli_runner, quiet_logging):
        cli_runner.invoke(cli, ["tools"])

        quiet_logging.assert_called_once_with("INFO")


# =============================================================================
# tools / providers
# =============================================================================


class TestToolsCommand:
    def test_lists_every_tool(self, cli_runner):
        result = cli_runner.invoke(cli, ["tools"])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert len(lines) == 14
        assert "actions: list-runs, cancel, rerun, artifacts, download-artifact, secrets, jobs" in lines
        assert any(line.startswith("security [github only]: scan") for line in lines)
        assert "code_review [github only]: analyze, review-pr, apply-suggestions" in lines


class TestProvidersCommand:
    def test_shows_default(self, cli_runner, monkeypatch):
        monkeypatch.setenv("GITEA_URL", "https://git.example.com")
        monkeypatch.setenv("GITEA_TOKEN", "gt")
        monkeypatch.setenv("GITHUB_TOKEN", "ght")
        monkeypatch.setenv("DEFAULT_PROVIDER", "github")

        result = cli_runner.invoke(cli, ["providers"])

        assert result.exit_code == 0
        assert "gitea: gitea\n" in result.output
        assert "github: github (default)" in result.output

    def test_nothing_configured(self, cli_runner):
        result = cli_runner.invoke(cli, ["providers"])

        assert result.exit_code == 1
        assert "No VCS providers configured" in result.output

    def test_invalid_settings(self, cli_runner, monkeypatch):
        monkeypatch.setenv("PROVIDER", "gitea")

        result = cli_runner.invoke(cli, ["providers"])

        assert result.exit_code == 1
        assert result.output.startswith("Error:")


# =============================================================================
# call
# =============================================================================


class TestCallCommand:
    def test_invalid_json(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "users", "--args", "{nope"])

        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_non_object_arguments(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "users", "--args", "[1]"])

        assert result.exit_code == 2
        assert "must be a JSON object" in result.output

    def test_unknown_tool(self, cli_runner, github_env):
        result = cli_runner.invoke(cli, ["call", "wiki", "--args", "{}"])

        assert result.exit_code == 2
        assert "unknown tool 'wiki'" in result.output

    def test_prints_success_envelope(self, cli_runner, github_env, dual_factory, mock_gitea):
        mock_gitea.get_repository.return_value = {"full_name": "alice/demo"}

        with patch("vcs_toolkit.main.create_provider_factory", return_value=dual_factory):
            result = cli_runner.invoke(cli, ["call", "repositories", "--args", '{"action": "get", "repo": "demo"}'])

        assert result.exit_code == 0
        envelope = json.loads(result.output)
        assert envelope["success"] is True
        assert envelope["data"] == {"full_name": "alice/demo"}
        mock_gitea.close.assert_awaited_once()

    def test_failure_envelope_exits_one(self, cli_runner, github_env, gitea_factory):
        with patch("vcs_toolkit.main.create_provider_factory", return_value=gitea_factory):
            result = cli_runner.invoke(cli, ["call", "security", "--args", '{"action": "scan", "repo": "demo"}'])

        assert result.exit_code == 1
        envelope = json.loads(result.output)
        assert envelope["success"] is False
        assert "GitHub provider not found" in envelope["error"]

    def test_configuration_error(self, cli_runner, github_env):
        with patch(
            "vcs_toolkit.main.create_provider_factory",
            side_effect=ConfigurationError("No VCS providers configured"),
        ):
            result = cli_runner.invoke(cli, ["call", "users", "--args", '{"action": "me"}'])

        assert result.exit_code == 1
        assert "Error: No VCS providers configured" in result.output


# =============================================================================
# serve
# =============================================================================


class TestServeCommand:
    def test_runs_server_with_settings_log_level(self, cli_runner, github_env, monkeypatch, quiet_logging):
        monkeypatch.setenv("DEBUG", "true")

        with patch("vcs_toolkit.server.serve", new=AsyncMock()) as mock_serve:
            result = cli_runner.invoke(cli, ["serve"])

        assert result.exit_code == 0
        mock_serve.assert_awaited_once()
        assert quiet_logging.call_args_list[-1].args == ("DEBUG",)

    def test_keyboard_interrupt(self, cli_runner, github_env):
        with patch("vcs_toolkit.server.serve", new=MagicMock()), patch(
            "vcs_toolkit.main.asyncio.run", side_effect=KeyboardInterrupt
        ):
            result = cli_runner.invoke(cli, ["serve"])

        assert result.exit_code == 130
        assert "Interrupted by user" in result.output

    def test_missing_configuration(self, cli_runner):
        with patch("vcs_toolkit.server.serve", new=AsyncMock(side_effect=ConfigurationError("No VCS providers configured"))):
            result = cli_runner.invoke(cli, ["serve"])

        assert result.exit_code == 1
        assert "No VCS providers configured" in result.output
