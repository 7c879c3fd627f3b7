"""Tests for vcs_toolkit.utils.async_subprocess module."""

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from vcs_toolkit.models.domain import CommandResult
from vcs_toolkit.utils.async_subprocess import quote, run_terminal_command

# =============================================================================
# Tests for run_terminal_command
# =============================================================================


class TestRunTerminalCommand:
    """Test basic functionality of run_terminal_command."""

    @pytest.mark.asyncio
    async def test_run_simple_command(self):
        result = await run_terminal_command("echo hello", "Say hello")

        assert isinstance(result, CommandResult)
        assert result.exit_code == 0
        assert result.output.strip() == "hello"
        assert result.ok

    @pytest.mark.asyncio
    async def test_shell_syntax_supported(self):
        result = await run_terminal_command("echo one && echo two | tr a-z A-Z")

        assert result.output.split() == ["one", "TWO"]

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_returned(self):
        """A failing command is reported through exit_code, not raised."""
        result = await run_terminal_command("echo broken; exit 3")

        assert result.exit_code == 3
        assert result.output.strip() == "broken"
        assert not result.ok

    @pytest.mark.asyncio
    async def test_stderr_merged_into_output(self):
        result = await run_terminal_command("echo out; echo err >&2")

        assert "out" in result.output
        assert "err" in result.output

    @pytest.mark.asyncio
    async def test_cwd(self, tmp_path: Path):
        (tmp_path / "marker.txt").write_text("x")

        result = await run_terminal_command("ls", cwd=tmp_path)

        assert "marker.txt" in result.output

    @pytest.mark.asyncio
    async def test_invalid_utf8_replaced(self):
        result = await run_terminal_command("printf '\\377ok'")

        assert result.output.endswith("ok")
        assert "�" in result.output

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        with pytest.raises(asyncio.TimeoutError):
            await run_terminal_command("sleep 5", timeout=0.1)

    @pytest.mark.asyncio
    async def test_command_is_logged(self):
        with patch("vcs_toolkit.utils.async_subprocess.log") as mock_log:
            await run_terminal_command("true", "No-op")

        mock_log.info.assert_called_once_with("run_command", command="true", explanation="No-op", cwd=None)


# =============================================================================
# Tests for quote
# =============================================================================


class TestQuote:
    def test_plain_value_unchanged(self):
        assert quote("main") == "main"

    def test_spaces_quoted(self):
        assert quote("my repo") == "'my repo'"

    def test_injection_neutralized(self):
        assert quote("x; rm -rf /") == "'x; rm -rf /'"

    def test_path_accepted(self):
        assert quote(Path("/tmp/a b")) == "'/tmp/a b'"

    @pytest.mark.asyncio
    async def test_quoted_value_round_trips_through_shell(self):
        value = "it's $HOME `id`"

        result = await run_terminal_command(f"printf %s {quote(value)}")

        assert result.output == value
