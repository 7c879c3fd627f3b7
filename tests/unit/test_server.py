"""Tests for vcs_toolkit.server - MCP tool routing."""

from unittest.mock import MagicMock, patch

import pytest
from mcp.server import Server

from vcs_toolkit.server import ToolServer, serve
from vcs_toolkit.tools import get_tools


@pytest.fixture
def tool_server(dual_context) -> ToolServer:
    return ToolServer(dual_context)


class TestListTools:
    def test_every_tool_is_listed(self, tool_server):
        tools = tool_server.list_tools()

        assert len(tools) == 14
        assert {tool.name for tool in tools} == set(get_tools())

    def test_schema_is_flattened(self, tool_server):
        tools = {tool.name: tool for tool in tool_server.list_tools()}
        schema = tools["issues"].inputSchema

        assert schema["type"] == "object"
        assert "issue_number" in schema["properties"]
        assert "create" in schema["properties"]["action"]["enum"]

    def test_custom_tool_subset(self, dual_context):
        tools = get_tools()
        server = ToolServer(dual_context, {"users": tools["users"]})

        assert [tool.name for tool in server.list_tools()] == ["users"]


class TestCallTool:
    @pytest.mark.asyncio
    async def test_unknown_tool(self, tool_server):
        result = await tool_server.call_tool("wiki", {"action": "get"})

        assert result["success"] is False
        assert result["action"] == "get"
        assert result["message"] == "Unknown tool: wiki"
        assert "repositories" in result["error"]

    @pytest.mark.asyncio
    async def test_routes_to_tool(self, tool_server, mock_github):
        mock_github.list_branches.return_value = [{"name": "main"}]

        result = await tool_server.call_tool(
            "branches", {"action": "list", "repo": "demo", "owner": "octo", "provider": "github"}
        )

        assert result["success"] is True
        assert result["data"] == [{"name": "main"}]
        mock_github.list_branches.assert_awaited_once_with("octo", "demo", page=1, limit=30)

    @pytest.mark.asyncio
    async def test_missing_arguments(self, tool_server):
        result = await tool_server.call_tool("users", None)

        assert result["success"] is False
        assert result["action"] == "unknown"


def test_build_returns_mcp_server(tool_server):
    assert isinstance(tool_server.build(), Server)


@pytest.mark.asyncio
async def test_serve_closes_providers_on_exit(dual_factory, mock_gitea, mock_github):
    with patch("vcs_toolkit.server.create_provider_factory", return_value=dual_factory), patch(
        "vcs_toolkit.server.stdio_server", side_effect=RuntimeError("stdio unavailable")
    ):
        with pytest.raises(RuntimeError, match="stdio unavailable"):
            await serve(MagicMock())

    mock_gitea.close.assert_awaited_once()
    mock_github.close.assert_awaited_once()
