"""MCP stdio server exposing every tool.

stdout carries the MCP protocol, so logging must stay on stderr
(``configure_logging`` already writes there).
"""

import json
from typing import Any

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from vcs_toolkit.config.settings import VcsSettings
from vcs_toolkit.providers.factory import create_provider_factory
from vcs_toolkit.tools import ToolContext, VcsTool, get_tools

log = structlog.get_logger(__name__)

SERVER_NAME = "vcs-toolkit"


class ToolServer:
    """Routes MCP requests to tools.

    Args:
        context: Shared tool dependencies
        tools: Tools keyed by name (all tools by default)
    """

    def __init__(self, context: ToolContext, tools: dict[str, VcsTool] | None = None) -> None:
        self.context = context
        self.tools = tools if tools is not None else get_tools()

    def list_tools(self) -> list[Tool]:
        return [
            Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema())
            for tool in self.tools.values()
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Run a tool and return its envelope; unknown tools yield a failure envelope."""
        arguments = arguments or {}
        tool = self.tools.get(name)
        if tool is None:
            log.warning("unknown_tool", tool=name)
            return {
                "success": False,
                "action": str(arguments.get("action") or "unknown"),
                "message": f"Unknown tool: {name}",
                "error": f"Available tools: {', '.join(sorted(self.tools))}",
            }
        return await tool.handle(arguments, self.context)

    def build(self) -> Server:
        """Create an MCP ``Server`` with this router's handlers registered."""
        server = Server(SERVER_NAME)

        @server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.list_tools()

        @server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            result = await self.call_tool(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]

        return server


async def serve(settings: VcsSettings) -> None:
    """Serve all tools over stdio until the client disconnects."""
    factory = create_provider_factory(settings)
    context = ToolContext(factory=factory)
    server = ToolServer(context).build()

    log.info("mcp_server_starting", providers=factory.list_providers(), default=factory.default_provider_name)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await factory.aclose()
        log.info("mcp_server_stopped")
