"""CLI entry point for vcs-toolkit."""

import asyncio
import json
import sys
from typing import Any

import click
import structlog

from vcs_toolkit.config.settings import VcsSettings, load_settings
from vcs_toolkit.exceptions import ConfigurationError
from vcs_toolkit.providers.factory import create_provider_factory
from vcs_toolkit.tools import ToolContext, get_tools
from vcs_toolkit.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


def _load_settings_or_exit() -> VcsSettings:
    try:
        return load_settings()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: INFO, or DEBUG when DEBUG=true)")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """vcs-toolkit: GitHub and Gitea operations as agent tools."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    configure_logging(log_level or "INFO")


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the MCP server on stdio."""
    from vcs_toolkit.server import serve as serve_stdio

    settings = _load_settings_or_exit()
    if ctx.obj.get("log_level") is None:
        configure_logging(settings.log_level)

    try:
        asyncio.run(serve_stdio(settings))
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


@cli.command()
def providers() -> None:
    """Show configured providers and the default."""
    settings = _load_settings_or_exit()
    try:
        factory = create_provider_factory(settings)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    for info in factory.providers_info():
        marker = " (default)" if info["is_default"] else ""
        click.echo(f"{info['name']}: {info['type']}{marker}")


@cli.command()
def tools() -> None:
    """List tools and their actions."""
    for name, tool in get_tools().items():
        suffix = f" [{tool.fixed_provider} only]" if tool.fixed_provider else ""
        click.echo(f"{name}{suffix}: {', '.join(tool.actions)}")


@cli.command()
@click.argument("tool_name")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object")
def call(tool_name: str, args_json: str) -> None:
    """Invoke TOOL_NAME once and print the result envelope."""
    try:
        arguments = json.loads(args_json)
    except json.JSONDecodeError as e:
        click.echo(f"Error: --args is not valid JSON: {e}", err=True)
        sys.exit(2)
    if not isinstance(arguments, dict):
        click.echo("Error: --args must be a JSON object", err=True)
        sys.exit(2)

    registry = get_tools()
    tool = registry.get(tool_name)
    if tool is None:
        click.echo(f"Error: unknown tool '{tool_name}'. Available: {', '.join(registry)}", err=True)
        sys.exit(2)

    settings = _load_settings_or_exit()
    try:
        result = asyncio.run(_call_tool(settings, tool_name, arguments))
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    click.echo(json.dumps(result, indent=2, default=str))
    if not result.get("success"):
        sys.exit(1)


async def _call_tool(settings: VcsSettings, tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    factory = create_provider_factory(settings)
    try:
        tool = get_tools()[tool_name]
        return await tool.handle(arguments, ToolContext(factory=factory))
    finally:
        await factory.aclose()


if __name__ == "__main__":
    cli()
