"""Generic tool dispatcher.

A tool groups related operations behind one ``action`` discriminator.
``VcsTool.handle`` is the only error boundary of the toolkit: it validates
the arguments, resolves the provider, runs the action handler and turns
every outcome, including failures, into a ``ToolResult`` envelope.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated, Any, ClassVar, Union, get_args

import structlog
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from vcs_toolkit.enums import Capability
from vcs_toolkit.exceptions import CommandExecutionError, ProviderNotFoundError, VcsToolkitError
from vcs_toolkit.models.domain import CommandResult, ToolResult
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.providers.factory import ProviderFactory
from vcs_toolkit.providers.user_detection import apply_auto_user_detection, resolve_owner
from vcs_toolkit.utils.async_subprocess import run_terminal_command

log = structlog.get_logger(__name__)

CommandRunner = Callable[..., Awaitable[CommandResult]]

PROVIDER_LABELS = {"gitea": "Gitea", "github": "GitHub"}


@dataclass
class ToolContext:
    """Dependencies shared by every tool call."""

    factory: ProviderFactory
    runner: CommandRunner = run_terminal_command
    command_timeout: float | None = 300.0


class ToolInput(BaseModel):
    """Fields common to every tool input."""

    provider: str | None = Field(
        default=None,
        description="Provider name (gitea or github). Unknown names and 'both' use the default provider.",
    )


class PagedInput(ToolInput):
    page: int = Field(default=1, ge=1, description="Page number, starting at 1")
    limit: int = Field(default=30, ge=1, le=100, description="Items per page (1-100)")


class RepoInput(ToolInput):
    owner: str | None = Field(default=None, description="Repository owner; defaults to the authenticated user")
    repo: str = Field(..., min_length=1, description="Repository name")


class PagedRepoInput(RepoInput):
    page: int = Field(default=1, ge=1, description="Page number, starting at 1")
    limit: int = Field(default=30, ge=1, le=100, description="Items per page (1-100)")


def format_validation_error(error: ValidationError) -> str:
    """Render pydantic errors as ``field: message; ...``."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "input"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def updates_from(params: BaseModel, *fields: str) -> dict[str, Any]:
    """Collect the given optional fields that were actually provided."""
    return {name: getattr(params, name) for name in fields if getattr(params, name) is not None}


class VcsTool:
    """Base class of every tool.

    Subclasses declare ``name``, ``description`` and ``input_models`` (one
    pydantic model per action, each with an ``action`` Literal field) and
    implement one coroutine per action named ``_<action>`` with dashes
    replaced by underscores::

        async def _list_runs(self, params, provider, context) -> ToolResult: ...
    """

    name: ClassVar[str]
    description: ClassVar[str]
    input_models: ClassVar[tuple[type[BaseModel], ...]]

    #: Provider name the tool is pinned to, bypassing fallback resolution
    fixed_provider: ClassVar[str | None] = None

    def __init__(self) -> None:
        self._adapter: TypeAdapter[Any] = TypeAdapter(
            Annotated[Union[self.input_models], Field(discriminator="action")]  # noqa: UP007
        )

    @property
    def actions(self) -> list[str]:
        return [get_args(model.model_fields["action"].annotation)[0] for model in self.input_models]

    def input_schema(self) -> dict[str, Any]:
        """Flattened JSON schema: ``action`` enum plus the union of all action fields.

        Only fields required by every action are marked required.
        """
        properties: dict[str, Any] = {}
        definitions: dict[str, Any] = {}
        required_sets: list[set[str]] = []

        for model in self.input_models:
            schema = model.model_json_schema()
            definitions.update(schema.get("$defs", {}))
            for field_name, field_schema in schema.get("properties", {}).items():
                if field_name != "action":
                    properties.setdefault(field_name, field_schema)
            required_sets.append(set(schema.get("required", [])) - {"action"})

        common_required = set.intersection(*required_sets) if required_sets else set()
        schema = {
            "type": "object",
            "properties": {
                "action": {"type": "string", "enum": self.actions, "description": "Operation to perform"},
                **properties,
            },
            "required": ["action", *sorted(common_required)],
        }
        if definitions:
            schema["$defs"] = definitions
        return schema

    async def handle(self, arguments: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        """Validate, resolve, dispatch; always returns an envelope, never raises."""
        raw_action = arguments.get("action") if isinstance(arguments, dict) else None
        action = str(raw_action) if raw_action else "unknown"

        try:
            params = self._adapter.validate_python(arguments)
        except ValidationError as e:
            log.warning("tool_input_invalid", tool=self.name, action=action, errors=e.error_count())
            return self.failure(action, format_validation_error(e), message=f"Invalid {self.name} input").to_dict()

        try:
            params = type(params).model_validate(apply_auto_user_detection(params.model_dump(), params.provider))
            log.info("executing_tool", tool=self.name, action=action, provider=params.provider)
            provider = self.resolve_provider(params, context)
            handler = getattr(self, f"_{action.replace('-', '_')}")
            result: ToolResult = await handler(params, provider, context)
        except VcsToolkitError as e:
            log.warning("tool_execution_failed", tool=self.name, action=action, error=str(e))
            return self.failure(action, str(e)).to_dict()
        except Exception as e:
            log.error("tool_unexpected_error", tool=self.name, action=action, error=str(e), exc_info=True)
            return self.failure(action, str(e) or type(e).__name__).to_dict()

        return result.to_dict()

    def resolve_provider(self, params: ToolInput, context: ToolContext) -> VcsOperations:
        if self.fixed_provider is not None:
            provider = context.factory.get_provider(self.fixed_provider)
            if provider is None:
                label = PROVIDER_LABELS.get(self.fixed_provider, self.fixed_provider)
                raise ProviderNotFoundError(
                    f"{label} provider not found: the {self.name} tool is not available for other providers"
                )
            return provider
        return context.factory.resolve(params.provider)

    async def owner(self, params: RepoInput, provider: VcsOperations) -> str:
        """Explicit owner, or the login of ``provider``'s authenticated user."""
        return await resolve_owner(provider, params.owner)

    async def run_git(self, context: ToolContext, command: str, explanation: str) -> CommandResult:
        """Run a git command line; a non-zero exit raises with the output attached."""
        result = await context.runner(command, explanation, timeout=context.command_timeout)
        if result.exit_code != 0:
            raise CommandExecutionError(command, result.exit_code, result.output)
        return result

    def success(self, action: str, message: str, data: Any = None) -> ToolResult:
        return ToolResult(success=True, action=action, message=message, data=data)

    def failure(self, action: str, error: str, message: str | None = None) -> ToolResult:
        return ToolResult(
            success=False,
            action=action,
            message=message or f"{self.name} operation failed",
            error=error or "unknown error",
        )

    def unsupported(self, action: str, capability: Capability, data: dict[str, Any] | None = None) -> ToolResult:
        """Successful no-op result for a capability the provider lacks."""
        note = f"{capability} is not available for this provider"
        return self.success(
            action,
            f"{capability} not supported by this provider",
            {**(data or {}), "note": note},
        )
