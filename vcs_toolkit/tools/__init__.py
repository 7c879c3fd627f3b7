"""Agent-facing tools, one per resource family."""

from vcs_toolkit.tools.actions import ActionsTool
from vcs_toolkit.tools.base import ToolContext, VcsTool
from vcs_toolkit.tools.branches import BranchesTool
from vcs_toolkit.tools.code_review import CodeReviewTool
from vcs_toolkit.tools.commits import CommitsTool
from vcs_toolkit.tools.deployments import DeploymentsTool
from vcs_toolkit.tools.files import FilesTool
from vcs_toolkit.tools.issues import IssuesTool
from vcs_toolkit.tools.pulls import PullsTool
from vcs_toolkit.tools.releases import ReleasesTool
from vcs_toolkit.tools.repositories import RepositoriesTool
from vcs_toolkit.tools.security import SecurityTool
from vcs_toolkit.tools.tags import TagsTool
from vcs_toolkit.tools.users import UsersTool
from vcs_toolkit.tools.webhooks import WebhooksTool

ALL_TOOLS: tuple[type[VcsTool], ...] = (
    RepositoriesTool,
    BranchesTool,
    CommitsTool,
    IssuesTool,
    PullsTool,
    TagsTool,
    ReleasesTool,
    WebhooksTool,
    ActionsTool,
    DeploymentsTool,
    SecurityTool,
    CodeReviewTool,
    UsersTool,
    FilesTool,
)


def get_tools() -> dict[str, VcsTool]:
    """Instantiate every tool, keyed by tool name."""
    return {tool_class.name: tool_class() for tool_class in ALL_TOOLS}


__all__ = [
    "ALL_TOOLS",
    "ToolContext",
    "VcsTool",
    "get_tools",
]
