"""Domain models shared across vcs-toolkit.

Key Models:
    - CurrentUser: Authenticated account of a provider
    - CommandResult: Exit code and output of a shell command
    - UploadResult: Outcome of a directory upload
    - FileChange: One entry of a multi-file commit
    - ToolResult: Result envelope of a tool call
"""

from vcs_toolkit.models.domain import CommandResult, CurrentUser, FileChange, ToolResult, UploadResult

__all__ = [
    "CommandResult",
    "CurrentUser",
    "FileChange",
    "ToolResult",
    "UploadResult",
]
