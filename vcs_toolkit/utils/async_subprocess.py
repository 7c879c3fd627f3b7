"""Async subprocess utilities.

Runs shell command lines on behalf of tools that drive the local ``git``
executable (``repositories init/clone``, ``commits push/pull``).

Key Features:
    - Non-blocking execution compatible with asyncio
    - stdout and stderr merged into one output string
    - A non-zero exit status is returned, never raised
    - The child process is always reaped, including on timeout and
      cancellation

Example:
    >>> from vcs_toolkit.utils.async_subprocess import run_terminal_command
    >>> result = await run_terminal_command("git status", "Inspect working tree")
    >>> if result.exit_code == 0:
    ...     print(result.output)
"""

import asyncio
import shlex
from pathlib import Path

import structlog

from vcs_toolkit.models.domain import CommandResult

log = structlog.get_logger(__name__)


async def run_terminal_command(
    command: str,
    explanation: str | None = None,
    *,
    cwd: Path | str | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run a shell command line and capture its combined output.

    The command is passed to ``bash -c`` so callers can use shell syntax.
    Values interpolated into ``command`` must be quoted with ``quote``.

    Args:
        command: Complete shell command line to execute
        explanation: Short human-readable purpose, logged with the command
        cwd: Working directory for the command. None uses the current
            working directory of the parent process.
        timeout: Maximum seconds to wait. The process is killed and
            ``TimeoutError`` raised if exceeded. None waits indefinitely.

    Returns:
        CommandResult with the process exit code and the decoded
        stdout/stderr stream (invalid bytes are replaced)

    Raises:
        TimeoutError: If timeout is exceeded. The process is killed and
            reaped before this exception is raised.
        FileNotFoundError: If ``bash`` is not available.
    """
    log.info("run_command", command=command, explanation=explanation, cwd=str(cwd) if cwd else None)

    process = await asyncio.create_subprocess_exec(
        "bash",
        "-c",
        command,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )

    try:
        output_bytes, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except BaseException:
        # Timeout or cancellation: never leave a zombie behind
        if process.returncode is None:
            process.kill()
        await process.wait()
        raise

    output = (output_bytes or b"").decode("utf-8", errors="replace")
    exit_code = process.returncode or 0

    log.debug("run_command_finished", command=command, exit_code=exit_code)
    return CommandResult(exit_code=exit_code, output=output)


def quote(value: str | Path) -> str:
    """Quote a value for safe interpolation into a shell command line."""
    return shlex.quote(str(value))
