"""Custom exception hierarchy for vcs-toolkit.

Tool handlers are the single place where these errors are converted into
failure envelopes; everything below them raises.

Exception Hierarchy:
    VcsToolkitError (base)
    ├── ConfigurationError
    │   └── ProviderNotFoundError
    ├── ProviderAPIError
    ├── UserDetectionError
    └── GitOperationError
        └── CommandExecutionError

Example Usage:
    >>> from vcs_toolkit.exceptions import ConfigurationError
    >>> try:
    ...     configs = settings.provider_configs()
    ... except ConfigurationError as e:
    ...     click.echo(f"Error: {e.message}", err=True)
"""


class VcsToolkitError(Exception):
    """Base exception for all vcs-toolkit errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(VcsToolkitError):
    """Configuration-related errors.

    Examples:
        - No provider configured in the environment
        - Unknown provider type in PROVIDERS_JSON
        - PROVIDER set without API_URL / API_TOKEN
    """

    pass


class ProviderNotFoundError(ConfigurationError):
    """No provider could be resolved for a request.

    Raised when neither the requested provider nor a default provider is
    registered, and by GitHub-only tools when no ``github`` provider exists.
    """

    pass


class ProviderAPIError(VcsToolkitError):
    """A backend REST call failed.

    Attributes:
        message: Human-readable error description
        provider: Name of the backend that failed (``gitea`` or ``github``)
        status_code: HTTP status code, if the failure came from a response
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code

        full_message = message
        if provider:
            full_message = f"{provider}: {full_message}"
        if status_code is not None:
            full_message = f"{full_message} (HTTP {status_code})"

        super().__init__(full_message)
        self.message = message


class UserDetectionError(VcsToolkitError):
    """The authenticated user could not be determined."""

    pass


class GitOperationError(VcsToolkitError):
    """Local git operation failed."""

    pass


class CommandExecutionError(GitOperationError):
    """A git command exited with a non-zero status.

    Attributes:
        command: The command line that was run
        exit_code: Process exit code
        output: Combined stdout/stderr of the process
    """

    def __init__(self, command: str, exit_code: int, output: str) -> None:
        self.command = command
        self.exit_code = exit_code
        self.output = output
        message = f"Command failed with exit code {exit_code}: {command}"
        if output.strip():
            message = f"{message}\n{output.strip()}"
        super().__init__(message)
