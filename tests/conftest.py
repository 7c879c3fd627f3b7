"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from vcs_toolkit.models.domain import CommandResult, CurrentUser
from vcs_toolkit.providers.factory import ProviderFactory
from vcs_toolkit.providers.gitea_rest import GiteaRestProvider
from vcs_toolkit.providers.github_rest import GitHubRestProvider
from vcs_toolkit.tools.base import ToolContext

ENV_VARS = (
    "GITEA_URL",
    "GITEA_TOKEN",
    "GITEA_USERNAME",
    "GITHUB_TOKEN",
    "GITHUB_URL",
    "GITHUB_USERNAME",
    "PROVIDER",
    "API_URL",
    "API_TOKEN",
    "USERNAME",
    "DEFAULT_PROVIDER",
    "PROVIDERS_JSON",
    "DEBUG",
    "TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate every test from provider variables and any local .env file."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def current_user() -> CurrentUser:
    """Authenticated user returned by the Gitea mock."""
    return CurrentUser(login="alice", id=7, email="alice@example.com", name="Alice", raw={"login": "alice", "id": 7})


@pytest.fixture
def mock_gitea(current_user: CurrentUser) -> MagicMock:
    """Gitea provider mock; lacks every Actions, deployment and security method."""
    provider = MagicMock(spec=GiteaRestProvider)
    provider.name = "gitea"
    provider.provider_type = "gitea"
    provider.get_current_user.return_value = current_user
    provider.get_repository_url.side_effect = lambda owner, repo: f"https://git.example.com/{owner}/{repo}.git"
    return provider


@pytest.fixture
def github_user() -> CurrentUser:
    """Authenticated user returned by the GitHub mock, distinct from the Gitea one."""
    return CurrentUser(login="bob", id=8, email="bob@example.com", name="Bob", raw={"login": "bob", "id": 8})


@pytest.fixture
def mock_github(github_user: CurrentUser) -> MagicMock:
    """GitHub provider mock exposing every optional capability."""
    provider = MagicMock(spec=GitHubRestProvider)
    provider.name = "github"
    provider.provider_type = "github"
    provider.get_current_user.return_value = github_user
    provider.get_repository_url.side_effect = lambda owner, repo: f"https://github.com/{owner}/{repo}.git"
    return provider


@pytest.fixture
def gitea_factory(mock_gitea: MagicMock) -> ProviderFactory:
    """Factory with only a Gitea provider."""
    factory = ProviderFactory()
    factory.register("gitea", mock_gitea)
    return factory


@pytest.fixture
def dual_factory(mock_gitea: MagicMock, mock_github: MagicMock) -> ProviderFactory:
    """Factory with Gitea (default) and GitHub providers."""
    factory = ProviderFactory()
    factory.register("gitea", mock_gitea)
    factory.register("github", mock_github)
    return factory


@pytest.fixture
def mock_runner() -> AsyncMock:
    """Command runner that succeeds without spawning processes."""
    return AsyncMock(return_value=CommandResult(exit_code=0, output=""))


@pytest.fixture
def gitea_context(gitea_factory: ProviderFactory, mock_runner: AsyncMock) -> ToolContext:
    return ToolContext(factory=gitea_factory, runner=mock_runner)


@pytest.fixture
def dual_context(dual_factory: ProviderFactory, mock_runner: AsyncMock) -> ToolContext:
    return ToolContext(factory=dual_factory, runner=mock_runner)
