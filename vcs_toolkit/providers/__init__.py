"""VCS provider adapters, registry and user detection."""

from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.providers.factory import ProviderFactory, create_provider_factory
from vcs_toolkit.providers.gitea_rest import GiteaRestProvider
from vcs_toolkit.providers.github_rest import GitHubRestProvider

__all__ = [
    "GitHubRestProvider",
    "GiteaRestProvider",
    "ProviderFactory",
    "VcsOperations",
    "create_provider_factory",
    "supports",
]
