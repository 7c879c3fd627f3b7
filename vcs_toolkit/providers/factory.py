"""Provider registry and factory.

``ProviderFactory`` holds one ``VcsOperations`` instance per configured
provider name and resolves the instance each tool call runs against.
An unknown provider name falls back to the default provider with a
warning; only an empty registry is an error.
"""

import threading
from typing import Any

import structlog

from vcs_toolkit.config.settings import ProviderConfig, VcsSettings
from vcs_toolkit.enums import ProviderName
from vcs_toolkit.exceptions import ConfigurationError, ProviderNotFoundError
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.providers.gitea_rest import GiteaRestProvider
from vcs_toolkit.providers.github_rest import GitHubRestProvider

log = structlog.get_logger(__name__)


class ProviderFactory:
    """Registry of named provider instances with a default provider.

    The registry is populated once at startup and read on every tool call.
    Mutations are serialized by a lock; reads take no lock.

    Example:
        >>> factory = ProviderFactory(timeout=30.0)
        >>> factory.create_provider(ProviderConfig(name="gitea", type="gitea", api_url=url, token=token))
        >>> provider = factory.resolve("bitbucket")  # falls back to gitea, logs a warning
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout
        self._providers: dict[str, VcsOperations] = {}
        self._default_name: str | None = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._providers)

    @property
    def is_empty(self) -> bool:
        return not self._providers

    @property
    def default_provider_name(self) -> str | None:
        return self._default_name

    def register(self, name: str, provider: VcsOperations) -> None:
        """Register ``provider`` under ``name``; the last registration wins.

        The first registered provider becomes the default when none is set.
        """
        with self._lock:
            replaced = name in self._providers
            self._providers[name] = provider
            if self._default_name is None:
                self._default_name = name

        log.info("provider_registered", name=name, type=provider.provider_type, replaced=replaced)

    def create_provider(self, config: ProviderConfig) -> VcsOperations:
        """Build the adapter for ``config`` and register it under ``config.name``.

        Raises:
            ConfigurationError: If the provider type is not supported
        """
        token = config.token.get_secret_value()

        if config.type == ProviderName.GITEA:
            provider: VcsOperations = GiteaRestProvider(
                base_url=config.api_url,
                token=token,
                timeout=self.timeout,
                name=config.name,
            )
        elif config.type == ProviderName.GITHUB:
            provider = GitHubRestProvider(
                token=token,
                base_url=config.api_url,
                timeout=self.timeout,
                name=config.name,
            )
        else:
            raise ConfigurationError(
                f"Unsupported provider type: {config.type}. Supported types: gitea, github"
            )

        self.register(config.name, provider)
        return provider

    def get_provider(self, name: str) -> VcsOperations | None:
        """Return the provider registered under ``name``, or None. Never raises."""
        return self._providers.get(name)

    def get_default_provider(self) -> VcsOperations | None:
        """Return the default provider.

        Falls back to the first registered provider when the default name is
        unset or no longer registered; None when the registry is empty.
        """
        if self._default_name is not None and self._default_name in self._providers:
            return self._providers[self._default_name]
        return next(iter(self._providers.values()), None)

    def resolve(self, name: str | None = None) -> VcsOperations:
        """Resolve the provider a request should run against.

        An explicit ``name`` that is not registered falls back to the
        default provider and logs a warning.

        Raises:
            ProviderNotFoundError: If nothing can be resolved
        """
        if name:
            provider = self.get_provider(name)
            if provider is not None:
                return provider
            log.warning(
                "provider_not_found_using_default",
                requested=name,
                default=self._default_name,
                available=self.list_providers(),
            )

        provider = self.get_default_provider()
        if provider is None:
            raise ProviderNotFoundError(
                f"Provider '{name}' not found and no default provider configured"
                if name
                else "No default provider configured"
            )
        return provider

    def set_default_provider(self, name: str) -> None:
        """Make ``name`` the default provider.

        Raises:
            ProviderNotFoundError: If ``name`` is not registered
        """
        with self._lock:
            if name not in self._providers:
                raise ProviderNotFoundError(f"Cannot set default: provider '{name}' is not registered")
            self._default_name = name

        log.info("default_provider_set", name=name)

    def remove_provider(self, name: str) -> VcsOperations | None:
        """Unregister ``name``; the first remaining provider becomes default if needed."""
        with self._lock:
            provider = self._providers.pop(name, None)
            if self._default_name == name:
                self._default_name = next(iter(self._providers), None)

        if provider is not None:
            log.info("provider_removed", name=name, default=self._default_name)
        return provider

    def has_provider(self, name: str) -> bool:
        return name in self._providers

    def list_providers(self) -> list[str]:
        return list(self._providers)

    def providers_info(self) -> list[dict[str, Any]]:
        """Describe each registered provider as ``{name, type, is_default}``."""
        default = self.get_default_provider()
        return [
            {"name": name, "type": provider.provider_type, "is_default": provider is default}
            for name, provider in self._providers.items()
        ]

    def clear(self) -> None:
        """Drop every provider without closing them."""
        with self._lock:
            self._providers.clear()
            self._default_name = None

    async def aclose(self) -> None:
        """Close the network resources of every registered provider."""
        for name, provider in list(self._providers.items()):
            await provider.close()
            log.debug("provider_closed", name=name)


def create_provider_factory(settings: VcsSettings) -> ProviderFactory:
    """Create and populate a factory from settings.

    Args:
        settings: Loaded toolkit settings

    Returns:
        ProviderFactory with every configured provider registered and the
        configured default selected

    Raises:
        ConfigurationError: If no provider is configured or a type is unsupported

    Example:
        >>> factory = create_provider_factory(load_settings())
        >>> factory.providers_info()
        [{'name': 'gitea', 'type': 'gitea', 'is_default': True}]
    """
    configs, default_name = settings.provider_configs()

    factory = ProviderFactory(timeout=settings.timeout_seconds)
    for config in configs:
        log.info("creating_provider", name=config.name, type=config.type.value, api_url=config.api_url)
        factory.create_provider(config)

    # Set after all registrations; the first-registered default is only a fallback
    if factory.has_provider(default_name):
        factory.set_default_provider(default_name)
    else:
        log.warning(
            "default_provider_not_registered",
            requested=default_name,
            default=factory.default_provider_name,
        )

    log.info("provider_factory_ready", providers=factory.list_providers(), default=factory.default_provider_name)
    return factory
