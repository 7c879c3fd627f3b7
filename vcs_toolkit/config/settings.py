"""
Configuration system using Pydantic for type-safe settings management.

Provider credentials come from the environment (or a ``.env`` file). Two
shapes are supported, in this order of precedence:

1. ``PROVIDERS_JSON``: a JSON document describing every provider and the
   default one::

       {"defaultProvider": "github",
        "providers": [
            {"name": "gitea", "type": "gitea", "apiUrl": "https://git.example.com", "token": "..."},
            {"name": "github", "type": "github", "apiUrl": "https://api.github.com", "token": "..."}
        ]}

2. Single-provider variables: ``GITEA_URL``/``GITEA_TOKEN``,
   ``GITHUB_TOKEN`` (optionally ``GITHUB_URL``), or the generic
   ``PROVIDER``/``API_URL``/``API_TOKEN`` triple.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vcs_toolkit.enums import ProviderName
from vcs_toolkit.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

DEFAULT_GITHUB_URL = "https://api.github.com"


class ProviderConfig(BaseModel):
    """Connection settings of one named provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Registry name of the provider")
    type: ProviderName = Field(..., description="Backend type (gitea or github)")
    api_url: str = Field(..., min_length=1, alias="apiUrl", description="Base URL of the backend API")
    token: SecretStr = Field(..., description="API token")
    username: str | None = Field(default=None, description="Optional account name, informational only")

    @model_validator(mode="before")
    @classmethod
    def default_type_from_name(cls, data: Any) -> Any:
        """Let ``{"name": "github", ...}`` omit the ``type`` key."""
        if isinstance(data, dict) and not data.get("type"):
            if data.get("name") in {p.value for p in ProviderName}:
                data = {**data, "type": data["name"]}
        return data

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: SecretStr) -> SecretStr:
        """Reject blank tokens; strip surrounding whitespace."""
        value = v.get_secret_value().strip()
        if not value:
            raise ValueError("token must not be empty")
        return SecretStr(value)


class MultiProviderConfig(BaseModel):
    """Parsed form of ``PROVIDERS_JSON``."""

    model_config = ConfigDict(populate_by_name=True)

    default_provider: str | None = Field(default=None, alias="defaultProvider")
    providers: list[ProviderConfig] = Field(default_factory=list)

    @classmethod
    def from_json(cls, raw: str) -> MultiProviderConfig | None:
        """Parse ``PROVIDERS_JSON``.

        Entries missing a name, type, URL or token are skipped with a
        warning. Unparseable JSON yields None so the caller can fall back
        to single-provider variables.
        """
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            log.error("providers_json_invalid", error=str(e))
            return None

        if not isinstance(document, dict):
            log.error("providers_json_invalid", error="expected a JSON object")
            return None

        providers: list[ProviderConfig] = []
        for index, entry in enumerate(document.get("providers") or []):
            try:
                providers.append(ProviderConfig.model_validate(entry))
            except ValidationError as e:
                log.warning("providers_json_entry_skipped", index=index, error=str(e))

        return cls(
            default_provider=document.get("defaultProvider") or document.get("default_provider"),
            providers=providers,
        )


class VcsSettings(BaseSettings):
    """Environment-driven settings of the toolkit."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    gitea_url: str | None = Field(default=None, description="Gitea base URL")
    gitea_token: SecretStr | None = Field(default=None, description="Gitea API token")
    gitea_username: str | None = Field(default=None, description="Gitea account name")

    github_token: SecretStr | None = Field(default=None, description="GitHub token")
    github_url: str = Field(default=DEFAULT_GITHUB_URL, description="GitHub API URL (GitHub Enterprise)")
    github_username: str | None = Field(default=None, description="GitHub account name")

    provider: ProviderName | None = Field(default=None, description="Type of the generic API_URL provider")
    api_url: str | None = Field(default=None, description="Generic provider API URL")
    api_token: SecretStr | None = Field(default=None, description="Generic provider API token")
    username: str | None = Field(default=None, description="Generic provider account name")

    default_provider: str | None = Field(default=None, description="Name of the default provider")
    providers_json: str | None = Field(default=None, description="JSON multi-provider configuration")

    debug: bool = Field(default=False, description="Enable debug logging")
    timeout: int = Field(default=30000, gt=0, description="HTTP request timeout in milliseconds")

    @model_validator(mode="after")
    def validate_generic_provider(self) -> VcsSettings:
        """PROVIDER is only meaningful together with API_URL and API_TOKEN."""
        if self.provider is not None and not (self.api_url and self.api_token):
            raise ValueError("PROVIDER requires both API_URL and API_TOKEN to be set")
        return self

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else "INFO"

    def multi_provider_config(self) -> MultiProviderConfig | None:
        """Return the parsed ``PROVIDERS_JSON``, if set and usable."""
        if not self.providers_json:
            return None

        config = MultiProviderConfig.from_json(self.providers_json)
        if config is not None and not config.providers:
            log.warning("providers_json_empty")
            return None
        return config

    def provider_configs(self) -> tuple[list[ProviderConfig], str]:
        """Resolve the configured providers and the default provider name.

        Returns:
            Tuple of (provider configs, default provider name)

        Raises:
            ConfigurationError: If no provider is configured at all
        """
        multi = self.multi_provider_config()
        if multi is not None:
            default = multi.default_provider or self.default_provider or multi.providers[0].name
            return multi.providers, default

        configs: list[ProviderConfig] = []

        if self.gitea_url and self.gitea_token:
            configs.append(
                ProviderConfig(
                    name=ProviderName.GITEA.value,
                    type=ProviderName.GITEA,
                    api_url=self.gitea_url,
                    token=self.gitea_token,
                    username=self.gitea_username,
                )
            )

        if self.github_token:
            configs.append(
                ProviderConfig(
                    name=ProviderName.GITHUB.value,
                    type=ProviderName.GITHUB,
                    api_url=self.github_url,
                    token=self.github_token,
                    username=self.github_username,
                )
            )

        if not configs and self.api_url and self.api_token:
            provider_type = self.provider or ProviderName.GITEA
            configs.append(
                ProviderConfig(
                    name=provider_type.value,
                    type=provider_type,
                    api_url=self.api_url,
                    token=self.api_token,
                    username=self.username,
                )
            )

        if not configs:
            raise ConfigurationError(
                "No VCS providers configured: set PROVIDERS_JSON, GITEA_URL and GITEA_TOKEN, "
                "GITHUB_TOKEN, or PROVIDER with API_URL and API_TOKEN"
            )

        default = configs[0].name
        if self.default_provider:
            if any(config.name == self.default_provider for config in configs):
                default = self.default_provider
            else:
                log.warning("default_provider_not_configured", default_provider=self.default_provider)

        return configs, default


def load_settings(**overrides: Any) -> VcsSettings:
    """Load settings from the environment.

    Raises:
        ConfigurationError: If the environment holds invalid values
    """
    try:
        return VcsSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
