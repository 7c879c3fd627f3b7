"""Configuration for vcs-toolkit."""

from vcs_toolkit.config.settings import MultiProviderConfig, ProviderConfig, VcsSettings, load_settings

__all__ = ["MultiProviderConfig", "ProviderConfig", "VcsSettings", "load_settings"]
