"""Configuration schema and loaders."""

from asset_bundler.config.loader import YamlConfigLoader
from asset_bundler.config.models import (
    AppConfig,
    BundleSettings,
    ConfigLoadRequest,
    GitHubSettings,
    LoggingSettings,
    ServerSettings,
)

__all__ = [
    "AppConfig",
    "BundleSettings",
    "ConfigLoadRequest",
    "GitHubSettings",
    "LoggingSettings",
    "ServerSettings",
    "YamlConfigLoader",
]
