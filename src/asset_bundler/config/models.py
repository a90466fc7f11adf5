from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from asset_bundler.core.ports import DEFAULT_PORT


class ServerSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT


class FileRotationSettings(BaseModel):
    """
    Date-based rotation settings (daily).

    This maps cleanly to Python's standard library TimedRotatingFileHandler behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backup_count: int = 7


class FileLoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = ""
    rotation: FileRotationSettings = Field(default_factory=FileRotationSettings)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = "INFO"
    access_log: bool = True
    file: FileLoggingSettings = Field(default_factory=FileLoggingSettings)


class GitHubSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    api_base_url: str = "https://api.github.com"
    raw_base_url: str = "https://raw.githubusercontent.com"
    # Pass-through mirror prepended to raw file URLs. Empty string disables it.
    mirror_prefix: str = "https://ghproxy.cc/"
    excluded_tag: str = "v1998"
    default_owner: str = "libccy"
    default_repo: str = "noname"
    request_timeout_seconds: float = 60.0


class BundleSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    cache_dir: str = "noname"
    fetch_concurrency: int = Field(default=16, ge=1)
    fetch_attempts: int = Field(default=5, ge=1)
    retry_delay_seconds: float = Field(default=0.0, ge=0.0)
    compression_level: int = Field(default=9, ge=0, le=9)
    chunk_size: int = Field(default=64 * 1024, ge=1)


class AppConfig(BaseModel):
    """Effective runtime configuration after applying all precedence rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    bundle: BundleSettings = Field(default_factory=BundleSettings)


@dataclass(frozen=True, slots=True)
class ConfigLoadRequest:
    """
    Optional inputs for a configuration loader.

    Implementations may use these to control where configuration is read from.
    """

    yaml_path: str = "data/config/config.yaml"
    env_prefix: str = "BUNDLER__"
    dotenv_path: Optional[str] = "data/.env"
