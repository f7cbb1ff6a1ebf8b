"""Configuration management for mcpeek.

Supports YAML configuration files and environment variable overrides.
Configuration is loaded once and cached.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared import __version__


class RpcSettings(BaseSettings):
    """Settings for the JSON-RPC subprocess backend."""
    request_timeout: float = Field(default=30.0, gt=0, description="Seconds to wait for each response")
    protocol_version: str = Field(default="2024-11-05")
    client_name: str = Field(default="mcpeek")
    client_version: str = Field(default=__version__)
    inbound_queue_size: int = Field(default=1000, gt=0, description="Unconsumed server messages kept; oldest dropped first")

    model_config = SettingsConfigDict(
        env_prefix="MCPEEK_RPC_",
        env_file=".env",
        extra="ignore"
    )


class ExecutorSettings(BaseSettings):
    """Settings for the UTCP tool executor."""
    http_timeout: float = Field(default=30.0, gt=0)
    cli_timeout: Optional[float] = Field(default=None, gt=0, description="None means no limit")

    model_config = SettingsConfigDict(
        env_prefix="MCPEEK_EXECUTOR_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    rpc: RpcSettings = Field(default_factory=RpcSettings)
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)

    model_config = SettingsConfigDict(
        env_prefix="MCPEEK_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file, falling back to defaults."""
        return cls(**load_yaml_config(path))


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("MCPEEK_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
