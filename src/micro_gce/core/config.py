"""Client configuration management."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_ENDPOINT = "https://www.googleapis.com/compute/v1"


class ConnectionConfig(BaseModel):
    """HTTP connection configuration."""

    api_endpoint: str = Field(default=DEFAULT_API_ENDPOINT, description="Compute Engine API root")
    access_token: Optional[str] = Field(default=None, description="OAuth2 bearer token")
    user_agent: str = Field(default="micro-gce", description="User-Agent header value")

    timeout: float = Field(default=60.0, description="Request timeout in seconds")
    connect_timeout: float = Field(default=10.0, description="Connection timeout in seconds")

    # Retry settings
    max_retries: int = Field(default=3, ge=1, description="Maximum attempts per request")
    retry_min_wait: float = Field(default=0.5, ge=0, description="Minimum wait between retries")
    retry_max_wait: float = Field(default=16.0, ge=0, description="Maximum wait between retries")


class ComputeConfig(BaseSettings):
    """Main client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MICRO_GCE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    project_id: Optional[str] = Field(default=None, description="Google Cloud project ID")
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)

    # Operations
    operation_poll_interval: float = Field(default=0.5, gt=0, description="Seconds between operation polls")
    operation_timeout: Optional[float] = Field(default=None, description="Give up waiting on an operation after this many seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ComputeConfig":
        """Load configuration from a YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    @classmethod
    def from_env(cls) -> "ComputeConfig":
        """Load configuration from environment variables."""
        return cls()

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)


def load_config(
    config_path: Optional[str] = None,
    use_env: bool = True,
) -> ComputeConfig:
    """Find the client configuration.

    The first YAML file that exists wins: ``config_path``, then the file
    named by ``MICRO_GCE_CONFIG_PATH``, then ``config/config.yaml`` or
    ``config.yaml`` in the working directory. Without a file the settings
    come from ``MICRO_GCE_*`` variables, or from defaults when ``use_env``
    is false.
    """
    if config_path and Path(config_path).exists():
        return ComputeConfig.from_yaml(config_path)

    env_config_path = os.environ.get("MICRO_GCE_CONFIG_PATH")
    if env_config_path and Path(env_config_path).exists():
        return ComputeConfig.from_yaml(env_config_path)

    for default_path in ("./config/config.yaml", "./config.yaml"):
        if Path(default_path).exists():
            return ComputeConfig.from_yaml(default_path)

    if use_env:
        return ComputeConfig.from_env()

    return ComputeConfig()
