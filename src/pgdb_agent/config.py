"""Agent configuration using pydantic-settings.

Configuration hierarchy:
- ServerConfig: HTTP listener and authentication
- RegistryConfig: Data directory, registry and lock file locations
- DockerConfig: Container engine connection settings
- DeployConfig: Provisioning policy (retry budget, readiness polling)
- RuntimeConfig: Runtime backend selection
- LoggingConfig: Logging behavior
- AgentConfig: Main config aggregating all sub-configs

Environment variable prefix: PGDB_
Example: PGDB_DEPLOY_READY_TIMEOUT=120

The short names PGDB_TOKEN, PGDB_DATA_DIR and PGDB_PUBLIC_HOST are accepted
as aliases.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="PGDB_SERVER_", populate_by_name=True)

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    token: str = Field(
        default="",
        validation_alias=AliasChoices("PGDB_SERVER_TOKEN", "PGDB_TOKEN"),
        description="Shared bearer token (required)",
    )
    public_host: str = Field(
        default="",
        validation_alias=AliasChoices("PGDB_SERVER_PUBLIC_HOST", "PGDB_PUBLIC_HOST"),
        description="Host advertised in connection URLs (derived from request if empty)",
    )


class RegistryConfig(BaseSettings):
    """Registry storage configuration."""

    model_config = SettingsConfigDict(env_prefix="PGDB_REGISTRY_", populate_by_name=True)

    data_dir: Path = Field(
        default=Path("/var/lib/pgdb"),
        validation_alias=AliasChoices("PGDB_REGISTRY_DATA_DIR", "PGDB_DATA_DIR"),
        description="Directory holding registry.json and registry.lock",
    )
    registry_path: Path | None = Field(default=None, description="Override registry file path")
    lock_path: Path | None = Field(default=None, description="Override lock file path")

    @property
    def resolved_registry_path(self) -> Path:
        return self.registry_path or self.data_dir / "registry.json"

    @property
    def resolved_lock_path(self) -> Path:
        return self.lock_path or self.data_dir / "registry.lock"


class DockerConfig(BaseSettings):
    """Docker engine configuration."""

    model_config = SettingsConfigDict(env_prefix="PGDB_DOCKER_")

    host: str = Field(
        default="unix:///var/run/docker.sock",
        description="Docker daemon socket or TCP address",
    )
    api_timeout: float = Field(default=30.0, description="Docker API call timeout (seconds)")
    image_pull_timeout: float = Field(default=600.0, description="Image pull timeout (seconds)")


class DeployConfig(BaseSettings):
    """Provisioning policy.

    Defaults: five attempts on port conflicts, readiness polled every
    second for up to 90 seconds.
    """

    model_config = SettingsConfigDict(env_prefix="PGDB_DEPLOY_")

    max_attempts: int = Field(default=5, ge=1, description="Provisioning attempts on port conflict")
    ready_timeout: float = Field(default=90.0, description="Readiness deadline (seconds)")
    ready_interval: float = Field(default=1.0, description="Readiness poll interval (seconds)")
    default_version: int = Field(default=16, description="PostgreSQL major version when unspecified")
    min_version: int = Field(default=12, description="Lowest supported major version")
    max_version: int = Field(default=17, description="Highest supported major version")
    image: str = Field(default="postgres", description="PostgreSQL image repository")
    resource_prefix: str = Field(
        default="pgdb-",
        description="Prefix for Docker resources (containers, volumes)",
    )


class RuntimeConfig(BaseSettings):
    """Runtime backend selection."""

    model_config = SettingsConfigDict(env_prefix="PGDB_RUNTIME_")

    backend: Literal["docker", "memory"] = Field(
        default="docker",
        description="docker: real engine, memory: in-process fake for local development",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats for different environments:
    - text: Human-readable for local development
    - json: Structured logging for production (log aggregation)
    """

    model_config = SettingsConfigDict(env_prefix="PGDB_LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="pgdb-agent", description="Service identifier in logs")


class AgentConfig(BaseSettings):
    """Main agent configuration aggregating all sub-configs.

    Environment variable prefix: PGDB_
    Sub-configs use their own prefixes (PGDB_SERVER_, PGDB_DEPLOY_, etc.)
    """

    model_config = SettingsConfigDict(
        env_prefix="PGDB_",
        env_nested_delimiter="__",
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_agent_config() -> AgentConfig:
    """Get cached agent configuration singleton."""
    return AgentConfig()
