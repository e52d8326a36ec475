"""Agent infrastructure layer."""

from pgdb_agent.infra.docker import (
    ContainerAPI,
    ContainerConfig,
    DockerAPIError,
    DockerClient,
    HostConfig,
    ImageAPI,
    RestartPolicy,
    SystemAPI,
    VolumeAPI,
    VolumeConfig,
    VolumeInUseError,
    get_docker_client,
)

__all__ = [
    "ContainerAPI",
    "ContainerConfig",
    "DockerAPIError",
    "DockerClient",
    "HostConfig",
    "ImageAPI",
    "RestartPolicy",
    "SystemAPI",
    "VolumeAPI",
    "VolumeConfig",
    "VolumeInUseError",
    "get_docker_client",
]
