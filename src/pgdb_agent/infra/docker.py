"""Docker Engine API client.

Provides async Docker API access for containers, volumes, images and
exec sessions. Supports both Unix socket and TCP connections.
"""

import logging

import httpx
from pydantic import BaseModel

from pgdb_agent.config import get_agent_config
from pgdb_agent.core.errors import RuntimeAdapterError

logger = logging.getLogger(__name__)


class DockerAPIError(RuntimeAdapterError):
    """Docker engine returned an error or could not be reached.

    Attributes:
        status_code: HTTP status from the engine, None for transport errors.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VolumeInUseError(DockerAPIError):
    """Raised when trying to remove a volume that is in use."""


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.text.strip()


def _raise_for_status(resp: httpx.Response, action: str) -> None:
    if resp.is_success:
        return
    raise DockerAPIError(
        f"{action}: {_error_message(resp)}",
        status_code=resp.status_code,
    )


# =============================================================================
# Pydantic Models
# =============================================================================


class RestartPolicy(BaseModel):
    """Docker restart policy."""

    name: str = "no"

    model_config = {"frozen": True}


class HostConfig(BaseModel):
    """Docker HostConfig for container creation."""

    binds: list[str] = []
    port_bindings: dict[str, int] = {}
    restart_policy: RestartPolicy = RestartPolicy()

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API format."""
        result: dict = {
            "Binds": self.binds,
            "RestartPolicy": {"Name": self.restart_policy.name},
        }
        if self.port_bindings:
            result["PortBindings"] = {
                container_port: [{"HostIp": "", "HostPort": str(host_port)}]
                for container_port, host_port in self.port_bindings.items()
            }
        return result


class ContainerConfig(BaseModel):
    """Docker container configuration for creation."""

    image: str
    name: str
    env: list[str] = []
    labels: dict[str, str] = {}
    exposed_ports: dict[str, dict] = {}
    host_config: HostConfig = HostConfig()

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API JSON format."""
        result: dict = {
            "Image": self.image,
            "ExposedPorts": self.exposed_ports,
            "HostConfig": self.host_config.to_api(),
        }
        if self.env:
            result["Env"] = self.env
        if self.labels:
            result["Labels"] = self.labels
        return result


class VolumeConfig(BaseModel):
    """Docker volume configuration for creation."""

    name: str
    driver: str = "local"
    labels: dict[str, str] = {}

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Docker API format."""
        result: dict = {"Name": self.name, "Driver": self.driver}
        if self.labels:
            result["Labels"] = self.labels
        return result


# =============================================================================
# Docker Client (Singleton)
# =============================================================================


class DockerClient:
    """Async Docker API client."""

    def __init__(
        self,
        docker_host: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = get_agent_config().docker
        self._host = docker_host or config.host
        self._timeout = timeout if timeout is not None else config.api_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _create_client(self) -> httpx.AsyncClient:
        """Create a new HTTP client."""
        if self._transport is not None:
            return httpx.AsyncClient(
                transport=self._transport,
                base_url="http://docker",
                timeout=self._timeout,
            )
        if self._host.startswith("unix://"):
            socket_path = self._host.replace("unix://", "")
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
            return httpx.AsyncClient(
                transport=transport,
                base_url="http://localhost",
                timeout=self._timeout,
            )
        base_url = self._host
        if base_url.startswith("tcp://"):
            base_url = base_url.replace("tcp://", "http://")
        return httpx.AsyncClient(base_url=base_url, timeout=self._timeout)

    async def get(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = self._create_client()
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


_docker_client: DockerClient | None = None


def get_docker_client() -> DockerClient:
    """Get the global Docker client singleton."""
    global _docker_client
    if _docker_client is None:
        _docker_client = DockerClient()
    return _docker_client


# =============================================================================
# System API
# =============================================================================


class SystemAPI:
    """Docker engine system endpoints."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def version(self) -> dict:
        """Return the engine version document."""
        client = await self._docker.get()
        resp = await client.get("/version")
        _raise_for_status(resp, "docker version")
        return resp.json()


# =============================================================================
# Container API
# =============================================================================


class ContainerAPI:
    """Docker Container API operations."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def create(self, config: ContainerConfig) -> str:
        """Create a container and return its ID."""
        client = await self._docker.get()
        resp = await client.post(
            "/containers/create",
            params={"name": config.name},
            json=config.to_api(),
        )
        _raise_for_status(resp, f"create container {config.name}")
        container_id = resp.json().get("Id", "")
        logger.info("Created container: %s", config.name)
        return container_id

    async def start(self, name: str) -> None:
        """Start a container."""
        client = await self._docker.get()
        resp = await client.post(f"/containers/{name}/start")
        if resp.status_code not in (204, 304):
            _raise_for_status(resp, f"start container {name}")
        logger.info("Started container: %s", name)

    async def remove(self, name: str, force: bool = True) -> bool:
        """Remove a container. Returns False if it did not exist."""
        client = await self._docker.get()
        resp = await client.delete(
            f"/containers/{name}", params={"force": "true" if force else "false"}
        )
        if resp.status_code == 404:
            logger.debug("Container not found: %s", name)
            return False
        _raise_for_status(resp, f"remove container {name}")
        logger.info("Removed container: %s", name)
        return True

    async def exec(self, name: str, cmd: list[str]) -> int:
        """Run a command inside a running container and return its exit code."""
        client = await self._docker.get()
        resp = await client.post(
            f"/containers/{name}/exec",
            json={"Cmd": cmd, "AttachStdout": True, "AttachStderr": True},
        )
        _raise_for_status(resp, f"exec create in {name}")
        exec_id = resp.json()["Id"]

        # Non-detached start returns once the command has exited
        resp = await client.post(
            f"/exec/{exec_id}/start",
            json={"Detach": False, "Tty": False},
        )
        _raise_for_status(resp, f"exec start in {name}")

        resp = await client.get(f"/exec/{exec_id}/json")
        _raise_for_status(resp, f"exec inspect in {name}")
        exit_code = resp.json().get("ExitCode")
        return -1 if exit_code is None else int(exit_code)


# =============================================================================
# Volume API
# =============================================================================


class VolumeAPI:
    """Docker Volume API operations."""

    def __init__(self, client: DockerClient | None = None) -> None:
        self._docker = client or get_docker_client()

    async def create(self, config: VolumeConfig) -> None:
        """Create a volume (idempotent on the engine side)."""
        client = await self._docker.get()
        resp = await client.post("/volumes/create", json=config.to_api())
        _raise_for_status(resp, f"create volume {config.name}")
        logger.info("Created volume: %s", config.name)

    async def remove(self, name: str) -> bool:
        """Remove a volume. Returns False if it did not exist."""
        client = await self._docker.get()
        resp = await client.delete(f"/volumes/{name}")
        if resp.status_code == 404:
            logger.debug("Volume not found: %s", name)
            return False
        if resp.status_code == 409:
            raise VolumeInUseError(
                f"remove volume {name}: {_error_message(resp)}", status_code=409
            )
        _raise_for_status(resp, f"remove volume {name}")
        logger.info("Removed volume: %s", name)
        return True


# =============================================================================
# Image API
# =============================================================================


class ImageAPI:
    """Docker Image API operations."""

    def __init__(
        self,
        client: DockerClient | None = None,
        pull_timeout: float | None = None,
    ) -> None:
        self._docker = client or get_docker_client()
        self._pull_timeout = (
            pull_timeout
            if pull_timeout is not None
            else get_agent_config().docker.image_pull_timeout
        )

    async def exists(self, image_ref: str) -> bool:
        """Check if image exists locally."""
        client = await self._docker.get()
        resp = await client.get(f"/images/{image_ref}/json")
        return resp.status_code == 200

    async def pull(self, image_ref: str) -> None:
        """Pull image from registry."""
        client = await self._docker.get()

        if ":" in image_ref:
            image, tag = image_ref.rsplit(":", 1)
        else:
            image, tag = image_ref, "latest"

        logger.info("Pulling image: %s:%s", image, tag)

        resp = await client.post(
            "/images/create",
            params={"fromImage": image, "tag": tag},
            timeout=self._pull_timeout,
        )
        _raise_for_status(resp, f"pull image {image}:{tag}")
        logger.info("Pulled image: %s:%s", image, tag)

    async def ensure(self, image_ref: str) -> None:
        """Ensure image exists locally, pull if not."""
        if not await self.exists(image_ref):
            await self.pull(image_ref)
