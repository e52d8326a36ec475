"""PostgreSQL runtime backed by the Docker engine API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from pgdb_agent.core.errors import ReadinessTimeoutError
from pgdb_agent.core.runtime import DatabaseRuntime, DatabaseSpec
from pgdb_agent.infra import (
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
    get_docker_client,
)
from pgdb_agent.logging_schema import LogEvent
from pgdb_agent.metrics import PGDB_DOCKER_DURATION

logger = logging.getLogger(__name__)

POSTGRES_PORT = "5432/tcp"
POSTGRES_DATA_DIR = "/var/lib/postgresql/data"
MANAGED_LABEL = "io.pgdb.managed"


@asynccontextmanager
async def _docker_call(operation: str, action: str) -> AsyncIterator[None]:
    """Time a Docker operation and map transport errors onto DockerAPIError."""
    start = time.perf_counter()
    try:
        yield
    except httpx.HTTPError as exc:
        raise DockerAPIError(f"{action}: {exc}") from exc
    finally:
        PGDB_DOCKER_DURATION.labels(operation=operation).observe(time.perf_counter() - start)


class DockerPostgresRuntime(DatabaseRuntime):
    """Runs each database as a ``postgres:<version>`` container."""

    def __init__(
        self,
        image: str = "postgres",
        client: DockerClient | None = None,
        containers: ContainerAPI | None = None,
        volumes: VolumeAPI | None = None,
        images: ImageAPI | None = None,
        system: SystemAPI | None = None,
    ) -> None:
        self._image = image
        self._client = client or get_docker_client()
        self._containers = containers or ContainerAPI(self._client)
        self._volumes = volumes or VolumeAPI(self._client)
        self._images = images or ImageAPI(self._client)
        self._system = system or SystemAPI(self._client)

    async def ensure_available(self) -> None:
        try:
            info = await self._system.version()
        except httpx.HTTPError as exc:
            raise DockerAPIError(f"docker not available: {exc}") from exc
        except DockerAPIError as exc:
            raise DockerAPIError(f"docker not available: {exc.message}", exc.status_code) from exc
        logger.info("Docker engine available: %s", info.get("Version", "unknown"))

    async def create_volume(self, name: str) -> None:
        async with _docker_call("volume_create", f"create volume {name}"):
            await self._volumes.create(
                VolumeConfig(name=name, labels={MANAGED_LABEL: "true"})
            )
        logger.info(
            "Volume created",
            extra={"event": LogEvent.VOLUME_CREATED, "volume": name},
        )

    async def remove_volume(self, name: str) -> None:
        async with _docker_call("volume_remove", f"remove volume {name}"):
            removed = await self._volumes.remove(name)
        logger.info(
            "Volume removed" if removed else "Volume already removed",
            extra={"event": LogEvent.VOLUME_REMOVED, "volume": name, "existed": removed},
        )

    async def run_database(self, spec: DatabaseSpec) -> str:
        image = f"{self._image}:{spec.version}"
        config = ContainerConfig(
            image=image,
            name=spec.container_name,
            env=[
                f"POSTGRES_DB={spec.db}",
                f"POSTGRES_USER={spec.user}",
                f"POSTGRES_PASSWORD={spec.password}",
            ],
            labels={MANAGED_LABEL: "true"},
            exposed_ports={POSTGRES_PORT: {}},
            host_config=HostConfig(
                binds=[f"{spec.volume_name}:{POSTGRES_DATA_DIR}"],
                port_bindings={POSTGRES_PORT: spec.host_port},
                restart_policy=RestartPolicy(name="unless-stopped"),
            ),
        )

        async with _docker_call("run", f"docker run {spec.container_name}"):
            await self._images.ensure(image)
            container_id = await self._containers.create(config)
            if not container_id:
                raise DockerAPIError("docker run returned empty container id")
            try:
                await self._containers.start(container_id)
            except (DockerAPIError, httpx.HTTPError):
                await self._discard(container_id)
                raise

        logger.info(
            "Started database container",
            extra={
                "event": LogEvent.CONTAINER_STARTED,
                "container": spec.container_name,
                "container_id": container_id,
                "image": image,
                "host_port": spec.host_port,
            },
        )
        return container_id

    async def remove_container(self, container_id: str) -> None:
        async with _docker_call("remove", f"remove container {container_id}"):
            removed = await self._containers.remove(container_id, force=True)
        logger.info(
            "Container removed" if removed else "Container already removed",
            extra={
                "event": LogEvent.CONTAINER_REMOVED,
                "container_id": container_id,
                "existed": removed,
            },
        )

    async def wait_ready(
        self,
        container_id: str,
        user: str,
        db: str,
        timeout: float,
        interval: float = 1.0,
    ) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        cmd = ["pg_isready", "-U", user, "-d", db]

        async with _docker_call("wait_ready", f"wait ready {container_id}"):
            while True:
                if loop.time() > deadline:
                    logger.warning(
                        "Readiness deadline passed",
                        extra={
                            "event": LogEvent.READINESS_TIMEOUT,
                            "container_id": container_id,
                            "timeout": timeout,
                        },
                    )
                    raise ReadinessTimeoutError(
                        f"postgres did not become ready before {timeout:g}s"
                    )
                try:
                    if await self._containers.exec(container_id, cmd) == 0:
                        return
                except (DockerAPIError, httpx.HTTPError) as exc:
                    logger.debug("Readiness probe failed: %s", exc)
                await asyncio.sleep(interval)

    async def _discard(self, container_id: str) -> None:
        # Created-but-not-started containers keep the name reserved
        try:
            await self._containers.remove(container_id, force=True)
        except (DockerAPIError, httpx.HTTPError) as exc:
            logger.warning(
                "Failed to remove container after start failure",
                extra={
                    "event": LogEvent.ROLLBACK_FAILED,
                    "container_id": container_id,
                    "error": str(exc),
                },
            )

    async def close(self) -> None:
        await self._client.close()
