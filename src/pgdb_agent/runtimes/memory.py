"""In-memory runtime.

Deterministic stand-in for the Docker engine: used by the test suite and
selectable with PGDB_RUNTIME_BACKEND=memory for local development without a
container engine. Failures can be scripted per operation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from pgdb_agent.core.errors import ReadinessTimeoutError, RuntimeAdapterError
from pgdb_agent.core.runtime import DatabaseRuntime, DatabaseSpec

logger = logging.getLogger(__name__)


@dataclass
class MemoryContainer:
    id: str
    spec: DatabaseSpec


@dataclass
class FailurePlan:
    """Scripted failures, consumed in order.

    Attributes:
        port_conflicts: Number of upcoming run_database calls that fail with
            "port is already allocated".
        run_errors: Messages raised by upcoming run_database calls after the
            port conflicts are used up.
        never_ready: wait_ready always times out.
        create_volume_error: Message raised by every create_volume call.
        remove_volume_error: Message raised by every remove_volume call.
        remove_container_error: Message raised by every remove_container call.
        unavailable: ensure_available fails.
    """

    port_conflicts: int = 0
    run_errors: list[str] = field(default_factory=list)
    never_ready: bool = False
    create_volume_error: str | None = None
    remove_volume_error: str | None = None
    remove_container_error: str | None = None
    unavailable: bool = False


class MemoryRuntime(DatabaseRuntime):
    """Keeps containers and volumes in dictionaries.

    Every call is appended to ``calls`` as ``(operation, argument)``.
    """

    def __init__(self, failures: FailurePlan | None = None) -> None:
        self.failures = failures or FailurePlan()
        self.volumes: set[str] = set()
        self.containers: dict[str, MemoryContainer] = {}
        self.calls: list[tuple[str, object]] = []
        self._next_id = 0

    async def ensure_available(self) -> None:
        self.calls.append(("ensure_available", None))
        if self.failures.unavailable:
            raise RuntimeAdapterError("memory runtime marked unavailable")

    async def create_volume(self, name: str) -> None:
        self.calls.append(("create_volume", name))
        if self.failures.create_volume_error:
            raise RuntimeAdapterError(
                f"create volume {name}: {self.failures.create_volume_error}"
            )
        self.volumes.add(name)

    async def remove_volume(self, name: str) -> None:
        self.calls.append(("remove_volume", name))
        if self.failures.remove_volume_error:
            raise RuntimeAdapterError(
                f"remove volume {name}: {self.failures.remove_volume_error}"
            )
        self.volumes.discard(name)

    async def run_database(self, spec: DatabaseSpec) -> str:
        self.calls.append(("run_database", spec))
        if self.failures.port_conflicts > 0:
            self.failures.port_conflicts -= 1
            raise RuntimeAdapterError(
                f"docker run {spec.container_name}: Bind for 0.0.0.0:{spec.host_port} "
                "failed: port is already allocated"
            )
        if self.failures.run_errors:
            message = self.failures.run_errors.pop(0)
            raise RuntimeAdapterError(f"docker run {spec.container_name}: {message}")
        if spec.volume_name not in self.volumes:
            raise RuntimeAdapterError(f"volume {spec.volume_name} does not exist")

        self._next_id += 1
        container_id = f"mem{self._next_id:08d}"
        self.containers[container_id] = MemoryContainer(id=container_id, spec=spec)
        return container_id

    async def remove_container(self, container_id: str) -> None:
        self.calls.append(("remove_container", container_id))
        if self.failures.remove_container_error:
            raise RuntimeAdapterError(
                f"remove container {container_id}: {self.failures.remove_container_error}"
            )
        self.containers.pop(container_id, None)

    async def wait_ready(
        self,
        container_id: str,
        user: str,
        db: str,
        timeout: float,
        interval: float = 1.0,
    ) -> None:
        self.calls.append(("wait_ready", container_id))
        if self.failures.never_ready or container_id not in self.containers:
            raise ReadinessTimeoutError(
                f"postgres did not become ready before {timeout:g}s"
            )
        # Yield so concurrent operations interleave as they would against Docker
        await asyncio.sleep(0)

    def operations(self, name: str) -> list[object]:
        """Arguments of every recorded call to ``name``."""
        return [arg for op, arg in self.calls if op == name]
