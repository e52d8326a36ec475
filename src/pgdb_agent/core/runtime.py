"""Container runtime interface used by the deployer and destroyer.

Provisioning logic only talks to this interface. The Docker engine
implementation lives in ``pgdb_agent.runtimes.docker``, an in-memory one
in ``pgdb_agent.runtimes.memory``.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel

from pgdb_agent.core.errors import RuntimeAdapterError

PORT_CONFLICT_MARKERS = (
    "port is already allocated",
    "address already in use",
)


class DatabaseSpec(BaseModel):
    """Everything needed to start one PostgreSQL container."""

    container_name: str
    volume_name: str
    host_port: int
    db: str
    user: str
    password: str
    version: str

    model_config = {"frozen": True}


def is_port_conflict_error(exc: BaseException) -> bool:
    """Classify a runtime failure as a host port allocation conflict."""
    if not isinstance(exc, RuntimeAdapterError):
        return False
    message = exc.message.lower()
    return any(marker in message for marker in PORT_CONFLICT_MARKERS)


class DatabaseRuntime(ABC):
    """Runtime capable of hosting PostgreSQL containers.

    All failures are raised as RuntimeAdapterError (or a subclass), except
    readiness timeouts which raise ReadinessTimeoutError.
    """

    @abstractmethod
    async def ensure_available(self) -> None:
        """Fail if the runtime cannot be reached."""
        ...

    @abstractmethod
    async def create_volume(self, name: str) -> None:
        ...

    @abstractmethod
    async def remove_volume(self, name: str) -> None:
        """Remove a volume. A volume that is already gone is not an error."""
        ...

    @abstractmethod
    async def run_database(self, spec: DatabaseSpec) -> str:
        """Create and start a database container, returning its ID.

        A container that fails to start is removed before the error is
        raised, so a retry can reuse the container name.
        """
        ...

    @abstractmethod
    async def remove_container(self, container_id: str) -> None:
        """Force-remove a container. Already absent counts as success."""
        ...

    @abstractmethod
    async def wait_ready(
        self,
        container_id: str,
        user: str,
        db: str,
        timeout: float,
        interval: float = 1.0,
    ) -> None:
        """Poll until the database accepts connections or the deadline passes."""
        ...

    def is_port_conflict(self, exc: Exception) -> bool:
        return is_port_conflict_error(exc)

    async def close(self) -> None:
        """Release client resources."""
