"""Service wiring: registry, lock, runtime and the three operations."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from pgdb_agent.config import AgentConfig, get_agent_config
from pgdb_agent.core.deployer import Deployer
from pgdb_agent.core.destroyer import Destroyer
from pgdb_agent.core.errors import ErrorCode, PgdbError
from pgdb_agent.core.models import DeployRequest, DeployResult, InstanceView
from pgdb_agent.core.naming import ResourceNaming
from pgdb_agent.core.runtime import DatabaseRuntime
from pgdb_agent.core.status import StatusService
from pgdb_agent.logging_schema import LogEvent
from pgdb_agent.metrics import (
    PGDB_INSTANCES_TOTAL,
    PGDB_OPERATION_DURATION,
    PGDB_OPERATION_ERRORS,
)
from pgdb_agent.registry import LockManager, RegistryStore, ensure_data_dir, load
from pgdb_agent.runtimes import create_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def observe_operation(operation: str) -> AsyncIterator[None]:
    """Record duration and failures of one registry operation."""
    start = time.perf_counter()
    try:
        yield
    except Exception as exc:
        code = exc.code if isinstance(exc, PgdbError) else ErrorCode.INTERNAL_ERROR
        PGDB_OPERATION_ERRORS.labels(operation=operation, error_code=code.value).inc()
        raise
    finally:
        PGDB_OPERATION_DURATION.labels(operation=operation).observe(time.perf_counter() - start)


class PgdbService:
    """Deploy, destroy and status over one registry and one runtime."""

    def __init__(
        self,
        config: AgentConfig | None = None,
        runtime: DatabaseRuntime | None = None,
    ) -> None:
        self._config = config or get_agent_config()
        self.runtime = runtime or create_runtime(self._config)

        registry_config = self._config.registry
        self.store = RegistryStore(registry_config.resolved_registry_path)
        self.locks = LockManager(registry_config.resolved_lock_path)

        deploy_config = self._config.deploy
        self.deployer = Deployer(
            store=self.store,
            locks=self.locks,
            runtime=self.runtime,
            naming=ResourceNaming(deploy_config.resource_prefix),
            public_host=self._config.server.public_host,
            max_attempts=deploy_config.max_attempts,
            ready_timeout=deploy_config.ready_timeout,
            ready_interval=deploy_config.ready_interval,
            default_version=deploy_config.default_version,
            min_version=deploy_config.min_version,
            max_version=deploy_config.max_version,
        )
        self.destroyer = Destroyer(store=self.store, locks=self.locks, runtime=self.runtime)
        self.status_service = StatusService(store=self.store, locks=self.locks)

    async def init(self) -> None:
        """Create the data directory and check the runtime is reachable."""
        ensure_data_dir(self._config.registry.data_dir)
        try:
            await self.runtime.ensure_available()
        except PgdbError as exc:
            logger.error(
                "Container runtime is not ready: %s",
                exc,
                extra={"event": LogEvent.RUNTIME_UNAVAILABLE},
            )
            raise

    async def close(self) -> None:
        await self.runtime.close()

    def instance_count(self) -> int:
        """Count registered instances without taking the lock.

        Saves replace the file atomically, so an unlocked read sees either
        the previous or the next registry.
        """
        return len(load(self.store.path).items)

    def _record_instances(self) -> None:
        try:
            PGDB_INSTANCES_TOTAL.set(self.instance_count())
        except PgdbError as exc:
            logger.warning("Could not count instances: %s", exc)

    async def deploy(self, request: DeployRequest, request_host: str = "") -> DeployResult:
        async with observe_operation("deploy"):
            result = await self.deployer.deploy(request, request_host)
        self._record_instances()
        return result

    async def destroy(self, name: str, keep_data: bool = False) -> None:
        async with observe_operation("destroy"):
            await self.destroyer.destroy(name, keep_data)
        self._record_instances()

    async def status(self) -> list[InstanceView]:
        async with observe_operation("status"):
            items = await self.status_service.status()
        PGDB_INSTANCES_TOTAL.set(len(items))
        return items
