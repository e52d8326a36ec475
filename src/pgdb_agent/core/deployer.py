"""Deploy transaction: create a new PostgreSQL instance.

Sequence, all under the registry lock:

1. check the name is free (no runtime call on conflict)
2. generate credentials and resource names
3. provisioning attempts: reserve port → create volume → run container,
   retried on host port conflicts
4. wait for readiness
5. append to the registry and persist

Any failure after a runtime resource exists rolls back what was created,
newest first. A failed registry commit also rolls back, so runtime
resources never outlive a missing registry entry.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone

from pgdb_agent.core.errors import NameConflictError, PgdbError, ValidationError
from pgdb_agent.core.identity import (
    generate_database_name,
    generate_instance_name,
    generate_user_name,
    random_password,
)
from pgdb_agent.core.models import DBInstance, DeployRequest, DeployResult
from pgdb_agent.core.naming import ResourceNaming
from pgdb_agent.core.ports import reserve_port
from pgdb_agent.core.retry import RetryPolicy
from pgdb_agent.core.rollback import Rollback
from pgdb_agent.core.runtime import DatabaseRuntime, DatabaseSpec
from pgdb_agent.core.urls import database_url, derive_host
from pgdb_agent.logging_schema import LogEvent
from pgdb_agent.registry import LockManager, RegistryStore, find_by_name

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[a-z][a-z0-9-]{2,62}$")


def now_rfc3339() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class Deployer:
    """Orchestrates the create transaction against a runtime and the registry."""

    def __init__(
        self,
        store: RegistryStore,
        locks: LockManager,
        runtime: DatabaseRuntime,
        naming: ResourceNaming | None = None,
        public_host: str = "",
        max_attempts: int = 5,
        ready_timeout: float = 90.0,
        ready_interval: float = 1.0,
        default_version: int = 16,
        min_version: int = 12,
        max_version: int = 17,
        port_reserver: Callable[[], int] = reserve_port,
    ) -> None:
        self._store = store
        self._locks = locks
        self._runtime = runtime
        self._naming = naming or ResourceNaming()
        self._public_host = public_host
        self._retry = RetryPolicy(
            max_attempts=max_attempts,
            is_retryable=runtime.is_port_conflict,
        )
        self._ready_timeout = ready_timeout
        self._ready_interval = ready_interval
        self._default_version = default_version
        self._min_version = min_version
        self._max_version = max_version
        self._reserve_port = port_reserver

    # =========================================================================
    # Validation
    # =========================================================================

    def resolve_version(self, version: int | None) -> int:
        """Apply the default version and check the supported range."""
        if not version:
            return self._default_version
        if version < self._min_version or version > self._max_version:
            raise ValidationError(
                f"version must be between {self._min_version} and {self._max_version}"
            )
        return version

    @staticmethod
    def resolve_name(raw: str | None) -> str:
        """Normalize a caller-supplied name, or generate ``db-xxxxxxxx``."""
        if raw is None or not raw.strip():
            return generate_instance_name()

        name = raw.strip().lower()
        if not NAME_PATTERN.match(name):
            raise ValidationError(
                f"invalid name '{raw}' (must match {NAME_PATTERN.pattern})"
            )
        return name

    # =========================================================================
    # Transaction
    # =========================================================================

    async def deploy(self, request: DeployRequest, request_host: str = "") -> DeployResult:
        """Provision a new instance and record it in the registry.

        Raises:
            ValidationError: Bad name or version.
            NameConflictError: Name already in the registry.
            RetryExhaustedError: Every attempt hit a host port conflict.
            ReadinessTimeoutError: Database never became ready.
            RuntimeAdapterError: Any other runtime failure.
            RegistryError: Registry could not be read or written.
            LockError: Lock could not be acquired or released.
        """
        version = self.resolve_version(request.version)
        name = self.resolve_name(request.name)

        async with self._locks.hold() as handle:
            registry = self._store.load(handle)
            existing, _ = find_by_name(registry, name)
            if existing is not None:
                raise NameConflictError(f"database name '{name}' already exists")

            logger.info(
                "Deploying database",
                extra={"event": LogEvent.DEPLOY_STARTED, "instance": name, "version": version},
            )

            password = random_password()
            base_spec = DatabaseSpec(
                container_name=self._naming.container_name(name),
                volume_name=self._naming.volume_name(name),
                host_port=0,
                db=generate_database_name(),
                user=generate_user_name(),
                password=password,
                version=str(version),
            )
            host = derive_host(self._public_host, request_host)
            created_at = now_rfc3339()
            rollback = Rollback(subject=name)

            try:
                spec, container_id = await self._retry.run(
                    lambda attempt: self._provision(base_spec, rollback, attempt)
                )
                await self._runtime.wait_ready(
                    container_id,
                    spec.user,
                    spec.db,
                    timeout=self._ready_timeout,
                    interval=self._ready_interval,
                )

                instance = DBInstance(
                    name=name,
                    container_id=container_id,
                    volume_name=spec.volume_name,
                    host=host,
                    host_port=spec.host_port,
                    db=spec.db,
                    user=spec.user,
                    password=password,
                    created_at=created_at,
                    postgres_version=spec.version,
                    size_gb=request.size_gb if (request.size_gb or 0) > 0 else None,
                )
                registry.items.append(instance)
                self._store.save(handle, registry)
            except Exception as exc:
                await rollback.run()
                logger.error(
                    "Deploy failed: %s",
                    exc,
                    extra={
                        "event": LogEvent.DEPLOY_FAILED,
                        "instance": name,
                        "error_code": exc.code.value if isinstance(exc, PgdbError) else None,
                    },
                )
                raise

            rollback.clear()

        logger.info(
            "Database deployed",
            extra={
                "event": LogEvent.DEPLOY_COMPLETED,
                "instance": name,
                "container_id": container_id,
                "host_port": instance.host_port,
            },
        )
        return DeployResult(
            name=instance.name,
            host=instance.host,
            port=instance.host_port,
            db=instance.db,
            user=instance.user,
            password=instance.password,
            database_url=database_url(instance),
            created_at=instance.created_at,
            postgres_version=instance.postgres_version,
        )

    async def _provision(
        self,
        base_spec: DatabaseSpec,
        rollback: Rollback,
        attempt: int,
    ) -> tuple[DatabaseSpec, str]:
        """One attempt: fresh port, volume, container.

        On a failed start the volume is removed before the error propagates,
        so every attempt begins from a clean slate.
        """
        spec = base_spec.model_copy(update={"host_port": self._reserve_port()})
        logger.debug(
            "Provisioning attempt %d on port %d",
            attempt,
            spec.host_port,
            extra={"instance": spec.container_name, "attempt": attempt},
        )

        await self._runtime.create_volume(spec.volume_name)
        rollback.push(
            f"remove volume {spec.volume_name}",
            lambda: self._runtime.remove_volume(spec.volume_name),
        )

        try:
            container_id = await self._runtime.run_database(spec)
        except Exception:
            await rollback.run()
            raise

        rollback.push(
            f"remove container {container_id}",
            lambda: self._runtime.remove_container(container_id),
        )
        return spec, container_id
