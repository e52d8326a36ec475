"""Destroy transaction: tear down an instance and drop its registry entry."""

from __future__ import annotations

import logging

from pgdb_agent.core.errors import InstanceNotFoundError, ValidationError
from pgdb_agent.core.runtime import DatabaseRuntime
from pgdb_agent.logging_schema import LogEvent
from pgdb_agent.registry import LockManager, RegistryStore, find_by_name

logger = logging.getLogger(__name__)


class Destroyer:
    """Removes runtime resources first, then the registry entry.

    A failure while removing resources aborts before the registry is
    touched, so the entry stays and the destroy can be repeated.
    """

    def __init__(
        self,
        store: RegistryStore,
        locks: LockManager,
        runtime: DatabaseRuntime,
    ) -> None:
        self._store = store
        self._locks = locks
        self._runtime = runtime

    async def destroy(self, name: str, keep_data: bool = False) -> None:
        """Destroy the named instance.

        Args:
            name: Registry name of the instance.
            keep_data: Keep the data volume; only the container is removed.

        Raises:
            ValidationError: Empty name.
            InstanceNotFoundError: No such instance; registry unchanged.
            RuntimeAdapterError: Container or volume removal failed.
        """
        if not name or not name.strip():
            raise ValidationError("database name is required")

        async with self._locks.hold() as handle:
            registry = self._store.load(handle)
            instance, index = find_by_name(registry, name)
            if instance is None:
                raise InstanceNotFoundError(f"database '{name}' not found")

            try:
                await self._runtime.remove_container(instance.container_id)
                if not keep_data:
                    await self._runtime.remove_volume(instance.volume_name)
            except Exception as exc:
                logger.error(
                    "Destroy failed: %s",
                    exc,
                    extra={"event": LogEvent.DESTROY_FAILED, "instance": name},
                )
                raise

            del registry.items[index]
            self._store.save(handle, registry)

        logger.info(
            "Database destroyed",
            extra={
                "event": LogEvent.DESTROY_COMPLETED,
                "instance": name,
                "keep_data": keep_data,
            },
        )
