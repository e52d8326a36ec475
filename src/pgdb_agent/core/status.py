"""Read-only projection of the registry."""

from pgdb_agent.core.models import DBInstance, InstanceView
from pgdb_agent.core.urls import database_url
from pgdb_agent.registry import LockManager, RegistryStore


def to_view(instance: DBInstance) -> InstanceView:
    """Project a stored instance, deriving its URL from the current fields."""
    return InstanceView(
        **instance.model_dump(),
        database_url=database_url(instance),
    )


class StatusService:
    """Lists registry entries.

    Takes the same exclusive lock as writers so a snapshot is never read
    while another operation is between load and save.
    """

    def __init__(self, store: RegistryStore, locks: LockManager) -> None:
        self._store = store
        self._locks = locks

    async def status(self) -> list[InstanceView]:
        async with self._locks.hold() as handle:
            registry = self._store.load(handle)
        return [to_view(item) for item in registry.items]
