"""Registry storage and locking."""

from pgdb_agent.registry.lock import LockHandle, LockManager, acquire_lock, release_lock
from pgdb_agent.registry.store import RegistryStore, ensure_data_dir, find_by_name, load, save

__all__ = [
    "LockHandle",
    "LockManager",
    "RegistryStore",
    "acquire_lock",
    "ensure_data_dir",
    "find_by_name",
    "load",
    "release_lock",
    "save",
]
