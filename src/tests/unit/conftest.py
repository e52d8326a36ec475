"""Fixtures for pgdb agent unit tests."""

import itertools
from collections.abc import Callable
from pathlib import Path

import pytest

from pgdb_agent.core.deployer import Deployer
from pgdb_agent.core.destroyer import Destroyer
from pgdb_agent.core.status import StatusService
from pgdb_agent.registry import LockManager, RegistryStore
from pgdb_agent.runtimes.memory import MemoryRuntime

FIRST_TEST_PORT = 20000


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    return tmp_path / "registry.json"


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    return tmp_path / "registry.lock"


@pytest.fixture
def store(registry_path: Path) -> RegistryStore:
    return RegistryStore(registry_path)


@pytest.fixture
def locks(lock_path: Path) -> LockManager:
    return LockManager(lock_path)


@pytest.fixture
def runtime() -> MemoryRuntime:
    """In-memory runtime; tweak ``runtime.failures`` to script failures."""
    return MemoryRuntime()


@pytest.fixture
def port_reserver() -> Callable[[], int]:
    """Deterministic port source: 20000, 20001, ..."""
    return itertools.count(FIRST_TEST_PORT).__next__


@pytest.fixture
def deployer(
    store: RegistryStore,
    locks: LockManager,
    runtime: MemoryRuntime,
    port_reserver: Callable[[], int],
) -> Deployer:
    return Deployer(
        store=store,
        locks=locks,
        runtime=runtime,
        ready_timeout=1.0,
        ready_interval=0.01,
        port_reserver=port_reserver,
    )


@pytest.fixture
def destroyer(
    store: RegistryStore, locks: LockManager, runtime: MemoryRuntime
) -> Destroyer:
    return Destroyer(store=store, locks=locks, runtime=runtime)


@pytest.fixture
def status_service(store: RegistryStore, locks: LockManager) -> StatusService:
    return StatusService(store=store, locks=locks)
