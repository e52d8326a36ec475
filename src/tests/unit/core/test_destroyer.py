"""Unit tests for the destroy transaction."""

from pathlib import Path

import pytest

from pgdb_agent.core.deployer import Deployer
from pgdb_agent.core.destroyer import Destroyer
from pgdb_agent.core.errors import InstanceNotFoundError, RuntimeAdapterError, ValidationError
from pgdb_agent.core.models import DeployRequest
from pgdb_agent.registry import load
from pgdb_agent.runtimes.memory import MemoryRuntime


@pytest.fixture
async def deployed(deployer: Deployer, runtime: MemoryRuntime) -> str:
    """Deploy ``orders`` and forget the calls it made."""
    result = await deployer.deploy(DeployRequest(name="orders"))
    runtime.calls.clear()
    return result.name


class TestDestroy:
    """Tests for Destroyer.destroy."""

    async def test_removes_everything(
        self,
        destroyer: Destroyer,
        deployed: str,
        runtime: MemoryRuntime,
        registry_path: Path,
    ) -> None:
        await destroyer.destroy(deployed)

        assert load(registry_path).items == []
        assert runtime.containers == {}
        assert runtime.volumes == set()
        assert [op for op, _ in runtime.calls] == ["remove_container", "remove_volume"]

    async def test_keep_data_never_touches_volume(
        self,
        destroyer: Destroyer,
        deployed: str,
        runtime: MemoryRuntime,
        registry_path: Path,
    ) -> None:
        await destroyer.destroy(deployed, keep_data=True)

        assert runtime.operations("remove_volume") == []
        assert runtime.volumes == {"pgdb-orders"}
        assert runtime.containers == {}
        assert load(registry_path).items == []

    async def test_other_entries_untouched(
        self,
        deployer: Deployer,
        destroyer: Destroyer,
        deployed: str,
        registry_path: Path,
    ) -> None:
        await deployer.deploy(DeployRequest(name="billing"))

        await destroyer.destroy(deployed)

        assert [item.name for item in load(registry_path).items] == ["billing"]

    async def test_unknown_name(
        self,
        destroyer: Destroyer,
        deployed: str,
        runtime: MemoryRuntime,
        registry_path: Path,
    ) -> None:
        before = registry_path.read_bytes()

        with pytest.raises(InstanceNotFoundError, match="database 'missing' not found"):
            await destroyer.destroy("missing")

        assert registry_path.read_bytes() == before
        assert runtime.calls == []

    async def test_empty_registry(self, destroyer: Destroyer) -> None:
        with pytest.raises(InstanceNotFoundError):
            await destroyer.destroy("orders")

    @pytest.mark.parametrize("name", ["", "   "])
    async def test_blank_name(self, destroyer: Destroyer, name: str) -> None:
        with pytest.raises(ValidationError, match="database name is required"):
            await destroyer.destroy(name)

    async def test_volume_failure_keeps_entry(
        self,
        destroyer: Destroyer,
        deployed: str,
        runtime: MemoryRuntime,
        registry_path: Path,
    ) -> None:
        """A partial teardown stays registered so destroy can be repeated."""
        runtime.failures.remove_volume_error = "volume is in use"

        with pytest.raises(RuntimeAdapterError, match="volume is in use"):
            await destroyer.destroy(deployed)

        assert [item.name for item in load(registry_path).items] == ["orders"]

        runtime.failures.remove_volume_error = None
        await destroyer.destroy(deployed)

        assert load(registry_path).items == []
        assert runtime.volumes == set()

    async def test_container_failure_skips_volume(
        self,
        destroyer: Destroyer,
        deployed: str,
        runtime: MemoryRuntime,
        registry_path: Path,
    ) -> None:
        runtime.failures.remove_container_error = "device or resource busy"

        with pytest.raises(RuntimeAdapterError):
            await destroyer.destroy(deployed)

        assert runtime.operations("remove_volume") == []
        assert len(load(registry_path).items) == 1

    async def test_resources_already_gone(
        self,
        destroyer: Destroyer,
        deployed: str,
        runtime: MemoryRuntime,
        registry_path: Path,
    ) -> None:
        """Container and volume removed out of band still drop the entry."""
        runtime.containers.clear()
        runtime.volumes.clear()

        await destroyer.destroy(deployed)

        assert load(registry_path).items == []
        assert [op for op, _ in runtime.calls] == ["remove_container", "remove_volume"]
