"""Unit tests for registry persistence."""

import json
import os
import stat
from pathlib import Path

import pytest

from pgdb_agent.core.errors import LockError, RegistryError
from pgdb_agent.core.models import DBInstance, Registry
from pgdb_agent.registry import LockHandle, LockManager, RegistryStore, find_by_name, load, save


def make_instance(name: str = "orders", **overrides: object) -> DBInstance:
    fields = {
        "name": name,
        "container_id": f"cid-{name}",
        "volume_name": f"pgdb-{name}",
        "host": "127.0.0.1",
        "host_port": 15432,
        "db": "pg_abcdefghij",
        "user": "u_abcdefghij",
        "password": "s3cret-password-with-enough-length",
        "created_at": "2026-01-02T03:04:05Z",
        "postgres_version": "16",
    }
    fields.update(overrides)
    return DBInstance(**fields)


class TestLoad:
    """Tests for reading the registry file."""

    def test_missing_file_is_empty(self, registry_path: Path) -> None:
        """A registry that was never written has no items."""
        assert load(registry_path).items == []

    def test_empty_file_is_empty(self, registry_path: Path) -> None:
        registry_path.write_bytes(b"")

        assert load(registry_path).items == []

    def test_null_items_is_empty(self, registry_path: Path) -> None:
        registry_path.write_text('{"items": null}')

        assert load(registry_path).items == []

    def test_missing_items_key_is_empty(self, registry_path: Path) -> None:
        registry_path.write_text("{}")

        assert load(registry_path).items == []

    def test_malformed_json_raises(self, registry_path: Path) -> None:
        """Corrupt content is an error, never an empty registry."""
        registry_path.write_text("{not json")

        with pytest.raises(RegistryError) as exc_info:
            load(registry_path)

        assert exc_info.value.message.startswith("parse registry json")

    def test_wrong_shape_raises(self, registry_path: Path) -> None:
        registry_path.write_text('{"items": [{"name": "orders"}]}')

        with pytest.raises(RegistryError):
            load(registry_path)

    def test_top_level_list_raises(self, registry_path: Path) -> None:
        registry_path.write_text("[1, 2]")

        with pytest.raises(RegistryError):
            load(registry_path)


class TestSave:
    """Tests for atomic registry writes."""

    def test_round_trip(self, registry_path: Path) -> None:
        registry = Registry(
            items=[make_instance("orders"), make_instance("billing", size_gb=5)]
        )

        save(registry_path, registry)

        assert load(registry_path) == registry

    def test_round_trip_preserves_order(self, registry_path: Path) -> None:
        names = ["zeta", "alpha", "mid"]
        save(registry_path, Registry(items=[make_instance(n) for n in names]))

        assert [item.name for item in load(registry_path).items] == names

    def test_zero_items(self, registry_path: Path) -> None:
        """An emptied registry is written as an empty list, not omitted."""
        save(registry_path, Registry())

        assert json.loads(registry_path.read_text()) == {"items": []}
        assert load(registry_path).items == []

    def test_indented_with_trailing_newline(self, registry_path: Path) -> None:
        save(registry_path, Registry(items=[make_instance()]))

        text = registry_path.read_text()
        assert text.startswith('{\n  "items": [')
        assert text.endswith("}\n")

    def test_unset_size_is_omitted(self, registry_path: Path) -> None:
        save(registry_path, Registry(items=[make_instance()]))

        assert "size_gb" not in registry_path.read_text()

    def test_file_is_owner_only(self, registry_path: Path) -> None:
        save(registry_path, Registry(items=[make_instance()]))

        assert stat.S_IMODE(os.stat(registry_path).st_mode) == 0o600

    def test_no_temp_file_left(self, registry_path: Path) -> None:
        save(registry_path, Registry(items=[make_instance()]))

        assert not registry_path.with_name("registry.json.tmp").exists()

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "registry.json"

        save(path, Registry())

        assert path.exists()

    def test_failed_replace_keeps_previous_snapshot(
        self, registry_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Readers see the old document when the atomic swap fails."""
        save(registry_path, Registry(items=[make_instance("orders")]))
        before = registry_path.read_bytes()

        def failing_replace(src: object, dst: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("pgdb_agent.registry.store.os.replace", failing_replace)

        with pytest.raises(RegistryError, match="replace registry atomically"):
            save(registry_path, Registry())

        assert registry_path.read_bytes() == before


class TestFindByName:
    """Tests for lookup by name."""

    def test_found(self) -> None:
        registry = Registry(items=[make_instance("a-one"), make_instance("b-two")])

        item, index = find_by_name(registry, "b-two")

        assert item is not None
        assert item.name == "b-two"
        assert index == 1

    def test_absent(self) -> None:
        item, index = find_by_name(Registry(), "missing")

        assert item is None
        assert index == -1


class TestRegistryStore:
    """Tests for lock-guarded registry access."""

    async def test_load_and_save_under_lock(
        self, store: RegistryStore, locks: LockManager
    ) -> None:
        async with locks.hold() as handle:
            registry = store.load(handle)
            registry.items.append(make_instance())
            store.save(handle, registry)

        async with locks.hold() as handle:
            assert [item.name for item in store.load(handle).items] == ["orders"]

    def test_load_requires_held_lock(self, store: RegistryStore, lock_path: Path) -> None:
        with pytest.raises(LockError):
            store.load(LockHandle(path=lock_path))

    async def test_save_with_released_handle_raises(
        self, store: RegistryStore, locks: LockManager
    ) -> None:
        async with locks.hold() as handle:
            pass

        with pytest.raises(LockError):
            store.save(handle, Registry())
