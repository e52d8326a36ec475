"""Registry persistence as a single JSON document.

The document is ``{"items": [...]}``. Writes go to a sibling temporary
file which then atomically replaces the registry, so readers only ever
see a complete snapshot.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from pgdb_agent.core.errors import LockError, RegistryError
from pgdb_agent.core.models import DBInstance, Registry
from pgdb_agent.logging_schema import LogEvent
from pgdb_agent.registry.lock import LockHandle

logger = logging.getLogger(__name__)


def ensure_data_dir(data_dir: Path) -> None:
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RegistryError(f"create data dir: {exc}") from exc


def load(path: Path) -> Registry:
    """Read the registry.

    A missing or empty file is an empty registry. Malformed content raises
    RegistryError rather than being treated as empty.
    """
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return Registry()
    except OSError as exc:
        raise RegistryError(f"read registry: {exc}") from exc

    if not raw:
        return Registry()

    try:
        data = json.loads(raw)
        if isinstance(data, dict) and data.get("items") is None:
            data = {**data, "items": []}
        return Registry.model_validate(data)
    except (ValueError, PydanticValidationError) as exc:
        raise RegistryError(f"parse registry json: {exc}") from exc


def dumps(registry: Registry) -> str:
    """Serialize deterministically: field order fixed, 2-space indent."""
    return json.dumps(registry.model_dump(exclude_none=True), indent=2) + "\n"


def save(path: Path, registry: Registry) -> None:
    """Persist the registry via write-to-temp then atomic replace."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RegistryError(f"create registry dir: {exc}") from exc

    tmp_path = path.with_name(path.name + ".tmp")
    payload = dumps(registry).encode("utf-8")
    try:
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
    except OSError as exc:
        raise RegistryError(f"write temp registry: {exc}") from exc

    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        raise RegistryError(f"replace registry atomically: {exc}") from exc


def find_by_name(registry: Registry, name: str) -> tuple[DBInstance | None, int]:
    """Linear scan. Returns ``(None, -1)`` when absent."""
    for index, item in enumerate(registry.items):
        if item.name == name:
            return item, index
    return None, -1


class RegistryStore:
    """Registry file bound to a path; access requires a held lock handle."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self, handle: LockHandle) -> Registry:
        self._check(handle)
        registry = load(self._path)
        logger.debug(
            "Registry loaded",
            extra={"event": LogEvent.REGISTRY_LOADED, "items": len(registry.items)},
        )
        return registry

    def save(self, handle: LockHandle, registry: Registry) -> None:
        self._check(handle)
        save(self._path, registry)
        logger.debug(
            "Registry saved",
            extra={"event": LogEvent.REGISTRY_SAVED, "items": len(registry.items)},
        )

    @staticmethod
    def _check(handle: LockHandle) -> None:
        if not handle.held:
            raise LockError("registry accessed without holding the lock")
