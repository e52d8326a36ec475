"""Host-local exclusive lock over the registry.

The lock is an ``flock(LOCK_EX)`` on a dedicated lock file. It serializes
every registry read-modify-write cycle across tasks, threads and processes
on the same host. Acquisition has no timeout: a holder that never releases
blocks all later operations.
"""

from __future__ import annotations

import asyncio
import fcntl
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from pgdb_agent.core.errors import LockError
from pgdb_agent.logging_schema import LogEvent

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class LockHandle:
    """Proof of holding the registry lock.

    Passed explicitly to registry operations; it is invalid once released.
    """

    path: Path
    _fd: int | None = field(default=None, repr=False)

    @property
    def held(self) -> bool:
        return self._fd is not None


def acquire_lock(path: Path) -> LockHandle:
    """Block until the exclusive lock on ``path`` is held.

    Each call opens its own descriptor, so two acquisitions in the same
    process contend with each other just like separate processes do.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LockError(f"create lock directory: {exc}") from exc

    try:
        fd = os.open(path, os.O_CREAT | os.O_RDWR, 0o600)
    except OSError as exc:
        raise LockError(f"open lock file: {exc}") from exc

    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
    except OSError as exc:
        os.close(fd)
        raise LockError(f"acquire lock: {exc}") from exc

    return LockHandle(path=path, _fd=fd)


def release_lock(handle: LockHandle) -> None:
    """Release a held lock and close its descriptor."""
    fd = handle._fd
    if fd is None:
        raise LockError("lock is not held")
    handle._fd = None

    unlock_error: OSError | None = None
    try:
        fcntl.flock(fd, fcntl.LOCK_UN)
    except OSError as exc:
        unlock_error = exc
    try:
        os.close(fd)
    except OSError as exc:
        if unlock_error is None:
            raise LockError(f"close lock file: {exc}") from exc
    if unlock_error is not None:
        raise LockError(f"unlock registry: {unlock_error}") from unlock_error


def _release_abandoned(future: asyncio.Future[LockHandle]) -> None:
    # The waiting task was cancelled but the worker thread still got the lock
    if future.cancelled() or future.exception() is not None:
        return
    release_lock(future.result())


class LockManager:
    """Async front-end for the registry lock."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    async def acquire(self) -> LockHandle:
        """Acquire the lock without blocking the event loop."""
        future = asyncio.ensure_future(asyncio.to_thread(acquire_lock, self._path))
        try:
            handle = await asyncio.shield(future)
        except asyncio.CancelledError:
            future.add_done_callback(_release_abandoned)
            raise
        logger.debug(
            "Registry lock acquired",
            extra={"event": LogEvent.LOCK_ACQUIRED, "path": str(self._path)},
        )
        return handle

    def release(self, handle: LockHandle) -> None:
        release_lock(handle)
        logger.debug(
            "Registry lock released",
            extra={"event": LogEvent.LOCK_RELEASED, "path": str(self._path)},
        )

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[LockHandle]:
        """Hold the lock for the duration of the block.

        Usage:
            async with locks.hold() as handle:
                registry = store.load(handle)
        """
        handle = await self.acquire()
        try:
            yield handle
        finally:
            self.release(handle)
