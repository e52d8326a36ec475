"""Compensating actions for partially provisioned resources."""

import logging
from collections.abc import Awaitable, Callable

from pgdb_agent.logging_schema import LogEvent

logger = logging.getLogger(__name__)


class Rollback:
    """Stack of compensating actions, run in reverse order of creation.

    Failures of individual actions are logged and swallowed so that the
    error which triggered the rollback is the one reported to the caller.
    Resources whose compensation failed are left behind (orphaned).
    """

    def __init__(self, subject: str) -> None:
        self._subject = subject
        self._actions: list[tuple[str, Callable[[], Awaitable[None]]]] = []

    def __len__(self) -> int:
        return len(self._actions)

    def push(self, description: str, action: Callable[[], Awaitable[None]]) -> None:
        self._actions.append((description, action))

    def clear(self) -> None:
        """Forget all actions (the transaction committed)."""
        self._actions.clear()

    async def run(self) -> None:
        """Run and drain all actions, newest first."""
        if not self._actions:
            return

        logger.info(
            "Rolling back %s",
            self._subject,
            extra={"event": LogEvent.ROLLBACK_STARTED, "subject": self._subject},
        )
        while self._actions:
            description, action = self._actions.pop()
            try:
                await action()
            except Exception as exc:
                logger.warning(
                    "Rollback step failed: %s",
                    description,
                    extra={
                        "event": LogEvent.ROLLBACK_FAILED,
                        "subject": self._subject,
                        "step": description,
                        "error": str(exc),
                    },
                )
