"""Bounded retry policy for provisioning attempts.

Unlike a generic backoff helper, provisioning retries are immediate: a
port conflict is resolved by reserving a different port, not by waiting.

Usage:
    policy = RetryPolicy(max_attempts=5, is_retryable=runtime.is_port_conflict)
    result = await policy.run(lambda attempt: provision(attempt))
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from pgdb_agent.core.errors import RetryExhaustedError
from pgdb_agent.logging_schema import LogEvent
from pgdb_agent.metrics import PGDB_PORT_CONFLICT_RETRIES

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget plus a predicate selecting retryable failures.

    Attributes:
        max_attempts: Total attempts including the first one.
        is_retryable: Returns True for failures worth another attempt.
    """

    max_attempts: int
    is_retryable: Callable[[Exception], bool]

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    async def run(self, attempt_factory: Callable[[int], Awaitable[T]]) -> T:
        """Run ``attempt_factory(attempt)`` until it succeeds.

        Attempts are numbered from 1. Non-retryable failures propagate
        unchanged on the attempt they occur.

        Raises:
            RetryExhaustedError: Every attempt failed with a retryable
                error. The last failure is chained as ``__cause__``.
        """
        last_exc: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await attempt_factory(attempt)
            except Exception as exc:
                if not self.is_retryable(exc):
                    raise
                last_exc = exc
                PGDB_PORT_CONFLICT_RETRIES.inc()
                logger.warning(
                    "Retryable failure (attempt %d/%d): %s",
                    attempt,
                    self.max_attempts,
                    exc,
                    extra={"event": LogEvent.PORT_CONFLICT, "attempt": attempt},
                )

        logger.error(
            "Retries exhausted after %d attempts",
            self.max_attempts,
            extra={"event": LogEvent.RETRY_EXHAUSTED, "attempts": self.max_attempts},
        )
        raise RetryExhaustedError(
            f"{RetryExhaustedError.default_message}: {last_exc}"
        ) from last_exc
