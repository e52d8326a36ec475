"""Tests for the provisioning retry policy."""

import pytest

from pgdb_agent.core.errors import RetryExhaustedError, RuntimeAdapterError
from pgdb_agent.core.retry import RetryPolicy
from pgdb_agent.core.runtime import is_port_conflict_error


class Conflict(Exception):
    pass


def is_conflict(exc: Exception) -> bool:
    return isinstance(exc, Conflict)


class TestRetryPolicy:
    """Tests for RetryPolicy.run."""

    async def test_first_attempt_succeeds(self) -> None:
        attempts: list[int] = []

        async def attempt(n: int) -> str:
            attempts.append(n)
            return "ok"

        result = await RetryPolicy(max_attempts=5, is_retryable=is_conflict).run(attempt)

        assert result == "ok"
        assert attempts == [1]

    async def test_retries_until_success(self) -> None:
        attempts: list[int] = []

        async def attempt(n: int) -> int:
            attempts.append(n)
            if n < 3:
                raise Conflict(f"conflict {n}")
            return n

        result = await RetryPolicy(max_attempts=5, is_retryable=is_conflict).run(attempt)

        assert result == 3
        assert attempts == [1, 2, 3]

    async def test_non_retryable_propagates(self) -> None:
        attempts: list[int] = []

        async def attempt(n: int) -> None:
            attempts.append(n)
            raise ValueError("fatal")

        with pytest.raises(ValueError, match="fatal"):
            await RetryPolicy(max_attempts=5, is_retryable=is_conflict).run(attempt)

        assert attempts == [1]

    async def test_exhausted(self) -> None:
        attempts: list[int] = []

        async def attempt(n: int) -> None:
            attempts.append(n)
            raise Conflict(f"conflict {n}")

        with pytest.raises(RetryExhaustedError) as exc_info:
            await RetryPolicy(max_attempts=3, is_retryable=is_conflict).run(attempt)

        assert attempts == [1, 2, 3]
        assert str(exc_info.value.__cause__) == "conflict 3"
        assert exc_info.value.message.endswith("conflict 3")

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0, is_retryable=is_conflict)


class TestPortConflictClassification:
    """Tests for is_port_conflict_error."""

    @pytest.mark.parametrize(
        "message",
        [
            "Bind for 0.0.0.0:20000 failed: port is already allocated",
            "listen tcp 0.0.0.0:20000: bind: Address already in use",
        ],
    )
    def test_conflicts(self, message: str) -> None:
        assert is_port_conflict_error(RuntimeAdapterError(message))

    def test_other_runtime_errors(self) -> None:
        assert not is_port_conflict_error(RuntimeAdapterError("no such image: postgres:16"))

    def test_non_runtime_errors(self) -> None:
        assert not is_port_conflict_error(ValueError("port is already allocated"))
