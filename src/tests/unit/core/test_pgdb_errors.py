"""Tests for error handling classes."""

import pytest

from pgdb_agent.core.errors import (
    ErrorCode,
    InstanceNotFoundError,
    LockError,
    NameConflictError,
    PgdbError,
    ReadinessTimeoutError,
    RegistryError,
    RetryExhaustedError,
    RuntimeAdapterError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error_cls", "code", "status_code"),
    [
        (ValidationError, ErrorCode.VALIDATION_ERROR, 400),
        (NameConflictError, ErrorCode.NAME_CONFLICT, 409),
        (InstanceNotFoundError, ErrorCode.INSTANCE_NOT_FOUND, 404),
        (RetryExhaustedError, ErrorCode.RETRY_EXHAUSTED, 503),
        (ReadinessTimeoutError, ErrorCode.READINESS_TIMEOUT, 504),
        (RuntimeAdapterError, ErrorCode.RUNTIME_ERROR, 500),
        (RegistryError, ErrorCode.REGISTRY_ERROR, 500),
        (LockError, ErrorCode.LOCK_ERROR, 500),
    ],
)
def test_error_mapping(error_cls: type[PgdbError], code: ErrorCode, status_code: int) -> None:
    """Each error kind carries its code and HTTP status."""
    exc = error_cls()

    assert isinstance(exc, PgdbError)
    assert exc.code == code
    assert exc.status_code == status_code


class TestPgdbError:
    """Tests for the base error."""

    def test_default_message(self) -> None:
        exc = RetryExhaustedError()

        assert exc.message == "failed to allocate host port after retries"
        assert str(exc) == exc.message

    def test_custom_message(self) -> None:
        exc = NameConflictError("database name 'orders' already exists")

        assert exc.message == "database name 'orders' already exists"

    def test_to_response(self) -> None:
        resp = InstanceNotFoundError("database 'orders' not found").to_response()

        assert resp.model_dump() == {
            "error": "database 'orders' not found",
            "code": "INSTANCE_NOT_FOUND",
        }
