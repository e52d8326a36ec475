"""Error handling module for pgdb_agent.

This module defines error codes, exception classes, and response models.

Error Response Format:
{
    "error": "database 'orders' already exists",
    "code": "NAME_CONFLICT"
}

Usage:
    from pgdb_agent.core.errors import NameConflictError

    raise NameConflictError(f"database '{name}' already exists")
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes for the agent API."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NAME_CONFLICT = "NAME_CONFLICT"
    INSTANCE_NOT_FOUND = "INSTANCE_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    READINESS_TIMEOUT = "READINESS_TIMEOUT"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    REGISTRY_ERROR = "REGISTRY_ERROR"
    LOCK_ERROR = "LOCK_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Error response format."""

    error: str
    code: str | None = None


class PgdbError(Exception):
    """Base exception for pgdb_agent.

    All agent-specific exceptions inherit from this class so the API can
    map them centrally onto HTTP responses.

    Attributes:
        code: The error code from ErrorCode enum.
        message: Human-readable error message.
        status_code: HTTP status code to return.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(error=self.message, code=self.code.value)


class ValidationError(PgdbError):
    """400 Bad Request - invalid name, version or missing identity."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    default_message = "invalid request"


class NameConflictError(PgdbError):
    """409 Conflict - an instance with this name already exists."""

    code = ErrorCode.NAME_CONFLICT
    status_code = 409
    default_message = "database name already exists"


class InstanceNotFoundError(PgdbError):
    """404 Not Found - no registry entry with this name."""

    code = ErrorCode.INSTANCE_NOT_FOUND
    status_code = 404
    default_message = "database not found"


class RetryExhaustedError(PgdbError):
    """503 Service Unavailable - every provisioning attempt hit a port conflict.

    The last underlying failure is chained as ``__cause__``.
    """

    code = ErrorCode.RETRY_EXHAUSTED
    status_code = 503
    default_message = "failed to allocate host port after retries"


class ReadinessTimeoutError(PgdbError):
    """504 Gateway Timeout - database never reported ready."""

    code = ErrorCode.READINESS_TIMEOUT
    status_code = 504
    default_message = "postgres did not become ready in time"


class RuntimeAdapterError(PgdbError):
    """500 - container runtime unavailable or a runtime operation failed."""

    code = ErrorCode.RUNTIME_ERROR
    status_code = 500
    default_message = "container runtime operation failed"


class RegistryError(PgdbError):
    """500 - registry file could not be read, parsed or written."""

    code = ErrorCode.REGISTRY_ERROR
    status_code = 500
    default_message = "registry operation failed"


class LockError(PgdbError):
    """500 - registry lock could not be acquired or released."""

    code = ErrorCode.LOCK_ERROR
    status_code = 500
    default_message = "registry lock operation failed"
