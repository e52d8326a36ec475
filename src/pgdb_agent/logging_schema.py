"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for the pgdb agent.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.DEPLOY_COMPLETED, ...})
    """

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"
    RUNTIME_UNAVAILABLE = "runtime_unavailable"

    # Registry events
    REGISTRY_LOADED = "registry_loaded"
    REGISTRY_SAVED = "registry_saved"
    LOCK_ACQUIRED = "lock_acquired"
    LOCK_RELEASED = "lock_released"

    # Deploy events
    DEPLOY_STARTED = "deploy_started"
    DEPLOY_COMPLETED = "deploy_completed"
    DEPLOY_FAILED = "deploy_failed"
    PORT_CONFLICT = "port_conflict"
    RETRY_EXHAUSTED = "retry_exhausted"
    READINESS_TIMEOUT = "readiness_timeout"
    ROLLBACK_STARTED = "rollback_started"
    ROLLBACK_FAILED = "rollback_failed"

    # Destroy events
    DESTROY_COMPLETED = "destroy_completed"
    DESTROY_FAILED = "destroy_failed"

    # Container events
    CONTAINER_STARTED = "container_started"
    CONTAINER_REMOVED = "container_removed"

    # Volume events
    VOLUME_CREATED = "volume_created"
    VOLUME_REMOVED = "volume_removed"

    # Error events
    UNHANDLED_EXCEPTION = "unhandled_exception"
    AGENT_ERROR = "agent_error"
