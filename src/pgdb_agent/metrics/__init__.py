"""Prometheus metrics for the pgdb agent."""

from pgdb_agent.metrics.collector import (
    PGDB_DOCKER_DURATION,
    PGDB_INSTANCES_TOTAL,
    PGDB_OPERATION_DURATION,
    PGDB_OPERATION_ERRORS,
    PGDB_PORT_CONFLICT_RETRIES,
)

__all__ = [
    "PGDB_DOCKER_DURATION",
    "PGDB_INSTANCES_TOTAL",
    "PGDB_OPERATION_DURATION",
    "PGDB_OPERATION_ERRORS",
    "PGDB_PORT_CONFLICT_RETRIES",
]
