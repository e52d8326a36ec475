"""Prometheus metrics definitions for the pgdb agent.

Agent metrics track the provisioning transaction:
- Operation latency and failures (deploy, destroy, status)
- Port conflict retries inside the deploy loop
- Docker engine call latency
- Registry size snapshot
"""

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Histogram Buckets
# =============================================================================
# Deploys include image pulls and up to 90s of readiness polling
_BUCKETS_SLOW = (
    0.1, 0.2, 0.4, 0.8, 1.5,
    3, 6, 12, 24, 48,
    96, 180,
)  # 12 buckets

# =============================================================================
# Operation Metrics
# =============================================================================

PGDB_OPERATION_DURATION = Histogram(
    "pgdb_agent_operation_duration_seconds",
    "Duration of registry operations including time spent waiting for the lock",
    ["operation"],  # deploy, destroy, status
    buckets=_BUCKETS_SLOW,
)

PGDB_OPERATION_ERRORS = Counter(
    "pgdb_agent_operation_errors_total",
    "Total failed registry operations",
    ["operation", "error_code"],
)

PGDB_PORT_CONFLICT_RETRIES = Counter(
    "pgdb_agent_port_conflict_retries_total",
    "Provisioning attempts that failed with a host port conflict",
)

# =============================================================================
# Docker Operation Metrics
# =============================================================================

PGDB_DOCKER_DURATION = Histogram(
    "pgdb_agent_docker_duration_seconds",
    "Duration of Docker operations",
    ["operation"],  # volume_create, volume_remove, run, remove, wait_ready
    buckets=_BUCKETS_SLOW,
)

# =============================================================================
# Resource Count Metrics (Snapshot)
# =============================================================================

PGDB_INSTANCES_TOTAL = Gauge(
    "pgdb_agent_instances_total",
    "Number of instances in the registry after the last operation",
)


# =============================================================================
# Metric Initialization
# =============================================================================

def _init_metrics() -> None:
    """Initialize labeled metrics with zero values."""
    for op in ["deploy", "destroy", "status"]:
        PGDB_OPERATION_DURATION.labels(operation=op)

    for op in ["volume_create", "volume_remove", "run", "remove", "wait_ready"]:
        PGDB_DOCKER_DURATION.labels(operation=op)


_init_metrics()
