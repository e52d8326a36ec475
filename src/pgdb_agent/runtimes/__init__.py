"""Runtime implementations."""

from pgdb_agent.config import AgentConfig
from pgdb_agent.core.runtime import DatabaseRuntime
from pgdb_agent.runtimes.docker import DockerPostgresRuntime
from pgdb_agent.runtimes.memory import FailurePlan, MemoryRuntime


def create_runtime(config: AgentConfig) -> DatabaseRuntime:
    """Build the runtime selected by ``config.runtime.backend``."""
    if config.runtime.backend == "memory":
        return MemoryRuntime()
    return DockerPostgresRuntime(image=config.deploy.image)


__all__ = [
    "DockerPostgresRuntime",
    "FailurePlan",
    "MemoryRuntime",
    "create_runtime",
]
