"""Docker runtime for the agent."""

from pgdb_agent.runtimes.docker.postgres import DockerPostgresRuntime

__all__ = ["DockerPostgresRuntime"]
