"""pgdb agent: ephemeral PostgreSQL instances on a single Docker host."""

__version__ = "0.1.0"
