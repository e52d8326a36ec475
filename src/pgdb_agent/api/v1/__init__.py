"""API v1 module."""

from pgdb_agent.api.v1.databases import router as databases_router
from pgdb_agent.api.v1.health import router as health_router

__all__ = ["databases_router", "health_router"]
