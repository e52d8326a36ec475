"""Agent API endpoints."""

from pgdb_agent.api.v1 import databases_router, health_router

__all__ = ["databases_router", "health_router"]
