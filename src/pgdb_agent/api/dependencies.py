"""API dependencies for dependency injection."""

from pgdb_agent.service import PgdbService

# Singleton service instance
_service: PgdbService | None = None


async def init_service() -> None:
    """Initialize service singleton.

    Creates PgdbService, the data directory, and checks the runtime.
    Must be called during app startup.
    """
    global _service
    service = PgdbService()
    await service.init()
    _service = service


async def close_service() -> None:
    """Close service and release runtime resources."""
    global _service
    if _service:
        await _service.close()
        _service = None


def get_service() -> PgdbService:
    """Get service singleton.

    Raises:
        RuntimeError: If called before init_service().
    """
    if _service is None:
        raise RuntimeError("Service not initialized. Call init_service() first.")
    return _service


def reset_service() -> None:
    """Reset service singleton (for testing)."""
    global _service
    _service = None
