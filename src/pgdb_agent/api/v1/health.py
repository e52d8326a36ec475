"""Liveness and registry readability check."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pgdb_agent import __version__
from pgdb_agent.api.dependencies import get_service
from pgdb_agent.core.errors import PgdbError
from pgdb_agent.service import PgdbService

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """``degraded`` when the registry file cannot be read or parsed."""

    status: str
    version: str
    instances: int | None = None
    registry_error: str | None = None


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health_check(service: PgdbService = Depends(get_service)) -> HealthResponse:
    try:
        instances = service.instance_count()
    except PgdbError as exc:
        return HealthResponse(status="degraded", version=__version__, registry_error=exc.message)
    return HealthResponse(status="healthy", version=__version__, instances=instances)
