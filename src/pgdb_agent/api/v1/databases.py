"""Database lifecycle endpoints."""

import asyncio

from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel

from pgdb_agent.api.dependencies import get_service
from pgdb_agent.core.models import DeployRequest, DeployResult, InstanceView
from pgdb_agent.service import PgdbService

router = APIRouter(tags=["databases"])


# =============================================================================
# Schemas
# =============================================================================


class StatusResponse(BaseModel):
    """All registered instances."""

    items: list[InstanceView]


class DestroyResponse(BaseModel):
    """Destroy acknowledgement."""

    ok: bool


# =============================================================================
# Routes
# =============================================================================
# Provisioning runs shielded: a client disconnect must not abort a deploy or
# destroy halfway through its runtime calls.


@router.post("/deploy", response_model=DeployResult)
async def deploy_database(
    request: Request,
    body: DeployRequest | None = Body(default=None),
    service: PgdbService = Depends(get_service),
) -> DeployResult:
    """Provision a new PostgreSQL instance."""
    return await asyncio.shield(
        service.deploy(body or DeployRequest(), request.headers.get("host", ""))
    )


@router.get("/status", response_model=StatusResponse, response_model_exclude_none=True)
async def get_status(
    service: PgdbService = Depends(get_service),
) -> StatusResponse:
    """List registered instances with their connection URLs."""
    items = await service.status()
    return StatusResponse(items=items)


@router.delete("/db/{name}", response_model=DestroyResponse)
async def destroy_database(
    name: str,
    keep_data: bool = Query(default=False),
    service: PgdbService = Depends(get_service),
) -> DestroyResponse:
    """Destroy an instance, optionally keeping its data volume."""
    await asyncio.shield(service.destroy(name, keep_data))
    return DestroyResponse(ok=True)
