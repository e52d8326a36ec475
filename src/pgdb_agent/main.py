"""pgdb agent FastAPI application."""

import logging
import secrets
import sys
from contextlib import asynccontextmanager
from typing import Callable

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from pgdb_agent import __version__
from pgdb_agent.api.dependencies import close_service, init_service
from pgdb_agent.api.v1 import databases_router, health_router
from pgdb_agent.config import get_agent_config
from pgdb_agent.core.errors import ErrorCode, ErrorResponse, PgdbError
from pgdb_agent.logging import setup_logging
from pgdb_agent.logging_schema import LogEvent

_config = get_agent_config()
setup_logging(_config.logging)
logger = logging.getLogger(__name__)

PUBLIC_PATHS = ("/health", "/metrics")


def _error(
    status_code: int,
    message: str,
    code: ErrorCode | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=message, code=code.value if code else None)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    config = get_agent_config()
    logger.info(
        "Starting pgdb agent",
        extra={
            "event": LogEvent.APP_STARTED,
            "version": __version__,
            "data_dir": str(config.registry.data_dir),
            "runtime": config.runtime.backend,
        },
    )
    await init_service()
    yield
    logger.info("Shutting down pgdb agent", extra={"event": LogEvent.APP_STOPPED})
    await close_service()


app = FastAPI(
    title="pgdb agent",
    description="Ephemeral PostgreSQL instances on a Docker host",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(PgdbError)
async def pgdb_error_handler(request: Request, exc: PgdbError) -> JSONResponse:
    """Handle PgdbError exceptions."""
    logger.warning(
        "Request failed",
        extra={
            "event": LogEvent.AGENT_ERROR,
            "error_code": exc.code.value,
            "error_message": exc.message,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Give routing errors (unknown path, wrong method) the same error body."""
    if exc.status_code == 404:
        return _error(404, "not found", ErrorCode.NOT_FOUND)
    return _error(exc.status_code, str(exc.detail).lower(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed bodies and parameters as 400."""
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            return _error(400, "invalid json body", ErrorCode.VALIDATION_ERROR)
    return _error(400, "invalid request", ErrorCode.VALIDATION_ERROR)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions with logging."""
    logger.exception(
        "Unhandled exception",
        extra={
            "event": LogEvent.UNHANDLED_EXCEPTION,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return _error(500, "internal server error", ErrorCode.INTERNAL_ERROR)


@app.middleware("http")
async def bearer_token_middleware(
    request: Request, call_next: Callable[[Request], Response]
) -> Response:
    """Require the shared bearer token on everything but health and metrics."""
    if request.url.path in PUBLIC_PATHS:
        return await call_next(request)

    token = get_agent_config().server.token
    if not token:
        return _error(500, "server token is not configured", ErrorCode.INTERNAL_ERROR)

    header = request.headers.get("Authorization", "")
    prefix = "Bearer "
    if not header.startswith(prefix):
        return _error(401, "missing or invalid authorization header", ErrorCode.UNAUTHORIZED)

    provided = header[len(prefix):].strip()
    if not secrets.compare_digest(provided.encode(), token.encode()):
        return _error(401, "invalid token", ErrorCode.UNAUTHORIZED)

    return await call_next(request)


app.include_router(health_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


app.include_router(databases_router, prefix="/v1")


def main() -> None:
    """Run the agent server."""
    config = get_agent_config()
    if not config.server.token:
        logger.error("PGDB_TOKEN is required")
        sys.exit(1)
    uvicorn.run(
        "pgdb_agent.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
