"""Main FastAPI application."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from application.ports.approval_registry import ApprovalRegistry
from infrastructure.config import settings
from infrastructure.logging import setup_logging
from interfaces.api.middleware import (
    RequestSizeLimitMiddleware,
    http_exception_handler,
    validation_exception_handler,
)
from interfaces.api.routes.approval_routes import router as approval_router
from interfaces.api.routes.file_routes import router as file_router
from interfaces.dependencies import get_container

# Configure structured logging
setup_logging()

logger = structlog.get_logger()

APPROVAL_SWEEP_INTERVAL_SECONDS = 60


async def _sweep_expired_approvals(registry: ApprovalRegistry, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            await registry.purge_expired()
        except Exception:
            logger.exception("approval_sweep_failed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown."""
    logger.info("app_starting", env=settings.app_env, blob_backend=settings.blob_backend)

    resolve_container = app.dependency_overrides.get(get_container, get_container)
    registry = resolve_container()[ApprovalRegistry]
    sweeper = asyncio.create_task(
        _sweep_expired_approvals(registry, APPROVAL_SWEEP_INTERVAL_SECONDS),
    )

    logger.info("app_ready", base_url=settings.base_url)

    yield

    logger.info("app_shutting_down")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    logger.info("app_stopped")


async def bind_request_context(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag every log line emitted while serving a request with its id and path."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request.headers.get("x-request-id") or uuid4().hex,
        method=request.method,
        path=request.url.path,
    )
    return await call_next(request)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="FileVault API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Added first so CORS headers still wrap its 413 responses
    app.add_middleware(RequestSizeLimitMiddleware, max_upload_bytes=settings.max_upload_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(bind_request_context)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(file_router)
    app.include_router(approval_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


# Create app instance
app = create_app()
