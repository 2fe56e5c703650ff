"""FastAPI application entry point.

Configures CORS, structured logging, lifespan events (including APScheduler),
error translation and router registration.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from verihire.core.config import settings
from verihire.core.errors import VerihireError
from verihire.core.logging import setup_logging
from verihire.db.repository import RepositoryError, RepositoryUnavailableError
from verihire.routers import candidates, credentials, health, scores, verification
from verihire.scheduler.jobs import build_scheduler, shutdown_scheduler, start_scheduler
from verihire.services.container import ServiceContainer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build the service container and run the resend scheduler."""
    setup_logging()
    logger.info("Application starting up")
    if application.state.container is None:
        application.state.container = ServiceContainer.build()
    if settings.SCHEDULER_ENABLED:
        application.state.scheduler = build_scheduler(application.state.container.requests)
        start_scheduler(application.state.scheduler)
    yield
    if application.state.scheduler is not None:
        shutdown_scheduler(application.state.scheduler)
    logger.info("Application shutting down")


async def _verihire_error_handler(request: Request, exc: VerihireError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            extra={
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "error_message": exc.message,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


async def _repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    unavailable = isinstance(exc, RepositoryUnavailableError)
    logger.error(
        "storage_error",
        extra={
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error_message": str(exc),
        },
    )
    return JSONResponse(
        status_code=502 if unavailable else 500,
        content={
            "detail": "storage unavailable" if unavailable else "storage error",
            "error": "UpstreamUnavailable" if unavailable else "InternalError",
        },
    )


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    application = FastAPI(
        title="VeriHire Verification API",
        description="Employment verification, trust scoring and credential issuance",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.container = container
    application.state.scheduler = None

    # -----------------------------------------------------------------------
    # CORS Configuration
    # -----------------------------------------------------------------------
    raw_origins = settings.ALLOWED_ORIGINS.strip()
    if raw_origins == "*":
        allowed_origins: list[str] = ["*"]
    else:
        allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    application.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(VerihireError, _verihire_error_handler)
    application.add_exception_handler(RepositoryError, _repository_error_handler)

    # -----------------------------------------------------------------------
    # Router Registration
    # -----------------------------------------------------------------------
    application.include_router(health.router, tags=["Health"])
    application.include_router(candidates.router, prefix="/api/v1/candidates", tags=["Candidates"])
    application.include_router(verification.router, prefix="/api/v1/verification", tags=["Verification"])
    application.include_router(scores.router, prefix="/api/v1/scores", tags=["Scores"])
    application.include_router(credentials.router, prefix="/api/v1/credentials", tags=["Credentials"])
    return application


app = create_app()
