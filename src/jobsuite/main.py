"""
Job Suite interview notification service - main application.
"""

import uuid
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import PlainTextResponse

from .config.settings import get_settings
from .interfaces.api import create_api_router
from .shared.infrastructure.container import cleanup_container, get_container
from .shared.infrastructure.monitoring import (
    HealthCheck,
    HealthChecker,
    RequestLogContext,
    get_metrics_collector,
    setup_metrics,
    setup_structured_logging,
)


# Configure structured logging
setup_structured_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    settings = get_settings()
    logger.info("Starting Job Suite interview service", version=settings.app_version)

    try:
        container = await get_container()
        logger.info("Dependency injection container initialized")

        if settings.monitoring.enable_metrics:
            setup_metrics()

        notification_service = container.get("notification_service")
        await notification_service.start()

        health_checker = HealthChecker()
        health_checker.add_check(HealthCheck("database", container.database_manager.health_check))
        health_checker.add_check(HealthCheck("notification_scheduler", _scheduler_check(notification_service)))

        app.state.container = container
        app.state.health_checker = health_checker

        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error("Application startup failed", error=str(e))
        raise

    yield

    logger.info("Shutting down application")
    await cleanup_container()
    logger.info("Application shutdown completed")


def _scheduler_check(notification_service):
    async def check():
        if not notification_service.settings.enabled:
            return {"enabled": False}
        if not notification_service.is_running:
            return False
        return {"jobs": len(notification_service.registry)}
    return check


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Interview scheduling with email reminders and calendar invites",
        version=settings.app_version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Compression middleware
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        with RequestLogContext(request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    # Include API routes
    app.include_router(create_api_router(), prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Application health check."""
        health_checker = getattr(app.state, "health_checker", None)
        if health_checker is None:
            return JSONResponse(status_code=503, content={"status": "unhealthy", "error": "Not initialized"})

        result = await health_checker.check_all()
        result.update({
            "version": settings.app_version,
            "environment": settings.app_environment,
        })
        return result

    @app.get("/health/ready", tags=["Health"])
    async def readiness_check():
        """Readiness probe."""
        health_checker = getattr(app.state, "health_checker", None)
        if health_checker is None or not await health_checker.check_readiness():
            return JSONResponse(status_code=503, content={"status": "not_ready"})
        return {"status": "ready"}

    @app.get("/health/live", tags=["Health"])
    async def liveness_check():
        """Liveness probe."""
        return {"status": "alive"}

    # Metrics endpoint
    if settings.monitoring.enable_metrics:
        @app.get("/metrics", tags=["Monitoring"])
        async def metrics():
            """Prometheus metrics endpoint."""
            return PlainTextResponse(
                generate_latest(get_metrics_collector().registry),
                media_type=CONTENT_TYPE_LATEST
            )

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_environment,
            "docs": "/docs" if settings.is_development else None,
            "health": "/health"
        }

    return app


# Create the application instance
app = create_application()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn_config = {
        "host": settings.app_host,
        "port": settings.app_port,
        "log_level": settings.monitoring.log_level.lower(),
        "access_log": settings.is_development,
    }

    if settings.is_development:
        uvicorn_config.update({
            "reload": True,
            "reload_dirs": ["src"],
        })
    else:
        # The reminder registry is process-local; more workers would duplicate sends
        uvicorn_config["workers"] = 1

    logger.info(
        "Starting server",
        host=settings.app_host,
        port=settings.app_port,
        environment=settings.app_environment
    )

    uvicorn.run("jobsuite.main:app", **uvicorn_config)
