"""FastAPI application entry point for IPGuard.

IP infringement monitoring REST API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .api import register_exception_handlers
from .api.evidence import router as evidence_router
from .api.middleware import RequestLoggingMiddleware
from .api.monitoring import router as monitoring_router
from .config import get_settings
from .db import close_all_connections, get_db_session
from .logging import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    settings = get_settings()
    logger.info(
        "Starting IPGuard API",
        extra={
            "environment": settings.environment,
            "debug": settings.api_debug,
            "max_concurrent_browsers": settings.max_concurrent_browsers,
        },
    )

    yield

    logger.info("Shutting down IPGuard API")
    await close_all_connections()


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="IPGuard API",
        description="IP infringement monitoring, escalation and evidence custody",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    # =========================
    # Health Check Endpoints
    # =========================

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "service": "ipguard-api"}

    @app.get("/health/ready", tags=["Health"])
    async def readiness_check():
        """Readiness check that verifies database connectivity."""
        checks = {"postgres": "unknown"}

        try:
            async with get_db_session() as session:
                await session.execute(text("SELECT 1"))
                checks["postgres"] = "healthy"
        except Exception as e:
            checks["postgres"] = f"unhealthy: {str(e)}"

        all_healthy = all(v == "healthy" for v in checks.values())
        return JSONResponse(
            status_code=200 if all_healthy else 503,
            content={
                "status": "ready" if all_healthy else "not_ready",
                "checks": checks,
            },
        )

    @app.get("/health/live", tags=["Health"])
    async def liveness_check():
        """Liveness check - just confirms the service is running."""
        return {"status": "alive"}

    # =========================
    # API Routers
    # =========================

    app.include_router(monitoring_router, prefix="/api/v1", tags=["Monitoring"])
    app.include_router(evidence_router, prefix="/api/v1", tags=["Evidence"])

    return app


app = create_app()
