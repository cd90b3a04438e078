"""
OSHA Logbook API Server

Entry point for the FastAPI application.
"""

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from logbook_api import __version__
from logbook_api.api.v1 import router as api_v1_router
from logbook_api.core.config import get_settings
from logbook_api.core.database import engine, get_session_context
from logbook_api.core.errors import register_exception_handlers
from logbook_api.core.logging_config import configure_logging
from logbook_api.core.middleware import (
    CSRFMiddleware,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
)
from logbook_api.core.telemetry import setup_sentry

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)
    setup_sentry(settings, release=f"osha-logbook@{__version__}")

    app = FastAPI(
        title="OSHA Logbook",
        description="Establishment records for OSHA injury and illness logs.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CSRFMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-CSRF-Token", "X-Request-ID"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check: the database must answer a trivial query."""
        try:
            async with get_session_context() as session:
                await session.execute(text("SELECT 1"))
        except Exception as exc:
            log.warning("readiness.database_unavailable", error=repr(exc))
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("OSHA Logbook starting", environment=settings.environment)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("OSHA Logbook shutting down")
        await engine.dispose()

    return app


app = create_app()


def run() -> None:
    """CLI entry point: serve the API with uvicorn."""
    uvicorn.run("logbook_api.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
