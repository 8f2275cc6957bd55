"""
Auth Portal - FastAPI Application
Authentication actions and checkout sessions
"""

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from typing import Optional
import logging
from contextlib import asynccontextmanager

from auth_portal.config import Settings, get_settings
from auth_portal.routes import auth, checkout, health, pages
from auth_portal.utils.creem_client import CreemClient
from auth_portal.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, creem_client: Optional[CreemClient] = None) -> FastAPI:
    """Build the application around an explicit settings object"""
    settings = settings or get_settings()
    creem_client = creem_client or CreemClient.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        setup_logging(
            config_path=settings.log_config_path,
            log_level=settings.log_level,
            log_format=settings.log_format,
            environment=settings.environment
        )
        logger.info("Auth Portal starting up...")
        settings.log_config()

        if not settings.supabase_configured:
            logger.warning("Supabase is not configured - auth actions will report the service as unavailable")

        await creem_client.start()

        logger.info("Auth Portal startup complete")

        yield

        logger.info("Auth Portal shutting down...")
        await creem_client.stop()

    app = FastAPI(
        title="Auth Portal",
        description="Authentication actions and checkout sessions",
        version=settings.service_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.settings = settings
    app.state.creem_client = creem_client

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        """Custom HTTP exception handler"""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": exc.detail,
                "status_code": exc.status_code
            }
        )

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(pages.router, tags=["Pages"])
    app.include_router(checkout.router, prefix="/api", tags=["Checkout"])

    return app


app = create_app()
