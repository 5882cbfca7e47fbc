"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config import get_settings
from shared.logging import setup_logging
from .errors import register_exception_handlers
from .routes import admin, health
from modules.identity.routes import router as auth_router
from modules.profiles.routes import router as profile_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json)
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Campus portal identity, phone sign-in and profile API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(profile_router, prefix="/api/profile", tags=["profile"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])

    return app


# Application instance for uvicorn
app = create_app()
