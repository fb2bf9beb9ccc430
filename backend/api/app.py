"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config import get_settings
from .error_handling import register_exception_handlers
from .models import ERROR_RESPONSES
from .routes import health
from modules.auth.routes import router as auth_router
from modules.recovery.routes import router as recovery_router
from modules.families.routes import router as families_router, invitations_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        f"Starting {settings.app_name} on {settings.host}:{settings.port} "
        f"(storage={settings.storage_backend}, identity={settings.identity_backend})"
    )
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
        description="Passwordless authentication, account recovery and family invitations",
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
        max_age=settings.cors_max_age,
    )

    register_exception_handlers(app)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(
        auth_router, prefix="/api/auth", tags=["auth"], responses=ERROR_RESPONSES
    )
    app.include_router(
        recovery_router, prefix="/api/auth", tags=["recovery"], responses=ERROR_RESPONSES
    )
    app.include_router(
        families_router, prefix="/api/families", tags=["families"], responses=ERROR_RESPONSES
    )
    app.include_router(
        invitations_router,
        prefix="/api/invitations",
        tags=["invitations"],
        responses=ERROR_RESPONSES,
    )

    return app


# Application instance for uvicorn
app = create_app()
