"""
FastAPI application factory
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.errors import register_exception_handlers
from .api.router import api_router
from .application.services.identity_resolver import IdentityResolver, LinkingPolicy
from .application.services.session_manager import SessionManager
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .domain.enums import AuthProvider
from .domain.repositories.gateway import IPersistenceGateway
from .infrastructure.external_services.email_service import EmailService
from .infrastructure.external_services.oauth_providers import build_oauth_clients
from .infrastructure.gateway import build_gateway

logger = logging.getLogger(__name__)


async def prune_sessions_periodically(session_manager: SessionManager, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await session_manager.prune_expired()
        except Exception:
            logger.exception("Session pruning failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Storage comes up before the first request and goes down after the last"""
    settings: Settings = app.state.settings
    await app.state.gateway.startup()
    pruner = asyncio.create_task(
        prune_sessions_periodically(app.state.session_manager, settings.SESSION_PRUNE_INTERVAL_SECONDS)
    )
    logger.info("Starting %s API (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
    try:
        yield
    finally:
        pruner.cancel()
        await app.state.gateway.shutdown()
        logger.info("Shutting down %s API", settings.PROJECT_NAME)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[IPersistenceGateway] = None,
    email_service: Optional[EmailService] = None,
    oauth_clients: Optional[Dict[AuthProvider, object]] = None
) -> FastAPI:
    """Build the application with all collaborators wired explicitly"""
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    gateway = gateway or build_gateway(settings)

    app = FastAPI(
        title=f"{settings.PROJECT_NAME} API",
        description=settings.DESCRIPTION,
        version=settings.VERSION,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.gateway = gateway
    app.state.email_service = email_service or EmailService(settings)
    app.state.oauth_clients = oauth_clients if oauth_clients is not None else build_oauth_clients(settings)
    app.state.identity_resolver = IdentityResolver(
        gateway.unit_of_work,
        LinkingPolicy(require_verified_email=settings.OAUTH_LINK_REQUIRE_VERIFIED_EMAIL)
    )
    app.state.session_manager = SessionManager(
        gateway.sessions,
        gateway.unit_of_work,
        max_age=timedelta(days=settings.SESSION_MAX_AGE_DAYS)
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "version": settings.VERSION}

    return app


if __name__ == "__main__":
    uvicorn.run(
        "echoverse.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
