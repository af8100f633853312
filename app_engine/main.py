"""App-engine service -- FastAPI application entry point."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app_engine.api.routers.builds import router as builds_router
from app_engine.api.routers.events import router as events_router
from app_engine.api.routers.files import router as files_router
from app_engine.api.routers.health import router as health_router
from app_engine.api.routers.plugins import router as plugins_router
from app_engine.api.routers.projects import router as projects_router
from app_engine.api.routers.resources import routers as resource_routers
from app_engine.api.routers.user_details import router as user_details_router
from app_engine.clients import users_client
from app_engine.config import VERSION, settings
from app_engine.logging_config import configure_logging
from app_engine.middleware import RequestIDMiddleware
from app_engine.middleware.access_log import AccessLogMiddleware
from app_engine.middleware.exception_handler import setup_exception_handlers
from app_engine.repos.db import close_pool, get_pool
from app_engine.services.registry import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Application lifespan: startup and shutdown hooks."""
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    if "pytest" not in sys.modules:
        try:
            await get_pool()
            logger.info("Database pool initialised.")
        except Exception as exc:
            # The first request will try again
            logger.warning("DB unavailable at startup (%s) - will retry on first request.", exc)
    yield
    await users_client.close_client()
    await close_pool()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="App Engine",
        version=VERSION,
        description="Projects, builds, resources and plugins for the app engine",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )
    application.state.services = build_services()

    setup_exception_handlers(application)

    application.add_middleware(AccessLogMiddleware)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    application.include_router(health_router)
    prefix = settings.API_PREFIX
    application.include_router(projects_router, prefix=prefix)
    application.include_router(builds_router, prefix=prefix)
    for router in resource_routers:
        application.include_router(router, prefix=prefix)
    application.include_router(files_router, prefix=prefix)
    application.include_router(plugins_router, prefix=prefix)
    application.include_router(user_details_router, prefix=prefix)
    application.include_router(events_router, prefix=prefix)
    return application


app = create_app()
