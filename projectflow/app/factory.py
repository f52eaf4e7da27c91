"""
Application factory - creates and configures the FastAPI application.
This isolates all initialization logic from main.py.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from projectflow.api.routes import health, sync, tasks
from projectflow.dependencies.services import ServiceContainer
from projectflow.exceptions.handlers import setup_exception_handlers
from projectflow.monitoring import MetricsMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the task store on startup and close it on shutdown."""
    logger.info("Application starting up...")
    services: ServiceContainer = app.state.services
    services.start()
    try:
        yield
    finally:
        logger.info("Application shutting down...")
        services.stop()


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Pre-built service container. If None, one is built from the
                  environment configuration.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="ProjectFlow Task Service",
        description="Task store and snapshot sync for the ProjectFlow UI",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services if services is not None else ServiceContainer()

    app.add_middleware(MetricsMiddleware)
    setup_exception_handlers(app)

    app.include_router(tasks.router)
    app.include_router(sync.router)
    app.include_router(health.router)

    return app
