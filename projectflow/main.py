"""
ProjectFlow task service - REST API for the task store.

Main entry point. All initialization logic is in app/factory.py.
"""
import logging

import uvicorn

from projectflow.app import create_app
from projectflow.config import get_settings
from projectflow.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def run(host: str = None, port: int = None) -> None:
    """Run the service with uvicorn."""
    settings = get_settings()
    setup_logging(settings.log_level)
    config = uvicorn.Config(
        create_app(),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30,
    )
    server = uvicorn.Server(config)

    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        logger.info("Service stopped")


if __name__ == "__main__":
    run()
