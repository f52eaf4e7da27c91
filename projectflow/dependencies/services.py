"""
Service container for dependency injection.

The container is created by the app factory and stored on ``app.state``;
route handlers reach it through the FastAPI dependencies below.
"""
import logging
from typing import Optional

from fastapi import Request

from projectflow.config import get_settings
from projectflow.database import TaskDatabase
from projectflow.storage.snapshot import JsonFileSnapshotStorage, SnapshotStorage
from projectflow.sync import ProjectFlowSync

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Container for the task store, the snapshot storage and the sync adapter."""

    def __init__(
        self,
        db: Optional[TaskDatabase] = None,
        snapshot_storage: Optional[SnapshotStorage] = None,
    ):
        settings = get_settings()
        self.db = db if db is not None else TaskDatabase(settings.db_path)
        self.snapshot_storage = (
            snapshot_storage
            if snapshot_storage is not None
            else JsonFileSnapshotStorage(settings.snapshot_path)
        )
        self.sync = ProjectFlowSync(self.db, self.snapshot_storage)

    def start(self) -> None:
        """Connect the store. Calling it again is harmless."""
        self.sync.initialize()
        logger.info("Services initialized")

    def stop(self) -> None:
        self.sync.close()
        logger.info("Services stopped")


def get_services(request: Request) -> ServiceContainer:
    """Get the service container of the running application."""
    return request.app.state.services


def get_db(request: Request) -> TaskDatabase:
    """Get the task store from the service container."""
    return get_services(request).db


def get_sync(request: Request) -> ProjectFlowSync:
    """Get the sync adapter from the service container."""
    return get_services(request).sync
