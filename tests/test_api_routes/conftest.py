"""
Shared fixtures for API route tests: a real store in a temporary directory
behind the application factory.
"""
import os
import shutil
import tempfile

import pytest
from fastapi.testclient import TestClient

from projectflow.app import create_app
from projectflow.database import TaskDatabase
from projectflow.dependencies.services import ServiceContainer
from projectflow.storage.snapshot import MemorySnapshotStorage


@pytest.fixture
def services():
    temp_dir = tempfile.mkdtemp()
    container = ServiceContainer(
        db=TaskDatabase(os.path.join(temp_dir, "test.db")),
        snapshot_storage=MemorySnapshotStorage(),
    )
    container.start()
    yield container
    container.stop()
    shutil.rmtree(temp_dir)


@pytest.fixture
def client(services):
    """Create a test client. The lifespan is not entered; services are started by the fixture."""
    return TestClient(create_app(services))
