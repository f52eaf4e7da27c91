"""
Tests for snapshot storage backends.
"""
import json
import os
import shutil
import tempfile

import pytest

from projectflow.exceptions import StorageError
from projectflow.storage import JsonFileSnapshotStorage, MemorySnapshotStorage


@pytest.fixture
def temp_dir():
    path = tempfile.mkdtemp()
    yield path
    shutil.rmtree(path)


@pytest.fixture(params=["memory", "file"])
def storage(request, temp_dir):
    if request.param == "memory":
        return MemorySnapshotStorage()
    return JsonFileSnapshotStorage(os.path.join(temp_dir, "snapshot.json"))


def test_get_missing_key(storage):
    assert storage.get_item("projectflow_tasks") is None


def test_set_and_replace(storage):
    storage.set_item("projectflow_tasks", "[]")
    storage.set_item("projectflow_tasks", '[{"id": "task-1"}]')
    assert storage.get_item("projectflow_tasks") == '[{"id": "task-1"}]'


def test_remove_item(storage):
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    storage.remove_item("a")
    storage.remove_item("missing")
    assert storage.get_item("a") is None
    assert storage.get_item("b") == "2"


def test_memory_storage_initial_items():
    initial = {"projectflow_tasks": "[]"}
    storage = MemorySnapshotStorage(initial)
    storage.set_item("projectflow_tasks", "[1]")
    assert initial["projectflow_tasks"] == "[]"


def test_file_storage_persists(temp_dir):
    path = os.path.join(temp_dir, "nested", "snapshot.json")
    JsonFileSnapshotStorage(path).set_item("projectflow_tasks", "[]")

    assert JsonFileSnapshotStorage(path).get_item("projectflow_tasks") == "[]"
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == {"projectflow_tasks": "[]"}


def test_file_storage_leaves_no_temp_files(temp_dir):
    path = os.path.join(temp_dir, "snapshot.json")
    storage = JsonFileSnapshotStorage(path)
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    storage.remove_item("a")
    assert os.listdir(temp_dir) == ["snapshot.json"]


def test_file_storage_rejects_non_object(temp_dir):
    path = os.path.join(temp_dir, "snapshot.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(["not", "an", "object"], f)
    with pytest.raises(StorageError):
        JsonFileSnapshotStorage(path).get_item("projectflow_tasks")


def test_file_storage_corrupt_file(temp_dir):
    path = os.path.join(temp_dir, "snapshot.json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("{not json")
    storage = JsonFileSnapshotStorage(path)

    with pytest.raises(StorageError) as exc_info:
        storage.get_item("projectflow_tasks")
    assert isinstance(exc_info.value.original_error, json.JSONDecodeError)

    with pytest.raises(StorageError):
        storage.set_item("projectflow_tasks", "[]")
    with open(path, encoding="utf-8") as f:
        assert f.read() == "{not json"
