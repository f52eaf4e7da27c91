"""
Tests for the sync adapter between the task store and the UI snapshot.
"""
import json
import os
import shutil
import tempfile

import pytest

from projectflow.database import TaskDatabase
from projectflow.exceptions import (
    InvalidArgumentError,
    NotConnectedError,
    StorageError,
    TaskNotFoundError,
    ValidationError,
)
from projectflow.models.sync_models import ExternalTask
from projectflow.storage.snapshot import JsonFileSnapshotStorage, MemorySnapshotStorage
from projectflow.sync import (
    DEFAULT_PROJECT_ID,
    TASKS_KEY,
    ProjectFlowSync,
    parse_external_id,
    to_db_format,
    to_external_format,
)


@pytest.fixture
def temp_sync():
    """Create an initialized sync adapter over a temporary store."""
    temp_dir = tempfile.mkdtemp()
    storage = MemorySnapshotStorage()
    sync = ProjectFlowSync(TaskDatabase(os.path.join(temp_dir, "test.db")), storage)
    sync.initialize()
    yield sync, storage
    sync.close()
    shutil.rmtree(temp_dir)


def _snapshot(storage):
    return json.loads(storage.get_item(TASKS_KEY))


class TestConversion:
    """Mapping between store records and UI tasks."""

    def test_to_external_format(self):
        record = {
            "task_id": 7,
            "title": "Alpha",
            "description": None,
            "due_date": "2025-01-20",
            "priority": "high",
            "status": "pending",
            "created_at": "2025-01-15 09:30:00.123",
            "updated_at": "2025-01-15 09:30:00.123",
        }
        assert to_external_format(record) == {
            "id": "task-7",
            "title": "Alpha",
            "description": "",
            "projectId": DEFAULT_PROJECT_ID,
            "priority": "high",
            "status": "todo",
            "dueDate": "2025-01-20",
            "createdDate": "2025-01-15",
        }

    def test_completed_stays_completed(self):
        record = {"task_id": 1, "title": "Done", "priority": "low", "status": "completed",
                  "created_at": "2025-01-15 00:00:00"}
        assert to_external_format(record)["status"] == "completed"

    @pytest.mark.parametrize("external_status, expected", [
        ("todo", "pending"),
        ("in-progress", "pending"),
        ("completed", "completed"),
        (None, "pending"),
    ])
    def test_status_collapses_to_two_values(self, external_status, expected):
        assert to_db_format({"title": "x", "status": external_status})["status"] == expected

    def test_to_db_format_defaults(self):
        converted = to_db_format({"id": "task-3", "title": "Alpha", "projectId": "other"})
        assert converted == {
            "title": "Alpha",
            "description": "",
            "due_date": None,
            "priority": "medium",
            "status": "pending",
        }

    def test_to_db_format_reads_camel_case(self):
        converted = to_db_format(ExternalTask(title="Alpha", dueDate="2025-02-01", priority="low"))
        assert converted["due_date"] == "2025-02-01"
        assert converted["priority"] == "low"

    def test_partial_conversion_keeps_only_supplied_keys(self):
        assert to_db_format({"status": "completed"}, partial=True) == {"status": "completed"}
        assert to_db_format({"dueDate": "2025-03-01", "title": "x"}, partial=True) == {
            "title": "x",
            "due_date": "2025-03-01",
        }

    def test_malformed_entry(self):
        with pytest.raises(InvalidArgumentError):
            to_db_format("not a task")
        with pytest.raises(InvalidArgumentError):
            to_db_format({"title": ["not", "a", "string"]})


class TestParseExternalId:

    @pytest.mark.parametrize("value, expected", [
        ("task-12", 12),
        ("12", 12),
        (12, 12),
        (" task-3 ", 3),
    ])
    def test_valid(self, value, expected):
        assert parse_external_id(value) == expected

    @pytest.mark.parametrize("value", ["abc", "task-", "task-x", True])
    def test_invalid(self, value):
        with pytest.raises(InvalidArgumentError):
            parse_external_id(value)


def test_requires_initialize():
    """Operations fail until initialize() and after close()."""
    temp_dir = tempfile.mkdtemp()
    try:
        sync = ProjectFlowSync(TaskDatabase(os.path.join(temp_dir, "test.db")), MemorySnapshotStorage())
        with pytest.raises(NotConnectedError) as exc_info:
            sync.pull_all()
        assert exc_info.value.message == "Database not initialized"

        with sync:
            assert sync.is_initialized
            assert sync.pull_all() == []
        with pytest.raises(NotConnectedError):
            sync.get_tasks()
    finally:
        shutil.rmtree(temp_dir)


def test_pull_all_overwrites_snapshot(temp_sync):
    sync, storage = temp_sync
    storage.set_item(TASKS_KEY, json.dumps([{"id": "task-999", "title": "Stale"}]))
    sync.db.create_task({"title": "Alpha"})
    sync.db.create_task({"title": "Beta", "status": "completed"})

    pulled = sync.pull_all()

    assert _snapshot(storage) == pulled
    assert [t["title"] for t in pulled] == ["Beta", "Alpha"]
    assert [t["status"] for t in pulled] == ["completed", "todo"]


def test_pull_all_empty_store(temp_sync):
    sync, storage = temp_sync
    assert sync.pull_all() == []
    assert _snapshot(storage) == []


def test_push_all_skips_bad_entries(temp_sync):
    """Failing entries are counted and skipped; the rest are imported."""
    sync, storage = temp_sync
    storage.set_item(TASKS_KEY, json.dumps([
        {"id": "task-1", "title": "Alpha", "priority": "high", "status": "todo"},
        {"id": "task-2", "title": ""},
        "garbage",
        {"id": "task-4", "title": "Beta", "status": "in-progress", "dueDate": "2025-04-01"},
        {"id": "task-5", "title": "Gamma", "priority": "urgent"},
    ]))

    report = sync.push_all()

    assert report.imported == 2
    assert report.failed == 3
    assert len(report.errors) == 3
    assert any("Title is required" in error for error in report.errors)
    assert any("Priority must be" in error for error in report.errors)

    tasks = {t["title"]: t for t in sync.db.query_tasks()}
    assert set(tasks) == {"Alpha", "Beta"}
    assert tasks["Alpha"]["priority"] == "high"
    assert tasks["Beta"]["status"] == "pending"
    assert tasks["Beta"]["due_date"] == "2025-04-01"


def test_push_all_missing_snapshot(temp_sync):
    sync, _ = temp_sync
    report = sync.push_all()
    assert (report.imported, report.failed, report.errors) == (0, 0, [])


def test_push_all_invalid_snapshot(temp_sync):
    sync, storage = temp_sync
    storage.set_item(TASKS_KEY, "{not json")
    with pytest.raises(InvalidArgumentError):
        sync.push_all()

    storage.set_item(TASKS_KEY, json.dumps({"title": "not a list"}))
    with pytest.raises(InvalidArgumentError):
        sync.push_all()


def test_create_task_refreshes_snapshot(temp_sync):
    sync, storage = temp_sync
    created = sync.create_task({"title": "Alpha", "status": "in-progress", "priority": "high"})

    assert created["id"].startswith("task-")
    assert created["status"] == "todo"
    assert created["priority"] == "high"
    assert _snapshot(storage) == [created]


def test_create_task_validation(temp_sync):
    sync, storage = temp_sync
    with pytest.raises(ValidationError):
        sync.create_task({"title": ""})
    assert storage.get_item(TASKS_KEY) is None


def test_update_task_applies_only_supplied_fields(temp_sync):
    sync, storage = temp_sync
    created = sync.create_task({"title": "Alpha", "priority": "high", "description": "notes"})

    updated = sync.update_task(created["id"], {"status": "completed"})

    assert updated["status"] == "completed"
    assert updated["priority"] == "high"
    assert updated["description"] == "notes"
    assert _snapshot(storage) == [updated]


def test_update_task_not_found(temp_sync):
    sync, _ = temp_sync
    with pytest.raises(TaskNotFoundError):
        sync.update_task("task-999", {"title": "x"})


def test_delete_task_refreshes_snapshot(temp_sync):
    sync, storage = temp_sync
    first = sync.create_task({"title": "Alpha"})
    second = sync.create_task({"title": "Beta"})

    result = sync.delete_task(first["id"])

    assert result == {"success": True, "taskId": first["id"]}
    assert [t["id"] for t in _snapshot(storage)] == [second["id"]]


def test_delete_task_not_found_leaves_snapshot(temp_sync):
    sync, storage = temp_sync
    sync.create_task({"title": "Alpha"})
    before = storage.get_item(TASKS_KEY)

    with pytest.raises(TaskNotFoundError):
        sync.delete_task("task-999")
    assert storage.get_item(TASKS_KEY) == before


def test_read_wrappers(temp_sync):
    sync, _ = temp_sync
    sync.create_task({"title": "Write docs", "priority": "high"})
    sync.create_task({"title": "Review code", "status": "completed"})

    assert [t["title"] for t in sync.get_tasks({"status": "completed"})] == ["Review code"]
    assert [t["id"] for t in sync.search_tasks("docs")] == ["task-1"]
    assert sync.get_task_stats()["high_priority_tasks"] == 1


def test_corrupt_snapshot_file_raises_storage_error():
    temp_dir = tempfile.mkdtemp()
    try:
        snapshot_path = os.path.join(temp_dir, "snapshot.json")
        with open(snapshot_path, "w", encoding="utf-8") as f:
            f.write("{not json")
        storage = JsonFileSnapshotStorage(snapshot_path)
        with ProjectFlowSync(TaskDatabase(os.path.join(temp_dir, "test.db")), storage) as sync:
            with pytest.raises(StorageError):
                sync.push_all()
            with pytest.raises(StorageError):
                sync.pull_all()
    finally:
        shutil.rmtree(temp_dir)
