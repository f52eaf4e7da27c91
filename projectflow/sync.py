"""
Sync adapter between the task store and the ProjectFlow UI snapshot.

The UI keeps its tasks as one JSON array under a single key of its
key-value storage. This module converts between that vocabulary
(``task-<id>`` ids, camelCase keys, todo/in-progress/completed) and the
store's records, and copies whole snapshots in either direction.
"""
import json
import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from projectflow.database import TaskDatabase, Payload
from projectflow.exceptions import InvalidArgumentError, NotConnectedError, ServiceError
from projectflow.models.sync_models import ExternalTask, SyncReport
from projectflow.models.task_models import Priority, TaskStatus
from projectflow.storage.snapshot import SnapshotStorage

logger = logging.getLogger(__name__)

TASKS_KEY = "projectflow_tasks"
EXTERNAL_ID_PREFIX = "task-"
DEFAULT_PROJECT_ID = "default-project"

ExternalPayload = Union[Mapping[str, Any], ExternalTask]


def parse_external_id(external_id: Union[str, int]) -> int:
    """Extract the numeric task ID from ``task-<n>`` (bare integers are accepted)."""
    if isinstance(external_id, bool):
        raise InvalidArgumentError(f"Invalid task id: {external_id!r}")
    if isinstance(external_id, int):
        return external_id

    text = str(external_id).strip()
    if text.startswith(EXTERNAL_ID_PREFIX):
        text = text[len(EXTERNAL_ID_PREFIX):]
    try:
        return int(text)
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid task id: {external_id!r}", context={"task_id": external_id}
        )


def _parse_external(entry: Any) -> ExternalTask:
    if isinstance(entry, ExternalTask):
        return entry
    try:
        return ExternalTask.model_validate(entry)
    except PydanticValidationError as e:
        raise InvalidArgumentError(f"Malformed task entry: {e.error_count()} invalid field(s)", original_error=e)


def to_db_format(external: ExternalPayload, partial: bool = False) -> Dict[str, Any]:
    """
    Convert a UI task to a store payload.

    The UI's three statuses collapse to two: only ``completed`` stays
    completed, everything else becomes pending. With ``partial`` only keys
    present in the UI payload are returned.
    """
    task = _parse_external(external)
    converted = {
        "title": task.title,
        "description": task.description or "",
        "due_date": task.due_date or None,
        "priority": task.priority or Priority.MEDIUM.value,
        "status": (
            TaskStatus.COMPLETED.value if task.status == "completed" else TaskStatus.PENDING.value
        ),
    }
    if not partial:
        return converted
    return {key: value for key, value in converted.items() if key in task.model_fields_set}


def to_external_format(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a store record to the UI vocabulary."""
    status = record.get("status")
    if status == TaskStatus.COMPLETED.value:
        external_status = "completed"
    elif status == TaskStatus.PENDING.value:
        external_status = "todo"
    else:
        external_status = "in-progress"

    created_at = record.get("created_at")
    created_date = str(created_at)[:10] if created_at else date.today().isoformat()

    return ExternalTask(
        id=f"{EXTERNAL_ID_PREFIX}{record['task_id']}",
        title=record.get("title"),
        description=record.get("description") or "",
        project_id=DEFAULT_PROJECT_ID,
        priority=record.get("priority"),
        status=external_status,
        due_date=record.get("due_date"),
        created_date=created_date,
    ).model_dump(by_alias=True)


class ProjectFlowSync:
    """Keeps the UI snapshot consistent with the task store."""

    def __init__(self, db: TaskDatabase, storage: SnapshotStorage, tasks_key: str = TASKS_KEY):
        self.db = db
        self.storage = storage
        self.tasks_key = tasks_key
        self.is_initialized = False

    def __enter__(self) -> "ProjectFlowSync":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def initialize(self) -> None:
        """Connect the underlying store."""
        try:
            self.db.connect()
        except ServiceError as e:
            logger.error(f"Failed to initialize database: {e.message}")
            raise
        self.is_initialized = True
        logger.info("ProjectFlow database integration initialized")

    def close(self) -> None:
        self.db.close()
        self.is_initialized = False

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise NotConnectedError("Database not initialized")

    def read_snapshot(self) -> List[Any]:
        """
        Return the raw entries stored under the tasks key.

        Raises:
            InvalidArgumentError: If the stored value is not a JSON array
        """
        raw = self.storage.get_item(self.tasks_key)
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidArgumentError(f"Snapshot under '{self.tasks_key}' is not valid JSON", original_error=e)
        if not isinstance(entries, list):
            raise InvalidArgumentError(f"Snapshot under '{self.tasks_key}' is not a list")
        return entries

    def pull_all(self) -> List[Dict[str, Any]]:
        """Replace the whole snapshot with every task in the store."""
        self._require_initialized()
        external_tasks = [to_external_format(record) for record in self.db.query_tasks()]
        self.storage.set_item(self.tasks_key, json.dumps(external_tasks))
        logger.info(f"Synced {len(external_tasks)} tasks to snapshot")
        return external_tasks

    def push_all(self) -> SyncReport:
        """
        Create a store task for every snapshot entry.

        Entries that fail to convert or to validate are logged and skipped;
        the import as a whole always completes.
        """
        self._require_initialized()
        report = SyncReport()
        entries = self.read_snapshot()
        if not entries:
            logger.info("No tasks found in snapshot")
            return report

        logger.info(f"Syncing {len(entries)} tasks from snapshot to database")
        for index, entry in enumerate(entries):
            label = entry.get("title") if isinstance(entry, dict) else None
            label = label or f"entry {index}"
            try:
                self.db.create_task(to_db_format(entry))
            except ServiceError as e:
                logger.error(f"Failed to sync task {label}: {e.message}")
                report.failed += 1
                report.errors.append(f"{label}: {e.message}")
                continue
            report.imported += 1

        logger.info(f"Sync from snapshot completed: {report.imported} imported, {report.failed} failed")
        return report

    def create_task(self, task: ExternalPayload) -> Dict[str, Any]:
        """Create a task from a UI payload, then refresh the snapshot."""
        self._require_initialized()
        created = self.db.create_task(to_db_format(task))
        self.pull_all()
        return to_external_format(created)

    def update_task(self, external_id: Union[str, int], updates: ExternalPayload) -> Dict[str, Any]:
        """Apply the UI fields present in ``updates``, then refresh the snapshot."""
        self._require_initialized()
        task_id = parse_external_id(external_id)
        updated = self.db.update_task(task_id, to_db_format(updates, partial=True))
        self.pull_all()
        return to_external_format(updated)

    def delete_task(self, external_id: Union[str, int]) -> Dict[str, Any]:
        self._require_initialized()
        task_id = parse_external_id(external_id)
        self.db.delete_task(task_id)
        self.pull_all()
        return {"success": True, "taskId": f"{EXTERNAL_ID_PREFIX}{task_id}"}

    def get_tasks(self, filters: Optional[Payload] = None) -> List[Dict[str, Any]]:
        self._require_initialized()
        return [to_external_format(record) for record in self.db.query_tasks(filters)]

    def search_tasks(self, term: str) -> List[Dict[str, Any]]:
        self._require_initialized()
        return [to_external_format(record) for record in self.db.search_tasks(term)]

    def get_task_stats(self) -> Dict[str, int]:
        self._require_initialized()
        return self.db.get_task_stats()
