"""
Database schema and management for the ProjectFlow task store.
"""
import os
import sqlite3
import time
import logging
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from projectflow.config import get_settings
from projectflow.exceptions import (
    InvalidArgumentError,
    NotConnectedError,
    StorageError,
    TaskNotFoundError,
    ValidationError,
)
from projectflow.models.task_models import Priority, TaskStatus, Violation

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
UPDATABLE_COLUMNS = ("title", "description", "due_date", "priority", "status")
PRIORITIES = tuple(p.value for p in Priority)
STATUSES = tuple(s.value for s in TaskStatus)

# CURRENT_TIMESTAMP layout (UTC) with millisecond precision
TIMESTAMP_SQL = "strftime('%Y-%m-%d %H:%M:%f', 'now')"


def next_timestamp_sql(previous: str) -> str:
    """
    SQL for a refreshed updated_at: now, or one millisecond past ``previous``
    when the clock has not moved beyond it. Keeps updated_at strictly increasing.
    """
    return (
        f"CASE WHEN {previous} IS NULL OR {TIMESTAMP_SQL} > {previous} THEN {TIMESTAMP_SQL} "
        f"ELSE strftime('%Y-%m-%d %H:%M:%f', julianday({previous}) + 0.001 / 86400.0) END"
    )


SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS tasks (
    task_id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT,
    due_date DATE,
    priority TEXT CHECK(priority IN ('high', 'medium', 'low')) DEFAULT 'medium',
    status TEXT CHECK(status IN ('pending', 'completed')) DEFAULT 'pending',
    created_at DATETIME DEFAULT ({TIMESTAMP_SQL}),
    updated_at DATETIME DEFAULT ({TIMESTAMP_SQL})
);

CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);
CREATE INDEX IF NOT EXISTS idx_tasks_priority ON tasks(priority);
CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date);
CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at);

-- recreated on every connect so older files pick up the monotonic refresh
DROP TRIGGER IF EXISTS update_tasks_updated_at;
CREATE TRIGGER update_tasks_updated_at
    AFTER UPDATE ON tasks
    FOR EACH ROW
BEGIN
    UPDATE tasks SET updated_at = {next_timestamp_sql("OLD.updated_at")} WHERE task_id = NEW.task_id;
END;
"""

Payload = Union[Mapping[str, Any], BaseModel]


def normalize_due_date(value: Any) -> Optional[str]:
    """
    Normalize a due date to ``YYYY-MM-DD``.

    Accepts date and datetime objects, ISO date strings and ISO datetime
    strings (the date part is kept). Empty strings and None mean no due date.

    Raises:
        ValueError: If the value is not a calendar date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise ValueError(f"Unsupported due date type: {type(value).__name__}")

    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        pass
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TaskDatabase:
    """SQLite-backed task store: owns the connection, validates payloads, runs queries."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Remember the database location. Nothing is opened until connect().

        Args:
            db_path: SQLite file path or ":memory:". If None, uses PROJECTFLOW_DB_PATH.
        """
        settings = get_settings()
        self.db_path = str(db_path) if db_path is not None else settings.db_path
        self.query_slow_threshold = settings.query_slow_threshold
        self.enable_query_logging = settings.enable_query_logging
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "TaskDatabase":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        if self.db_path == ":memory:":
            return
        db_dir = os.path.dirname(os.path.abspath(self.db_path))
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def connect(self) -> None:
        """Open the session and initialize the schema. Re-running the schema is harmless."""
        if self._conn is not None:
            return

        self._ensure_db_directory()
        conn = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            conn.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            conn.close()
            logger.error(f"Error creating schema in {self.db_path}: {e}", exc_info=True)
            raise StorageError(f"Failed to initialize schema: {e}", original_error=e) from e

        self._conn = conn
        logger.info(f"Connected to SQLite database at {self.db_path}")

    def close(self) -> None:
        """Close the session. Safe to call when not connected."""
        if self._conn is None:
            return
        try:
            self._conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error closing database: {e}", exc_info=True)
            raise StorageError(f"Failed to close database: {e}", original_error=e) from e
        finally:
            self._conn = None
        logger.info("Database connection closed")

    def _require_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise NotConnectedError()
        return self._conn

    def _log_query(self, query: str, params: Sequence[Any], duration: float):
        """Log slow queries at WARNING, others at DEBUG."""
        if not self.enable_query_logging:
            return
        query_preview = " ".join(query.split())
        if len(query_preview) > 200:
            query_preview = query_preview[:200] + "..."

        if duration >= self.query_slow_threshold:
            logger.warning(
                f"Slow query: {duration:.4f}s - {query_preview}",
                extra={"duration": duration, "params_count": len(params)}
            )
        else:
            logger.debug(f"Query executed in {duration:.4f}s: {query_preview}")

    def _execute_with_logging(self, query: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        """
        Execute a single statement with timing and error translation.

        Raises:
            NotConnectedError: If the store is not connected
            StorageError: If SQLite rejects the statement
        """
        conn = self._require_connection()
        start_time = time.time()
        try:
            cursor = conn.execute(query, tuple(params))
        except sqlite3.Error as e:
            duration = time.time() - start_time
            logger.error(
                f"Query failed after {duration:.4f}s: {' '.join(query.split())[:200]}",
                exc_info=True
            )
            raise StorageError(f"Database error: {e}", original_error=e) from e
        self._log_query(query, params, time.time() - start_time)
        return cursor

    @staticmethod
    def _payload_to_dict(payload: Optional[Payload]) -> Dict[str, Any]:
        if payload is None:
            return {}
        if isinstance(payload, BaseModel):
            return payload.model_dump(exclude_unset=True)
        if isinstance(payload, Mapping):
            return dict(payload)
        raise InvalidArgumentError(
            f"Expected a mapping or model, got {type(payload).__name__}"
        )

    def validate_task(self, task: Payload, partial: bool = False) -> List[Violation]:
        """
        Check a task payload against the table rules.

        Args:
            task: Payload to check
            partial: True for updates; only keys present in the payload are checked
                     and an explicit None priority or status is rejected

        Returns:
            Every violated rule, empty when the payload is valid
        """
        data = self._payload_to_dict(task)
        errors: List[Violation] = []

        if not partial or "title" in data:
            title = data.get("title")
            if not isinstance(title, str) or not title.strip():
                errors.append(Violation.TITLE_REQUIRED)
            elif len(title.strip()) > MAX_TITLE_LENGTH:
                errors.append(Violation.TITLE_TOO_LONG)

        if "priority" in data:
            priority = _enum_value(data["priority"])
            if (priority is not None or partial) and priority not in PRIORITIES:
                errors.append(Violation.INVALID_PRIORITY)

        if "status" in data:
            status = _enum_value(data["status"])
            if (status is not None or partial) and status not in STATUSES:
                errors.append(Violation.INVALID_STATUS)

        if data.get("due_date") is not None:
            try:
                normalize_due_date(data["due_date"])
            except ValueError:
                errors.append(Violation.INVALID_DUE_DATE)

        return errors

    def _raise_if_invalid(self, data: Dict[str, Any], partial: bool = False) -> None:
        violations = self.validate_task(data, partial=partial)
        if violations:
            error = ValidationError(violations)
            logger.warning(error.message)
            raise error

    def create_task(self, task: Payload) -> Dict[str, Any]:
        """
        Create a new task.

        Args:
            task: Mapping or TaskCreate with title (required), description,
                  due_date, priority (default medium) and status (default pending)

        Returns:
            The stored task, including task_id, created_at and updated_at

        Raises:
            ValidationError: If the payload breaks any rule
            StorageError: If the insert fails
        """
        self._require_connection()
        data = self._payload_to_dict(task)
        self._raise_if_invalid(data)

        title = data["title"].strip()
        params = (
            title,
            data.get("description") or None,
            normalize_due_date(data.get("due_date")),
            _enum_value(data.get("priority")) or Priority.MEDIUM.value,
            _enum_value(data.get("status")) or TaskStatus.PENDING.value,
        )
        cursor = self._execute_with_logging("""
            INSERT INTO tasks (title, description, due_date, priority, status)
            VALUES (?, ?, ?, ?, ?)
        """, params)

        task_id = cursor.lastrowid
        logger.info(f"Created task {task_id}: {title}")
        return self.get_task(task_id)

    def get_task(self, task_id: int) -> Dict[str, Any]:
        """Get a task by ID. Raises TaskNotFoundError if it does not exist."""
        cursor = self._execute_with_logging("SELECT * FROM tasks WHERE task_id = ?", (task_id,))
        row = cursor.fetchone()
        if row is None:
            raise TaskNotFoundError(task_id)
        return dict(row)

    def query_tasks(self, filters: Optional[Payload] = None) -> List[Dict[str, Any]]:
        """
        List tasks matching optional filters, newest first.

        Args:
            filters: Mapping or TaskFilters with status, priority, due_date_from,
                     due_date_to (inclusive) and limit

        Returns:
            Matching tasks ordered by created_at descending (empty list if none)
        """
        self._require_connection()
        f = self._payload_to_dict(filters)
        conditions = []
        params: List[Any] = []

        if f.get("status"):
            conditions.append("status = ?")
            params.append(_enum_value(f["status"]))
        if f.get("priority"):
            conditions.append("priority = ?")
            params.append(_enum_value(f["priority"]))

        for key, operator in (("due_date_from", ">="), ("due_date_to", "<=")):
            if not f.get(key):
                continue
            try:
                bound = normalize_due_date(f[key])
            except ValueError:
                raise InvalidArgumentError(f"{key} must be a valid date", context={key: f[key]})
            conditions.append(f"due_date {operator} ?")
            params.append(bound)

        where_clause = "WHERE " + " AND ".join(conditions) if conditions else ""
        query = f"SELECT * FROM tasks {where_clause} ORDER BY created_at DESC, task_id DESC"

        limit = f.get("limit")
        if limit is not None:
            if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
                raise InvalidArgumentError("limit must be a positive integer", context={"limit": limit})
            query += " LIMIT ?"
            params.append(limit)

        cursor = self._execute_with_logging(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def update_task(self, task_id: int, updates: Payload) -> Dict[str, Any]:
        """
        Update the supplied fields of a task and refresh updated_at.

        Args:
            task_id: Task ID to update
            updates: Mapping or TaskUpdate; keys other than title, description,
                     due_date, priority and status are ignored

        Returns:
            The updated task

        Raises:
            ValidationError: If a supplied field breaks a rule
            InvalidArgumentError: If no updatable field was supplied
            TaskNotFoundError: If no task has this ID
        """
        self._require_connection()
        data = self._payload_to_dict(updates)
        self._raise_if_invalid(data, partial=True)

        fields = []
        params: List[Any] = []
        for column in UPDATABLE_COLUMNS:
            if column not in data:
                continue
            value = data[column]
            if column == "title":
                value = value.strip()
            elif column == "due_date":
                value = normalize_due_date(value)
            else:
                value = _enum_value(value)
            fields.append(f"{column} = ?")
            params.append(value)

        if not fields:
            raise InvalidArgumentError("No valid fields to update", context={"task_id": task_id})

        fields.append(f"updated_at = {next_timestamp_sql('updated_at')}")
        params.append(task_id)
        cursor = self._execute_with_logging(
            f"UPDATE tasks SET {', '.join(fields)} WHERE task_id = ?", params
        )
        if cursor.rowcount == 0:
            raise TaskNotFoundError(task_id)

        logger.info(f"Task {task_id} updated: {', '.join(c for c in UPDATABLE_COLUMNS if c in data)}")
        return self.get_task(task_id)

    def delete_task(self, task_id: int) -> Dict[str, Any]:
        """Hard-delete a task. Raises TaskNotFoundError if it does not exist."""
        cursor = self._execute_with_logging("DELETE FROM tasks WHERE task_id = ?", (task_id,))
        if cursor.rowcount == 0:
            raise TaskNotFoundError(task_id)
        logger.info(f"Task {task_id} deleted")
        return {"task_id": task_id, "deleted": True}

    def get_task_stats(self) -> Dict[str, int]:
        """
        Aggregate counts in a single pass over the table.

        due_today compares due_date with the current date in local time.
        """
        cursor = self._execute_with_logging("""
            SELECT
                COUNT(*) AS total_tasks,
                COALESCE(SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END), 0) AS pending_tasks,
                COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0) AS completed_tasks,
                COALESCE(SUM(CASE WHEN priority = 'high' THEN 1 ELSE 0 END), 0) AS high_priority_tasks,
                COALESCE(SUM(CASE WHEN due_date = date('now', 'localtime') THEN 1 ELSE 0 END), 0) AS due_today
            FROM tasks
        """)
        row = cursor.fetchone()
        return {key: int(row[key]) for key in row.keys()}

    def search_tasks(self, term: str) -> List[Dict[str, Any]]:
        """
        Find tasks whose title or description contains the term.

        Matching uses SQL LIKE, so it is case-insensitive for ASCII letters.
        Wildcard characters in the term match literally.

        Raises:
            InvalidArgumentError: If the term is empty after trimming
        """
        self._require_connection()
        if not isinstance(term, str) or not term.strip():
            raise InvalidArgumentError("Search term is required")

        pattern = f"%{_escape_like(term.strip())}%"
        cursor = self._execute_with_logging("""
            SELECT * FROM tasks
            WHERE title LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\'
            ORDER BY created_at DESC, task_id DESC
        """, (pattern, pattern))
        return [dict(row) for row in cursor.fetchall()]

    def ping(self) -> None:
        """Run a trivial query; raises if the session is unusable."""
        self._execute_with_logging("SELECT 1").fetchone()
