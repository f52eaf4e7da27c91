"""
Pydantic models for the ProjectFlow service.
"""
from projectflow.models.task_models import (
    Priority,
    TaskStatus,
    Violation,
    TaskCreate,
    TaskUpdate,
    TaskFilters,
    TaskResponse,
    TaskStats,
    TaskDeleted,
)
from projectflow.models.sync_models import ExternalTask, SyncReport, PullResult

__all__ = [
    "Priority",
    "TaskStatus",
    "Violation",
    "TaskCreate",
    "TaskUpdate",
    "TaskFilters",
    "TaskResponse",
    "TaskStats",
    "TaskDeleted",
    "ExternalTask",
    "SyncReport",
    "PullResult",
]
