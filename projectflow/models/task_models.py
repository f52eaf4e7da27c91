"""
Pydantic models for task payloads, filters and responses.

Payload models are deliberately lenient about values: rule checking happens
in TaskDatabase.validate_task so that every violation is reported together.
"""
from datetime import date
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class Priority(str, Enum):
    """Task priority enumeration."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskStatus(str, Enum):
    """Task status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"


class Violation(str, Enum):
    """Validation rule codes reported by TaskDatabase.validate_task."""
    TITLE_REQUIRED = "title_required"
    TITLE_TOO_LONG = "title_too_long"
    INVALID_PRIORITY = "invalid_priority"
    INVALID_STATUS = "invalid_status"
    INVALID_DUE_DATE = "invalid_due_date"

    @property
    def message(self) -> str:
        return _VIOLATION_MESSAGES[self]


_VIOLATION_MESSAGES = {
    Violation.TITLE_REQUIRED: "Title is required",
    Violation.TITLE_TOO_LONG: "Title must be at most 255 characters",
    Violation.INVALID_PRIORITY: "Priority must be high, medium, or low",
    Violation.INVALID_STATUS: "Status must be pending or completed",
    Violation.INVALID_DUE_DATE: "Due date must be a valid date",
}


class TaskCreate(BaseModel):
    """Request model for creating a task."""
    title: Optional[str] = Field(None, description="Task title (required, at most 255 characters)")
    description: Optional[str] = Field(None, description="Optional description")
    due_date: Optional[Union[date, str]] = Field(None, description="Optional due date (YYYY-MM-DD)")
    priority: Optional[str] = Field(None, description="Task priority: high, medium, or low (default medium)")
    status: Optional[str] = Field(None, description="Task status: pending or completed (default pending)")


class TaskUpdate(BaseModel):
    """Request model for updating a task. Only fields that are set are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[Union[date, str]] = None
    priority: Optional[str] = None
    status: Optional[str] = None


class TaskFilters(BaseModel):
    """Filters for listing tasks. Unset fields do not restrict the result."""
    status: Optional[str] = Field(None, description="Exact status match")
    priority: Optional[str] = Field(None, description="Exact priority match")
    due_date_from: Optional[str] = Field(None, description="Inclusive lower bound on due_date")
    due_date_to: Optional[str] = Field(None, description="Inclusive upper bound on due_date")
    limit: Optional[int] = Field(None, gt=0, description="Maximum number of results")


class TaskResponse(BaseModel):
    """Task response model."""
    task_id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: str
    status: str
    created_at: str
    updated_at: str


class TaskStats(BaseModel):
    """Aggregate task counts."""
    total_tasks: int
    pending_tasks: int
    completed_tasks: int
    high_priority_tasks: int
    due_today: int


class TaskDeleted(BaseModel):
    task_id: int
    deleted: bool
