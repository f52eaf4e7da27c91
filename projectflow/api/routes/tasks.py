"""
Task API routes.
"""
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Path, Query

from projectflow.database import TaskDatabase
from projectflow.dependencies.services import get_db
from projectflow.models.task_models import (
    TaskCreate,
    TaskDeleted,
    TaskFilters,
    TaskResponse,
    TaskStats,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])

logger = logging.getLogger(__name__)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(task: TaskCreate, db: TaskDatabase = Depends(get_db)) -> TaskResponse:
    """Create a new task."""
    return TaskResponse(**db.create_task(task))


# NOTE: /tasks/search and /tasks/stats must be defined BEFORE /tasks/{task_id}
@router.get("", response_model=List[TaskResponse])
async def query_tasks(
    status: Optional[str] = Query(None, description="Filter by status"),
    priority: Optional[str] = Query(None, description="Filter by priority"),
    due_date_from: Optional[str] = Query(None, description="Due on or after this date (YYYY-MM-DD)"),
    due_date_to: Optional[str] = Query(None, description="Due on or before this date (YYYY-MM-DD)"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Maximum number of results"),
    db: TaskDatabase = Depends(get_db),
) -> List[TaskResponse]:
    """List tasks, newest first."""
    filters = TaskFilters(
        status=status,
        priority=priority,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        limit=limit,
    )
    return [TaskResponse(**task) for task in db.query_tasks(filters)]


@router.get("/search", response_model=List[TaskResponse])
async def search_tasks(
    q: str = Query("", description="Text to find in title or description"),
    db: TaskDatabase = Depends(get_db),
) -> List[TaskResponse]:
    """Search tasks by title or description."""
    return [TaskResponse(**task) for task in db.search_tasks(q)]


@router.get("/stats", response_model=TaskStats)
async def get_task_stats(db: TaskDatabase = Depends(get_db)) -> TaskStats:
    """Aggregate task counts."""
    return TaskStats(**db.get_task_stats())


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int = Path(..., description="Task ID"),
    db: TaskDatabase = Depends(get_db),
) -> TaskResponse:
    """Get a task by ID."""
    return TaskResponse(**db.get_task(task_id))


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    updates: TaskUpdate,
    task_id: int = Path(..., description="Task ID"),
    db: TaskDatabase = Depends(get_db),
) -> TaskResponse:
    """Update the supplied fields of a task."""
    return TaskResponse(**db.update_task(task_id, updates))


@router.delete("/{task_id}", response_model=TaskDeleted)
async def delete_task(
    task_id: int = Path(..., description="Task ID"),
    db: TaskDatabase = Depends(get_db),
) -> TaskDeleted:
    """Delete a task."""
    return TaskDeleted(**db.delete_task(task_id))
