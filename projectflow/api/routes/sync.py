"""
Snapshot sync API routes used by the ProjectFlow UI.
"""
from typing import Any, Dict, List
import logging

from fastapi import APIRouter, Depends, Path

from projectflow.dependencies.services import get_sync
from projectflow.models.sync_models import ExternalTask, PullResult, SyncReport
from projectflow.sync import ProjectFlowSync

router = APIRouter(prefix="/sync", tags=["sync"])

logger = logging.getLogger(__name__)


@router.get("/snapshot")
async def read_snapshot(sync: ProjectFlowSync = Depends(get_sync)) -> List[Any]:
    """Return the entries currently stored in the snapshot."""
    return sync.read_snapshot()


@router.post("/pull", response_model=PullResult)
async def pull_all(sync: ProjectFlowSync = Depends(get_sync)) -> PullResult:
    """Overwrite the snapshot with every task in the store."""
    tasks = sync.pull_all()
    return PullResult(synced=len(tasks), tasks=[ExternalTask.model_validate(t) for t in tasks])


@router.post("/push", response_model=SyncReport)
async def push_all(sync: ProjectFlowSync = Depends(get_sync)) -> SyncReport:
    """Import every snapshot entry into the store, skipping entries that fail."""
    return sync.push_all()


@router.post("/tasks", status_code=201)
async def create_task(task: ExternalTask, sync: ProjectFlowSync = Depends(get_sync)) -> Dict[str, Any]:
    """Create a task from a UI payload and refresh the snapshot."""
    return sync.create_task(task)


@router.patch("/tasks/{external_id}")
async def update_task(
    updates: ExternalTask,
    external_id: str = Path(..., description="UI task id, e.g. task-12"),
    sync: ProjectFlowSync = Depends(get_sync),
) -> Dict[str, Any]:
    """Update a task from a UI payload and refresh the snapshot."""
    return sync.update_task(external_id, updates)


@router.delete("/tasks/{external_id}")
async def delete_task(
    external_id: str = Path(..., description="UI task id, e.g. task-12"),
    sync: ProjectFlowSync = Depends(get_sync),
) -> Dict[str, Any]:
    """Delete a task and refresh the snapshot."""
    return sync.delete_task(external_id)
